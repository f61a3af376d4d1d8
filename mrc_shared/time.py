"""
Time utilities for timestamps and performance measurement.
"""
from __future__ import annotations

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone


def now() -> float:
    """Get current timestamp in seconds (float)."""
    return time.time()

def ms() -> int:
    """Get current timestamp in milliseconds (int)."""
    return int(time.time() * 1000)

def parse_iso_ms(value: str | None) -> int:
    """
    Parse an ISO 8601 creation stamp (as returned by the remote store) into epoch ms.

    Naive values are treated as UTC. Unparseable or empty values map to 0 so they
    sort as the oldest possible entry.
    """
    if not value:
        return 0
    raw = str(value).strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        return 0
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp() * 1000)

@contextmanager
def timer(label: str, logger: logging.Logger | None = None) -> Iterator[None]:
    """
    Context manager for timing operations.

    Usage:
        with timer("remote inventory scan", logger):
            await scanner.scan(prefix)
    """
    start = now()
    try:
        yield
    finally:
        elapsed = now() - start
        msg = f"{label} took {elapsed:.3f}s"
        if logger:
            logger.debug(msg)
        else:
            print(msg)
