"""
Configuration for the media reconciler.
"""
from __future__ import annotations

import os
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path

from .shared import ErrorCode, Result
from .utils import env_bool

logger = logging.getLogger(__name__)


def _env_raw(*names: str, default: str | None = None) -> str | None:
    for name in names:
        if not name:
            continue
        val = os.getenv(name)
        if val is not None and str(val).strip() != "":
            return str(val).strip()
    return default


def _env_int(default: int, *names: str, min_value: int | None = None, max_value: int | None = None) -> int:
    raw = _env_raw(*names)
    if raw is None:
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        logger.warning("Invalid integer for %s=%r, using default=%s", names[0] if names else "<unknown>", raw, default)
        return default
    if min_value is not None and value < min_value:
        logger.warning("Value too small for %s=%s, clamped to %s", names[0] if names else "<unknown>", value, min_value)
        value = min_value
    if max_value is not None and value > max_value:
        logger.warning("Value too large for %s=%s, clamped to %s", names[0] if names else "<unknown>", value, max_value)
        value = max_value
    return value


def _env_float(default: float, *names: str, min_value: float | None = None, max_value: float | None = None) -> float:
    raw = _env_raw(*names)
    if raw is None:
        return default
    try:
        value = float(raw)
    except (TypeError, ValueError):
        logger.warning("Invalid float for %s=%r, using default=%s", names[0] if names else "<unknown>", raw, default)
        return default
    if min_value is not None and value < min_value:
        logger.warning("Value too small for %s=%s, clamped to %s", names[0] if names else "<unknown>", value, min_value)
        value = min_value
    if max_value is not None and value > max_value:
        logger.warning("Value too large for %s=%s, clamped to %s", names[0] if names else "<unknown>", value, max_value)
        value = max_value
    return value


def _env_bool(default: bool, *names: str) -> bool:
    for name in names:
        if name and name in os.environ:
            return env_bool(name, default)
    return default


# Document database
DB_PATH = _env_raw("MRC_DB_PATH", default=str(Path.cwd() / "reconciler.db")) or "reconciler.db"
DB_TIMEOUT = _env_float(30.0, "MRC_DB_TIMEOUT", min_value=1.0)

# Remote store pagination and pacing
LIST_PAGE_SIZE = _env_int(500, "MRC_LIST_PAGE_SIZE", min_value=1, max_value=500)
DELETE_DELAY_SECONDS = _env_float(0.2, "MRC_DELETE_DELAY_SECONDS", min_value=0.0)
UPLOAD_DELAY_SECONDS = _env_float(0.5, "MRC_UPLOAD_DELAY_SECONDS", min_value=0.0)
STORE_REQUEST_TIMEOUT = _env_float(30.0, "MRC_STORE_TIMEOUT", min_value=1.0)
HEALTH_PROBE_TIMEOUT = _env_float(10.0, "MRC_HEALTH_TIMEOUT", min_value=1.0, max_value=120.0)

# Namespaces
ROOT_FOLDER = _env_raw("MRC_ROOT_FOLDER", "CLOUDINARY_ROOT_FOLDER", default="looklyn") or "looklyn"
UPLOADS_DIR = _env_raw("MRC_UPLOADS_DIR", default=str(Path.cwd() / "uploads")) or "uploads"
LOCAL_PATH_PREFIX = "/uploads/"

# Values longer than this that do not name the store host are embedded payloads.
INLINE_PAYLOAD_MIN_LENGTH = _env_int(1000, "MRC_INLINE_MIN_LENGTH", min_value=64)

# Report runs may overlap uploads; cleanup must be requested explicitly.
CLEANUP_REQUIRE_CONFIRM = _env_bool(True, "MRC_CLEANUP_REQUIRE_CONFIRM")

DEFAULT_API_BASE = "https://api.cloudinary.com/v1_1"
DEFAULT_DELIVERY_MARKER = "cloudinary.com"


@dataclass(frozen=True)
class StoreConfig:
    """
    Explicit remote store settings.

    Passed into each component constructor; nothing reads credentials from
    module state at call time.
    """

    cloud_name: str = ""
    api_key: str = ""
    api_secret: str = field(default="", repr=False)
    api_base: str = DEFAULT_API_BASE
    delivery_marker: str = DEFAULT_DELIVERY_MARKER
    root_folder: str = ROOT_FOLDER
    page_size: int = LIST_PAGE_SIZE
    request_timeout: float = STORE_REQUEST_TIMEOUT
    probe_timeout: float = HEALTH_PROBE_TIMEOUT
    delete_delay: float = DELETE_DELAY_SECONDS
    upload_delay: float = UPLOAD_DELAY_SECONDS
    uploads_dir: str = UPLOADS_DIR
    inline_min_length: int = INLINE_PAYLOAD_MIN_LENGTH

    @classmethod
    def from_env(cls) -> "StoreConfig":
        return cls(
            cloud_name=_env_raw("MRC_CLOUD_NAME", "CLOUDINARY_CLOUD_NAME", default="") or "",
            api_key=_env_raw("MRC_API_KEY", "CLOUDINARY_API_KEY", default="") or "",
            api_secret=_env_raw("MRC_API_SECRET", "CLOUDINARY_API_SECRET", default="") or "",
            api_base=(_env_raw("MRC_API_BASE", default=DEFAULT_API_BASE) or DEFAULT_API_BASE).rstrip("/"),
            delivery_marker=_env_raw("MRC_DELIVERY_MARKER", default=DEFAULT_DELIVERY_MARKER) or DEFAULT_DELIVERY_MARKER,
        )

    def with_overrides(self, **changes) -> "StoreConfig":
        return replace(self, **changes)

    def folder(self, sub: str | None = None) -> str:
        """Full folder path under the root namespace."""
        root = self.root_folder.strip("/")
        if not sub:
            return root
        return f"{root}/{sub.strip('/')}" if root else sub.strip("/")

    def validate(self) -> Result[bool]:
        missing = [
            name
            for name, value in (
                ("cloud_name", self.cloud_name),
                ("api_key", self.api_key),
                ("api_secret", self.api_secret),
            )
            if not value
        ]
        if missing:
            return Result.Err(
                ErrorCode.CONFIG_MISSING,
                f"Remote store credentials missing: {', '.join(missing)}",
                missing=missing,
            )
        return Result.Ok(True)
