"""
Migration status: how many references of each kind every source still holds.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable

from ..references import LiveReference

KINDS = ("remote", "inline", "local", "external")


def migration_status(references: Iterable[LiveReference]) -> Dict[str, Any]:
    per_source: Dict[str, Dict[str, int]] = {}
    totals = {kind: 0 for kind in KINDS}
    for ref in references:
        bucket = per_source.setdefault(ref.source or ref.entity_type, {kind: 0 for kind in KINDS})
        bucket[ref.kind] = bucket.get(ref.kind, 0) + 1
        totals[ref.kind] = totals.get(ref.kind, 0) + 1

    total = sum(totals.values())
    pending = totals["inline"] + totals["local"]
    progress = round(100.0 * totals["remote"] / total, 1) if total else 100.0
    return {
        "sources": per_source,
        "totals": totals,
        "total": total,
        "pending_migration": pending,
        "progress_percent": progress,
        "complete": pending == 0,
    }
