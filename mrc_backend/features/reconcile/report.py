"""
Reconciliation report model and its text renderings.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

from ..duplicates import DuplicateGroup
from ..inventory import RemoteAsset

RULE = "=" * 60


@dataclass(frozen=True)
class ReconciliationReport:
    total_remote: int
    total_live: int
    groups: List[DuplicateGroup] = field(default_factory=list)
    unused_singletons: List[RemoteAsset] = field(default_factory=list)
    referenced_removals: List[str] = field(default_factory=list)
    prefix: str = ""

    @property
    def removal_count(self) -> int:
        return sum(len(g.removal_candidates) for g in self.groups)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "prefix": self.prefix,
            "total_remote": self.total_remote,
            "total_live": self.total_live,
            "group_count": len(self.groups),
            "removal_count": self.removal_count,
            "groups": [g.to_dict() for g in self.groups],
            "unused_singletons": [a.to_dict() for a in self.unused_singletons],
            "referenced_removals": list(self.referenced_removals),
            "removals": removal_list(self),
        }


def removal_list(report: ReconciliationReport) -> List[Dict[str, str]]:
    """Flat `{asset_id, reason, group_key}` list, one entry per removal candidate."""
    out: List[Dict[str, str]] = []
    for group in report.groups:
        for candidate in group.removal_candidates:
            out.append(candidate.to_dict(group.logical_key))
    return out


def public_id_list(report: ReconciliationReport) -> List[str]:
    return [entry["asset_id"] for entry in removal_list(report)]


def _asset_line(asset: RemoteAsset) -> str:
    kb = round(asset.byte_size / 1024) if asset.byte_size else 0
    return f"{asset.asset_id} ({asset.dimensions}, {asset.format or '?'}, {kb}KB)"


def render_report_lines(report: ReconciliationReport) -> List[str]:
    lines: List[str] = [
        RULE,
        "DUPLICATE REPORT" + (f" for {report.prefix}" if report.prefix else ""),
        RULE,
        f"Assets in remote store: {report.total_remote}",
        f"Identifiers referenced by documents: {report.total_live}",
        f"Duplicate groups: {len(report.groups)}",
        f"Removal candidates: {report.removal_count}",
        f"Unused singletons (review only): {len(report.unused_singletons)}",
    ]

    for group in report.groups:
        lines.append("")
        lines.append(f"Group {group.logical_key} ({group.size} assets, {len(group.live_ids)} referenced)")
        lines.append(f"  KEEP    {_asset_line(group.retain)}")
        for candidate in group.removal_candidates:
            lines.append(f"  REMOVE  {_asset_line(candidate.asset)} - {candidate.reason}")

    if report.referenced_removals:
        lines.append("")
        lines.append("Removal candidates that are themselves referenced (check before deleting):")
        lines.extend(f"  {asset_id}" for asset_id in report.referenced_removals)

    if report.unused_singletons:
        lines.append("")
        lines.append("Unused singletons (never removed automatically):")
        lines.extend(f"  {_asset_line(a)}" for a in report.unused_singletons)

    entries = removal_list(report)
    if entries:
        lines.append("")
        lines.append("Public ids to remove:")
        lines.extend(entry["asset_id"] for entry in entries)
        lines.append("")
        lines.append("Details:")
        lines.extend(f"{e['asset_id']} - {e['reason']} (group: {e['group_key']})" for e in entries)

    lines.append(RULE)
    return lines
