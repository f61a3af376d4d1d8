"""
Duplicate grouping by logical key.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import AbstractSet, Dict, Iterable, List, Optional, Tuple

from ...shared import get_logger
from ..inventory import RemoteAsset
from .retention import RemovalCandidate, RetentionPolicy

logger = get_logger(__name__)


@dataclass(frozen=True)
class DuplicateGroup:
    logical_key: str
    members: Tuple[RemoteAsset, ...]
    retain: RemoteAsset
    removal_candidates: Tuple[RemovalCandidate, ...]
    live_ids: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def size(self) -> int:
        return len(self.members)

    def to_dict(self) -> dict:
        return {
            "logical_key": self.logical_key,
            "size": self.size,
            "family": self.retain.family,
            "retain": self.retain.asset_id,
            "live_ids": list(self.live_ids),
            "removal_candidates": [c.to_dict(self.logical_key) for c in self.removal_candidates],
        }


class DuplicateGrouper:
    """
    Partitions inventory by logical key. Groups of two or more members are
    duplicate sets; singletons are returned separately for the totals.
    """

    def __init__(self, policy: Optional[RetentionPolicy] = None):
        self._policy = policy or RetentionPolicy()

    @staticmethod
    def partition(assets: Iterable[RemoteAsset]) -> Dict[str, List[RemoteAsset]]:
        buckets: Dict[str, List[RemoteAsset]] = {}
        for asset in assets:
            buckets.setdefault(asset.logical_key, []).append(asset)
        return buckets

    def group(
        self,
        assets: Iterable[RemoteAsset],
        live_set: Optional[AbstractSet[str]] = None,
    ) -> List[DuplicateGroup]:
        live = live_set if live_set is not None else frozenset()
        groups: List[DuplicateGroup] = []
        for key, members in self.partition(assets).items():
            if len(members) < 2:
                continue
            decision = self._policy.decide(members, live)
            ordered = (decision.retain,) + tuple(c.asset for c in decision.removals)
            if len(ordered) < 2:
                continue
            groups.append(
                DuplicateGroup(
                    logical_key=key,
                    members=ordered,
                    retain=decision.retain,
                    removal_candidates=decision.removals,
                    live_ids=tuple(sorted(m.asset_id for m in ordered if m.asset_id in live)),
                )
            )
        groups.sort(key=lambda g: (-g.size, g.logical_key))
        return groups

    def singletons(self, assets: Iterable[RemoteAsset]) -> List[RemoteAsset]:
        out = [members[0] for members in self.partition(assets).values() if len(members) == 1]
        out.sort(key=lambda a: a.asset_id)
        return out
