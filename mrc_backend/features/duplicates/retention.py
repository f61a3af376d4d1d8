"""
Retention policy: which member of a duplicate group survives.

Pure functions only; no I/O and no logging.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import AbstractSet, Iterable, List, Tuple

from ...shared import RemovalReason
from ..inventory import RemoteAsset

DUPLICATE_OF_USED: RemovalReason = "duplicate-of-used"
UNUSED: RemovalReason = "unused"


@dataclass(frozen=True)
class RemovalCandidate:
    asset: RemoteAsset
    reason: RemovalReason

    def to_dict(self, group_key: str) -> dict:
        return {"asset_id": self.asset.asset_id, "reason": self.reason, "group_key": group_key}


@dataclass(frozen=True)
class RetentionDecision:
    retain: RemoteAsset
    removals: Tuple[RemovalCandidate, ...]


def _sort_key(asset: RemoteAsset) -> tuple:
    # Newest first; ties by creation time, then by id so reruns agree.
    return (-asset.order_timestamp, -int(asset.created_ms), asset.asset_id)


def newest_first(members: Iterable[RemoteAsset]) -> List[RemoteAsset]:
    return sorted(members, key=_sort_key)


def decide(members: Iterable[RemoteAsset], live_set: AbstractSet[str]) -> RetentionDecision:
    """
    Pick exactly one asset to keep and label every other member.

    With live members, the newest live one is kept. Other live members, and
    dead members newer than the kept one, are `duplicate-of-used`; older dead
    members are `unused`. Without live members the newest member is kept and
    the rest are `unused`.

    Labelling a newer dead copy `duplicate-of-used` follows the acceptance
    example (A unused, B kept, C duplicate-of-used), not a plain
    live/dead split.

    Members repeating an id already seen are dropped, so the kept asset can
    never also be a removal.

    Raises:
        ValueError: if `members` is empty.
    """
    ordered: List[RemoteAsset] = []
    seen: set = set()
    for member in newest_first(members):
        if member.asset_id in seen:
            continue
        seen.add(member.asset_id)
        ordered.append(member)
    if not ordered:
        raise ValueError("cannot apply retention to an empty group")

    live = [m for m in ordered if m.asset_id in live_set]
    if not live:
        retain = ordered[0]
        return RetentionDecision(
            retain=retain,
            removals=tuple(RemovalCandidate(m, UNUSED) for m in ordered[1:]),
        )

    retain = live[0]
    retain_key = _sort_key(retain)
    removals: List[RemovalCandidate] = []
    for member in ordered:
        if member.asset_id == retain.asset_id:
            continue
        if member.asset_id in live_set or _sort_key(member) < retain_key:
            removals.append(RemovalCandidate(member, DUPLICATE_OF_USED))
        else:
            removals.append(RemovalCandidate(member, UNUSED))
    return RetentionDecision(retain=retain, removals=tuple(removals))


class RetentionPolicy:
    """Object wrapper so the policy can be injected and swapped in tests."""

    def decide(self, members: Iterable[RemoteAsset], live_set: AbstractSet[str]) -> RetentionDecision:
        return decide(members, live_set)
