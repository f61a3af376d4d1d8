"""
Logical identity of stored assets.

Upload names follow one of two conventions:

    <entityKind>_<entityId>_<slotIndex>_<versionTimestamp>   (entity-scoped)
    <seriesKind>_<versionTimestamp>_<slotIndex>              (sequence-scoped)

Dropping the version timestamp yields the logical key, so repeated uploads
into the same slot collide on purpose. Anything else falls back to a content
fingerprint; a miss is not an error.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ...shared import AssetFamily
from ...utils import safe_int

_ENTITY_RE = re.compile(r"^(?P<kind>[A-Za-z][A-Za-z0-9-]*)_(?P<entity>[A-Za-z0-9]+)_(?P<slot>\d+)_(?P<ts>\d+)$")
_SEQUENCE_RE = re.compile(r"^(?P<kind>[A-Za-z][A-Za-z0-9-]*)_(?P<ts>\d+)_(?P<slot>\d+)$")


@dataclass(frozen=True)
class ParsedIdentity:
    family: AssetFamily
    key: str
    version_timestamp: Optional[int] = None
    kind: Optional[str] = None
    entity_id: Optional[str] = None
    slot: Optional[int] = None


def _basename(name: str) -> str:
    return str(name or "").rsplit("/", 1)[-1]


def parse_asset_name(name: str) -> Optional[ParsedIdentity]:
    """Match a stored name against the naming conventions; None when neither applies."""
    base = _basename(name)
    if not base:
        return None

    m = _ENTITY_RE.match(base)
    if m:
        kind, entity, slot = m.group("kind"), m.group("entity"), int(m.group("slot"))
        return ParsedIdentity(
            family="entity-scoped",
            key=f"{kind}_{entity}_{slot}",
            version_timestamp=int(m.group("ts")),
            kind=kind,
            entity_id=entity,
            slot=slot,
        )

    m = _SEQUENCE_RE.match(base)
    if m:
        kind, slot = m.group("kind"), int(m.group("slot"))
        return ParsedIdentity(
            family="sequence-scoped",
            key=f"{kind}_{slot}",
            version_timestamp=int(m.group("ts")),
            kind=kind,
            slot=slot,
        )
    return None


def fallback_key(
    store_asset_id: Optional[str],
    width: Any = None,
    height: Any = None,
    fmt: Any = None,
    byte_size: Any = None,
) -> str:
    if store_asset_id:
        return str(store_asset_id)
    return f"{safe_int(width)}x{safe_int(height)}_{fmt or ''}_{safe_int(byte_size)}"


def entity_asset_name(kind: str, entity_id: str, slot: int, version_ts: int) -> str:
    return f"{kind}_{entity_id}_{int(slot)}_{int(version_ts)}"


def sequence_asset_name(kind: str, slot: int, version_ts: int) -> str:
    return f"{kind}_{int(version_ts)}_{int(slot)}"


class IdentityParser:
    """Maps a stored asset to its logical key (pure, no I/O)."""

    def parse(
        self,
        name: str,
        *,
        store_asset_id: Optional[str] = None,
        width: Any = None,
        height: Any = None,
        fmt: Any = None,
        byte_size: Any = None,
    ) -> ParsedIdentity:
        parsed = parse_asset_name(name)
        if parsed is not None:
            return parsed
        return ParsedIdentity(
            family="fallback",
            key=fallback_key(store_asset_id, width, height, fmt, byte_size),
        )

    def parse_resource(self, resource: Dict[str, Any]) -> ParsedIdentity:
        """Parse a normalized store resource (see `normalize_resource`)."""
        resource = resource or {}
        return self.parse(
            str(resource.get("public_id") or ""),
            store_asset_id=resource.get("asset_id"),
            width=resource.get("width"),
            height=resource.get("height"),
            fmt=resource.get("format"),
            byte_size=resource.get("bytes"),
        )
