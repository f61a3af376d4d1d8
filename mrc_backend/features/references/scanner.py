"""
Live reference scanner - which stored assets are still referenced by documents.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Set

from ...adapters.db.sqlite import Sqlite
from ...config import StoreConfig
from ...shared import ErrorCode, ReferenceKind, Result, get_logger
from ...utils import safe_int
from .classify import classify_reference, extract_asset_id
from .sources import ALL_SOURCES, RECONCILE_SOURCES, ReferenceSource

logger = get_logger(__name__)


@dataclass(frozen=True)
class LiveReference:
    entity_type: str
    entity_id: str
    field_path: str
    url: Optional[str]
    derived_id: Optional[str]
    kind: ReferenceKind
    source: str = ""
    position: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "field_path": self.field_path,
            "url": self.url,
            "derived_id": self.derived_id,
            "kind": self.kind,
        }


class LiveReferenceScanner:
    """
    Reads each reference-bearing source with one projected query and
    classifies every entry. Only remote-store URLs yield an identifier.
    """

    def __init__(self, db: Sqlite, config: StoreConfig, sources: Iterable[ReferenceSource] = ALL_SOURCES):
        self._db = db
        self._config = config
        self._sources = tuple(sources)

    @property
    def sources(self) -> tuple:
        return self._sources

    def _row_to_reference(self, source: ReferenceSource, row: Dict[str, Any]) -> Optional[LiveReference]:
        position = safe_int(row.get("position"))
        value = row.get("value")
        url = value if isinstance(value, str) and value.strip() else None
        kind = classify_reference(
            url,
            delivery_marker=self._config.delivery_marker,
            inline_min_length=self._config.inline_min_length,
        )
        inline = bool(row.get("value_inline")) or bool(row.get("has_inline"))
        if kind != "remote" and inline:
            kind = "inline"
            url = None
        if kind is None:
            return None
        return LiveReference(
            entity_type=source.entity_type,
            entity_id=str(row.get("entity_id") or ""),
            field_path=source.field_path(position),
            url=url,
            derived_id=extract_asset_id(url) if kind == "remote" else None,
            kind=kind,
            source=source.name,
            position=position,
        )

    async def scan_source(self, source: ReferenceSource) -> Result[List[LiveReference]]:
        res = await self._db.aquery(source.projection_sql(self._config.inline_min_length, self._config.delivery_marker))
        if not res.ok:
            logger.error("Reference scan failed for %s: %s", source.name, res.error)
            return Result.Err(ErrorCode.SCAN_FAILED, res.error or f"Failed to read {source.collection}", source=source.name)
        refs: List[LiveReference] = []
        for row in res.data or []:
            ref = self._row_to_reference(source, row)
            if ref is not None:
                refs.append(ref)
        return Result.Ok(refs)

    async def scan_references(self, sources: Optional[Iterable[ReferenceSource]] = None) -> Result[List[LiveReference]]:
        """Every classified reference across `sources` (default: all configured sources)."""
        out: List[LiveReference] = []
        for source in (tuple(sources) if sources is not None else self._sources):
            res = await self.scan_source(source)
            if not res.ok:
                return res
            out.extend(res.data or [])
        return Result.Ok(out)

    async def scan_live(self) -> Result[Set[str]]:
        """Identifiers referenced by the sources that take part in reconciliation."""
        sources = [s for s in self._sources if s.reconcile] or list(RECONCILE_SOURCES)
        res = await self.scan_references(sources)
        if not res.ok:
            return Result.Err(res.code, res.error or "Reference scan failed", **res.meta)
        live: Set[str] = set()
        unextractable = 0
        for ref in res.data or []:
            if ref.kind != "remote":
                continue
            if ref.derived_id:
                live.add(ref.derived_id)
            else:
                unextractable += 1
        if unextractable:
            logger.warning(
                "%d remote reference(s) have an unrecognized URL shape; their assets count as unreferenced",
                unextractable,
            )
        logger.info("Live reference scan: %d identifier(s) in use", len(live))
        return Result.Ok(live, unextractable=unextractable)
