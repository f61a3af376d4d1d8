"""
Remote inventory scanner - enumerates every asset under a folder prefix.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Set

from ...adapters.remote import RemoteStore
from ...config import StoreConfig
from ...shared import AssetFamily, ErrorCode, Result, get_logger, parse_iso_ms
from ...utils import safe_int
from ..identity import IdentityParser

logger = get_logger(__name__)


@dataclass(frozen=True)
class RemoteAsset:
    """One stored object. `asset_id` is the handle used for lookup and delete."""
    asset_id: str
    logical_key: str
    family: AssetFamily
    version_timestamp: Optional[int]
    created_at: str
    created_ms: int
    width: int = 0
    height: int = 0
    format: str = ""
    byte_size: int = 0
    store_asset_id: Optional[str] = None
    secure_url: str = ""

    @property
    def order_timestamp(self) -> int:
        """Version stamp when the name carries one, else the creation time."""
        if self.version_timestamp is not None:
            return int(self.version_timestamp)
        return int(self.created_ms)

    @property
    def dimensions(self) -> str:
        return f"{self.width}x{self.height}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "asset_id": self.asset_id,
            "logical_key": self.logical_key,
            "family": self.family,
            "version_timestamp": self.version_timestamp,
            "created_at": self.created_at,
            "dimensions": self.dimensions,
            "format": self.format,
            "byte_size": self.byte_size,
        }


class RemoteInventoryScanner:
    """
    Paginates the store listing until the cursor comes back empty.

    There is no page cap and no caching between runs; any listing error is a
    fatal SCAN_FAILED for the whole scan.
    """

    def __init__(self, store: RemoteStore, config: StoreConfig, parser: Optional[IdentityParser] = None):
        self._store = store
        self._config = config
        self._parser = parser or IdentityParser()

    def _default_prefix(self) -> str:
        root = self._config.folder()
        return f"{root}/" if root else ""

    def to_asset(self, resource: Dict[str, Any]) -> RemoteAsset:
        parsed = self._parser.parse_resource(resource)
        created_at = str(resource.get("created_at") or "")
        return RemoteAsset(
            asset_id=str(resource.get("public_id") or ""),
            logical_key=parsed.key,
            family=parsed.family,
            version_timestamp=parsed.version_timestamp,
            created_at=created_at,
            created_ms=parse_iso_ms(created_at),
            width=safe_int(resource.get("width")),
            height=safe_int(resource.get("height")),
            format=str(resource.get("format") or ""),
            byte_size=safe_int(resource.get("bytes")),
            store_asset_id=resource.get("asset_id") or None,
            secure_url=str(resource.get("secure_url") or ""),
        )

    async def scan(self, prefix: Optional[str] = None) -> Result[List[RemoteAsset]]:
        folder_prefix = self._default_prefix() if prefix is None else prefix
        page_size = max(1, int(self._config.page_size))
        assets: List[RemoteAsset] = []
        seen: Set[str] = set()
        repeated = 0
        cursor: Optional[str] = None
        calls = 0

        while True:
            page_res = await self._store.list_assets(folder_prefix, page_size, cursor)
            calls += 1
            if not page_res.ok or page_res.data is None:
                logger.error(
                    "Inventory scan failed on page %d (prefix=%r): %s", calls, folder_prefix, page_res.error
                )
                return Result.Err(
                    ErrorCode.SCAN_FAILED,
                    page_res.error or "Listing failed",
                    cause=page_res.code,
                    pages=calls,
                )
            page = page_res.data
            for resource in page.assets:
                public_id = resource.get("public_id")
                if not public_id:
                    continue
                if public_id in seen:
                    # First copy wins.
                    repeated += 1
                    continue
                seen.add(public_id)
                assets.append(self.to_asset(resource))
            cursor = page.next_cursor or None
            if not cursor:
                break

        if repeated:
            logger.warning("Inventory scan: ignored %d repeated listing entries", repeated)
        logger.info("Inventory scan: %d assets under %r in %d page(s)", len(assets), folder_prefix, calls)
        return Result.Ok(assets, pages=calls, prefix=folder_prefix, repeated=repeated)
