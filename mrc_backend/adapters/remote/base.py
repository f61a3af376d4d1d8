"""
Remote store boundary: the four calls the reconciler needs.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from ...shared import Result
from ...utils import safe_int

DELETE_OK = "ok"
DELETE_NOT_FOUND = "not_found"


@dataclass
class ListPage:
    assets: List[Dict[str, Any]] = field(default_factory=list)
    next_cursor: Optional[str] = None


class RemoteStore(Protocol):
    """
    Append-only media store.

    Implementations return `Result` and never raise. `delete_asset` yields
    `"ok"` or `"not_found"` on success; anything else is an error result.
    `get_asset` fails with code NOT_FOUND when the asset does not exist.
    """

    async def list_assets(self, prefix: str, page_size: int, cursor: Optional[str] = None) -> Result[ListPage]: ...

    async def get_asset(self, asset_id: str) -> Result[Dict[str, Any]]: ...

    async def delete_asset(self, asset_id: str) -> Result[str]: ...

    async def put_asset(self, content: bytes, content_type: str, folder: str, name: str) -> Result[Dict[str, Any]]: ...


def normalize_resource(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Project a store resource payload onto the fields the reconciler uses."""
    raw = raw or {}
    return {
        "public_id": str(raw.get("public_id") or ""),
        "asset_id": str(raw.get("asset_id") or "") or None,
        "created_at": raw.get("created_at") or "",
        "width": safe_int(raw.get("width")),
        "height": safe_int(raw.get("height")),
        "format": str(raw.get("format") or ""),
        "bytes": safe_int(raw.get("bytes")),
        "secure_url": str(raw.get("secure_url") or raw.get("url") or ""),
    }
