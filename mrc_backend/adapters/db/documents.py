"""
JSON document helpers on top of the SQLite adapter.
"""
from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ...shared import ErrorCode, Result, get_logger
from .schema import is_safe_identifier
from .sqlite import Sqlite

logger = get_logger(__name__)


class DocumentStore:
    """
    Minimal document-collection API: whole-document put/get plus targeted
    JSON path updates. Collections must already exist (see `ensure_collections`).
    """

    def __init__(self, db: Sqlite):
        self._db = db

    @property
    def db(self) -> Sqlite:
        return self._db

    @staticmethod
    def _check_collection(collection: str) -> Optional[Result[Any]]:
        if not is_safe_identifier(collection):
            return Result.Err(ErrorCode.INVALID_INPUT, f"Invalid collection name: {collection!r}")
        return None

    async def put(self, collection: str, doc_id: str, doc: Dict[str, Any]) -> Result[bool]:
        bad = self._check_collection(collection)
        if bad:
            return bad
        try:
            payload = json.dumps(doc, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            return Result.Err(ErrorCode.INVALID_INPUT, f"Document is not JSON serializable: {exc}")
        res = await self._db.aexecute(
            f"INSERT OR REPLACE INTO {collection}(id, doc) VALUES (?, ?)",
            (str(doc_id), payload),
        )
        if not res.ok:
            return Result.Err(res.code, res.error or "Failed to store document")
        return Result.Ok(True)

    async def get(self, collection: str, doc_id: str) -> Result[Dict[str, Any]]:
        bad = self._check_collection(collection)
        if bad:
            return bad
        res = await self._db.aquery(f"SELECT doc FROM {collection} WHERE id = ?", (str(doc_id),))
        if not res.ok:
            return Result.Err(res.code, res.error or "Failed to read document")
        rows = res.data or []
        if not rows:
            return Result.Err(ErrorCode.NOT_FOUND, f"{collection}/{doc_id} not found")
        try:
            return Result.Ok(json.loads(rows[0]["doc"]))
        except (TypeError, ValueError) as exc:
            return Result.Err(ErrorCode.PARSE_ERROR, f"Corrupt document {collection}/{doc_id}: {exc}")

    async def extract(self, collection: str, doc_id: str, paths: Iterable[str]) -> Result[Dict[str, Any]]:
        """Read selected JSON paths of one document without loading the rest."""
        bad = self._check_collection(collection)
        if bad:
            return bad
        wanted = list(paths)
        if not wanted:
            return Result.Ok({})
        cols = ", ".join(f"json_extract(doc, ?) AS c{i}" for i in range(len(wanted)))
        res = await self._db.aquery(
            f"SELECT {cols} FROM {collection} WHERE id = ?",
            tuple(wanted) + (str(doc_id),),
        )
        if not res.ok:
            return Result.Err(res.code, res.error or "Failed to read document fields")
        rows = res.data or []
        if not rows:
            return Result.Err(ErrorCode.NOT_FOUND, f"{collection}/{doc_id} not found")
        row = rows[0]
        return Result.Ok({path: row.get(f"c{i}") for i, path in enumerate(wanted)})

    async def set_paths(
        self,
        collection: str,
        doc_id: str,
        values: List[Tuple[str, Any]],
        remove: Optional[List[str]] = None,
    ) -> Result[int]:
        """Set (and optionally remove) JSON paths of one document in a single statement."""
        bad = self._check_collection(collection)
        if bad:
            return bad
        if not values and not remove:
            return Result.Ok(0)
        expr = "doc"
        params: List[Any] = []
        if values:
            expr = "json_set(" + expr + "".join(", ?, ?" for _ in values) + ")"
            for path, value in values:
                params.extend([path, value])
        if remove:
            expr = "json_remove(" + expr + "".join(", ?" for _ in remove) + ")"
            params.extend(remove)
        params.append(str(doc_id))
        res = await self._db.aexecute(
            f"UPDATE {collection} SET doc = {expr}, "
            "updated_at = CAST(strftime('%s','now') AS INTEGER) WHERE id = ?",
            tuple(params),
        )
        if not res.ok:
            return Result.Err(res.code, res.error or "Failed to update document")
        if not res.data:
            return Result.Err(ErrorCode.NOT_FOUND, f"{collection}/{doc_id} not found")
        return Result.Ok(int(res.data))
