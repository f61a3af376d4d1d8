"""
Move legacy references (embedded payloads, local upload paths) into the remote store.

Each entry is rewritten only after its own upload succeeded. Entries that
already point at the store are skipped, so an interrupted run can simply be
started again.
"""
from __future__ import annotations

import asyncio
import base64
import binascii
import logging
import mimetypes
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from ...adapters.db.documents import DocumentStore
from ...config import LOCAL_PATH_PREFIX, StoreConfig
from ...shared import ErrorCode, Result, get_logger, log_structured, log_success
from ...utils import strip_leading_slash
from ..references import ALL_SOURCES, LiveReference, LiveReferenceScanner, ReferenceSource
from .pipeline import UploadedAsset, UploadPipeline

logger = get_logger(__name__)

DEFAULT_INLINE_MIME = "image/jpeg"


@dataclass
class MigrationSummary:
    source: str
    migrated: int = 0
    skipped: int = 0
    failed: int = 0
    failures: List[Dict[str, str]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "migrated": self.migrated,
            "skipped": self.skipped,
            "failed": self.failed,
            "failures": list(self.failures),
        }


def decode_inline_payload(raw: str, fallback_mime: Optional[str] = None) -> Result[Tuple[bytes, str]]:
    """Decode a `data:<mime>;base64,<payload>` URI or a bare base64 string."""
    text = str(raw or "").strip()
    if not text:
        return Result.Err(ErrorCode.INVALID_INPUT, "Empty inline payload")
    mime = fallback_mime or DEFAULT_INLINE_MIME
    payload = text
    if text.startswith("data:"):
        header, sep, body = text.partition(",")
        if not sep:
            return Result.Err(ErrorCode.PARSE_ERROR, "Malformed data URI")
        meta = header[len("data:"):]
        if ";base64" not in meta:
            return Result.Err(ErrorCode.PARSE_ERROR, "Only base64 data URIs are supported")
        mime = meta.split(";", 1)[0] or mime
        payload = body
    try:
        content = base64.b64decode(payload, validate=False)
    except (binascii.Error, ValueError) as exc:
        return Result.Err(ErrorCode.PARSE_ERROR, f"Invalid base64 payload: {exc}")
    if not content:
        return Result.Err(ErrorCode.PARSE_ERROR, "Inline payload decoded to zero bytes")
    return Result.Ok((content, mime))


class ReferenceMigrator:
    def __init__(
        self,
        documents: DocumentStore,
        references: LiveReferenceScanner,
        pipeline: UploadPipeline,
        config: StoreConfig,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self._documents = documents
        self._references = references
        self._pipeline = pipeline
        self._config = config
        self._sleep = sleep

    def _local_file(self, url: str) -> Optional[Path]:
        rel = url[len(LOCAL_PATH_PREFIX):] if url.startswith(LOCAL_PATH_PREFIX) else strip_leading_slash(url)
        root = Path(self._config.uploads_dir).resolve()
        candidate = (root / rel).resolve()
        try:
            candidate.relative_to(root)
        except ValueError:
            return None
        return candidate

    async def _load_local(self, ref: LiveReference) -> Result[Tuple[bytes, str]]:
        path = self._local_file(ref.url or "")
        if path is None:
            return Result.Err(ErrorCode.INVALID_INPUT, f"Local path escapes the uploads directory: {ref.url}")
        if not path.is_file():
            return Result.Err(ErrorCode.NOT_FOUND, f"Local file missing: {ref.url}")
        try:
            content = await asyncio.to_thread(path.read_bytes)
        except OSError as exc:
            return Result.Err(ErrorCode.NOT_FOUND, f"Cannot read {ref.url}: {exc}")
        mime, _ = mimetypes.guess_type(path.name)
        return Result.Ok((content, mime or ""))

    async def _load_inline(self, source: ReferenceSource, ref: LiveReference) -> Result[Tuple[bytes, str]]:
        value_path = source.value_path(ref.position)
        data_path = f"{source.entry_path(ref.position)}.{source.inline_field}" if source.inline_field else None
        mime_path = f"{source.entry_path(ref.position)}.{source.mime_field}" if source.mime_field else None
        paths = [p for p in (value_path, data_path, mime_path) if p]
        res = await self._documents.extract(source.collection, ref.entity_id, paths)
        if not res.ok:
            return Result.Err(res.code, res.error or "Failed to read inline payload")
        values = res.data or {}
        raw = values.get(data_path) if data_path else None
        if not isinstance(raw, str) or not raw:
            raw = values.get(value_path)
        mime = values.get(mime_path) if mime_path else None
        if not isinstance(raw, str) or not raw:
            return Result.Err(ErrorCode.NOT_FOUND, f"Inline payload vanished at {ref.field_path}")
        return decode_inline_payload(raw, mime if isinstance(mime, str) and mime else None)

    async def _upload(self, source: ReferenceSource, ref: LiveReference, content: bytes, mime: str) -> Result[UploadedAsset]:
        folder = source.upload_folder or None
        if source.naming == "sequence":
            return await self._pipeline.upload_sequence(content, mime, source.name_kind, ref.position, folder)
        if source.naming == "attachment":
            return await self._pipeline.upload_attachment(content, mime, source.name_kind, ref.entity_id, folder)
        return await self._pipeline.upload_entity(content, mime, source.name_kind, ref.entity_id, ref.position, folder)

    async def _migrate_one(self, source: ReferenceSource, ref: LiveReference) -> Result[str]:
        if ref.kind == "inline":
            payload = await self._load_inline(source, ref)
        else:
            payload = await self._load_local(ref)
        if not payload.ok or payload.data is None:
            return Result.Err(payload.code, payload.error or "Payload unavailable")
        content, mime = payload.data

        up = await self._upload(source, ref, content, mime)
        if not up.ok or up.data is None:
            return Result.Err(up.code, up.error or "Upload failed")

        remove = list(source.inline_paths(ref.position)) if source.inline_field else None
        write = await self._documents.set_paths(
            source.collection,
            ref.entity_id,
            [(source.value_path(ref.position), up.data.canonical_url)],
            remove=remove,
        )
        if not write.ok:
            # The uploaded copy stays behind as an unreferenced asset for the next report.
            logger.error("Uploaded %s but failed to record it: %s", up.data.asset_id, write.error)
            return Result.Err(write.code, write.error or "Reference update failed")
        return Result.Ok(up.data.canonical_url)

    async def migrate(self, source: ReferenceSource) -> Result[MigrationSummary]:
        scan = await self._references.scan_source(source)
        if not scan.ok:
            return Result.Err(scan.code, scan.error or "Reference scan failed", **scan.meta)

        summary = MigrationSummary(source=source.name)
        delay = max(0.0, float(self._config.upload_delay))
        attempted = 0
        for ref in scan.data or []:
            if ref.kind not in ("inline", "local"):
                summary.skipped += 1
                continue
            if attempted and delay:
                await self._sleep(delay)
            attempted += 1
            res = await self._migrate_one(source, ref)
            if res.ok:
                summary.migrated += 1
                logger.info("Migrated %s/%s %s", source.collection, ref.entity_id, ref.field_path)
            else:
                summary.failed += 1
                summary.failures.append(
                    {"entity_id": ref.entity_id, "field_path": ref.field_path, "error": str(res.error or res.code)}
                )
                logger.warning(
                    "Kept original value of %s/%s %s: %s", source.collection, ref.entity_id, ref.field_path, res.error
                )

        log_structured(logger, logging.INFO, "migration.source", **summary.to_dict())
        if not summary.failed:
            log_success(logger, f"{source.name}: migrated={summary.migrated} skipped={summary.skipped}")
        return Result.Ok(summary)

    async def migrate_all(self, sources: Optional[List[ReferenceSource]] = None) -> Result[List[MigrationSummary]]:
        out: List[MigrationSummary] = []
        for source in sources or list(ALL_SOURCES):
            res = await self.migrate(source)
            if not res.ok or res.data is None:
                return Result.Err(res.code, res.error or f"Migration of {source.name} failed", summaries=out)
            out.append(res.data)
        return Result.Ok(out)
