"""
Upload pipeline - the only producer of remote assets.

Every entity-scoped upload gets a fresh version stamp in its name, so a slot
is never overwritten; the Reconciler later sweeps the superseded copies.
"""
from __future__ import annotations

import io
import re
import secrets
from dataclasses import dataclass
from typing import Callable, Optional

from PIL import Image, UnidentifiedImageError

from ...adapters.remote import RemoteStore
from ...config import StoreConfig
from ...shared import ErrorCode, Result, get_logger, ms
from ..identity import entity_asset_name, sequence_asset_name

logger = get_logger(__name__)

GENERIC_CONTENT_TYPES = {"", "application/octet-stream", "binary/octet-stream"}
_ENTITY_ID_UNSAFE_RE = re.compile(r"[^A-Za-z0-9]")


@dataclass(frozen=True)
class UploadedAsset:
    asset_id: str
    canonical_url: str
    name: str
    folder: str


@dataclass(frozen=True)
class ContentProbe:
    format: str
    width: int
    height: int
    mime: str


def probe_image(content: bytes) -> Optional[ContentProbe]:
    """Identify image bytes with Pillow; None when the content is not a readable image."""
    if not content:
        return None
    try:
        with Image.open(io.BytesIO(content)) as im:
            fmt = str(im.format or "")
            width, height = im.size
    except (UnidentifiedImageError, OSError, ValueError):
        return None
    return ContentProbe(
        format=fmt.lower(),
        width=int(width),
        height=int(height),
        mime=Image.MIME.get(fmt.upper(), "") or "application/octet-stream",
    )


class UploadPipeline:
    def __init__(self, store: RemoteStore, config: StoreConfig, clock: Callable[[], int] = ms):
        self._store = store
        self._config = config
        self._clock = clock
        self._last_version = 0

    def next_version(self) -> int:
        """Millisecond stamp, strictly increasing within this pipeline."""
        stamp = int(self._clock())
        if stamp <= self._last_version:
            stamp = self._last_version + 1
        self._last_version = stamp
        return stamp

    def resolve_folder(self, folder: Optional[str]) -> str:
        """Relative folders land under the configured root; absolute ones are kept."""
        if not folder:
            return self._config.folder()
        folder = folder.strip("/")
        root = self._config.folder()
        if not root or folder == root or folder.startswith(f"{root}/"):
            return folder
        return self._config.folder(folder)

    @staticmethod
    def _content_type(content: bytes, content_type: Optional[str]) -> str:
        ctype = str(content_type or "").strip().lower()
        if ctype not in GENERIC_CONTENT_TYPES:
            return ctype
        probe = probe_image(content)
        return probe.mime if probe else "application/octet-stream"

    async def _put(self, content: bytes, content_type: Optional[str], folder: Optional[str], name: str) -> Result[UploadedAsset]:
        if not content:
            return Result.Err(ErrorCode.INVALID_INPUT, "Refusing to upload empty content")
        target = self.resolve_folder(folder)
        ctype = self._content_type(content, content_type)
        try:
            res = await self._store.put_asset(content, ctype, target, name)
        except Exception as exc:
            logger.error("Upload of %s raised: %s", name, exc)
            return Result.Err(ErrorCode.UPLOAD_FAILED, str(exc))
        if not res.ok or not res.data:
            logger.warning("Upload of %s/%s failed: %s", target, name, res.error)
            return Result.Err(ErrorCode.UPLOAD_FAILED, res.error or "Upload failed", cause=res.code)
        data = res.data
        uploaded = UploadedAsset(
            asset_id=str(data.get("public_id") or f"{target}/{name}"),
            canonical_url=str(data.get("secure_url") or ""),
            name=name,
            folder=target,
        )
        logger.info("Uploaded %s (%d bytes, %s)", uploaded.asset_id, len(content), ctype)
        return Result.Ok(uploaded)

    async def upload(self, content: bytes, content_type: Optional[str], folder: Optional[str], base_name: str) -> Result[UploadedAsset]:
        """Upload under `<base_name>_<version>`; `base_name` is the logical key of the slot."""
        if not base_name:
            return Result.Err(ErrorCode.INVALID_INPUT, "base_name is required")
        return await self._put(content, content_type, folder, f"{base_name}_{self.next_version()}")

    async def upload_entity(
        self,
        content: bytes,
        content_type: Optional[str],
        kind: str,
        entity_id: str,
        slot: int,
        folder: Optional[str] = None,
    ) -> Result[UploadedAsset]:
        safe_id = _ENTITY_ID_UNSAFE_RE.sub("", str(entity_id or ""))
        if not safe_id:
            return Result.Err(ErrorCode.INVALID_INPUT, f"Unusable entity id: {entity_id!r}")
        name = entity_asset_name(kind, safe_id, slot, self.next_version())
        return await self._put(content, content_type, folder, name)

    async def upload_sequence(
        self,
        content: bytes,
        content_type: Optional[str],
        kind: str,
        slot: int,
        folder: Optional[str] = None,
    ) -> Result[UploadedAsset]:
        name = sequence_asset_name(kind, slot, self.next_version())
        return await self._put(content, content_type, folder, name)

    async def upload_attachment(
        self,
        content: bytes,
        content_type: Optional[str],
        kind: str,
        entity_id: str,
        folder: Optional[str] = None,
    ) -> Result[UploadedAsset]:
        safe_id = _ENTITY_ID_UNSAFE_RE.sub("", str(entity_id or "")) or "anon"
        name = f"{kind}_{safe_id}_{self.next_version()}_{secrets.token_hex(4)}"
        return await self._put(content, content_type, folder, name)
