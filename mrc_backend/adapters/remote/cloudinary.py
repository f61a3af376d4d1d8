"""
Cloudinary-compatible REST client (admin listing, lookup, destroy, upload).
"""
from __future__ import annotations

import asyncio
import hashlib
import time
from typing import Any, Dict, Optional
from urllib.parse import quote

from aiohttp import BasicAuth, ClientError, ClientSession, ClientTimeout, FormData

from ...config import StoreConfig
from ...shared import ErrorCode, Result, get_logger, sanitize_error_message
from .base import DELETE_NOT_FOUND, DELETE_OK, ListPage, normalize_resource

logger = get_logger(__name__)

RESOURCE_TYPE = "image"
DELIVERY_TYPE = "upload"


def sign_params(params: Dict[str, Any], api_secret: str) -> str:
    """Signature for upload-API calls: sha1 of sorted `k=v` pairs joined by `&`, plus the secret."""
    to_sign = "&".join(
        f"{key}={params[key]}" for key in sorted(params) if params[key] is not None and params[key] != ""
    )
    return hashlib.sha1(f"{to_sign}{api_secret}".encode("utf-8")).hexdigest()


def _error_message(payload: Any, status: int) -> str:
    if isinstance(payload, dict):
        err = payload.get("error")
        if isinstance(err, dict) and err.get("message"):
            return str(err.get("message"))
        if isinstance(err, str) and err:
            return err
    return f"HTTP {status}"


class CloudinaryStore:
    """
    Remote store backed by the Cloudinary REST API.

    All settings come from the `StoreConfig` given at construction time.
    """

    def __init__(self, config: StoreConfig):
        self._config = config

    @property
    def config(self) -> StoreConfig:
        return self._config

    def _url(self, *parts: str) -> str:
        base = f"{self._config.api_base.rstrip('/')}/{self._config.cloud_name}"
        return "/".join([base, *parts])

    def _auth(self) -> BasicAuth:
        return BasicAuth(self._config.api_key, self._config.api_secret)

    def _timeout(self) -> ClientTimeout:
        return ClientTimeout(total=float(self._config.request_timeout))

    def _signed(self, params: Dict[str, Any]) -> Dict[str, str]:
        stamped = dict(params)
        stamped["timestamp"] = str(int(time.time()))
        signature = sign_params(stamped, self._config.api_secret)
        out = {k: str(v) for k, v in stamped.items()}
        out["api_key"] = self._config.api_key
        out["signature"] = signature
        return out

    async def _request(self, method: str, url: str, **kwargs: Any) -> Result[Dict[str, Any]]:
        try:
            async with ClientSession() as session:
                async with session.request(method, url, timeout=self._timeout(), **kwargs) as resp:
                    status = int(resp.status)
                    try:
                        payload = await resp.json(content_type=None)
                    except (ClientError, ValueError):
                        payload = None
        except asyncio.TimeoutError:
            return Result.Err(ErrorCode.TIMEOUT, f"Remote store request timed out: {method} {url}")
        except ClientError as exc:
            return Result.Err(ErrorCode.REMOTE_ERROR, sanitize_error_message(exc, "Remote store request failed"))

        if status == 404:
            return Result.Err(ErrorCode.NOT_FOUND, _error_message(payload, status), status=status)
        if status < 200 or status >= 300:
            return Result.Err(ErrorCode.REMOTE_ERROR, _error_message(payload, status), status=status)
        if not isinstance(payload, dict):
            return Result.Err(ErrorCode.PARSE_ERROR, "Remote store returned a non-object payload", status=status)
        return Result.Ok(payload, status=status)

    async def list_assets(self, prefix: str, page_size: int, cursor: Optional[str] = None) -> Result[ListPage]:
        params: Dict[str, str] = {"max_results": str(int(page_size))}
        if prefix:
            params["prefix"] = prefix
        if cursor:
            params["next_cursor"] = cursor
        res = await self._request(
            "GET",
            self._url("resources", RESOURCE_TYPE, DELIVERY_TYPE),
            params=params,
            auth=self._auth(),
        )
        if not res.ok:
            return Result.Err(res.code, res.error or "Listing failed", **res.meta)
        payload = res.data or {}
        resources = payload.get("resources") or []
        return Result.Ok(
            ListPage(
                assets=[normalize_resource(r) for r in resources if isinstance(r, dict)],
                next_cursor=payload.get("next_cursor") or None,
            )
        )

    async def get_asset(self, asset_id: str) -> Result[Dict[str, Any]]:
        if not asset_id:
            return Result.Err(ErrorCode.INVALID_INPUT, "asset id is required")
        res = await self._request(
            "GET",
            self._url("resources", RESOURCE_TYPE, DELIVERY_TYPE, quote(asset_id, safe="/")),
            auth=self._auth(),
        )
        if not res.ok:
            return Result.Err(res.code, res.error or "Lookup failed", **res.meta)
        return Result.Ok(normalize_resource(res.data or {}))

    async def delete_asset(self, asset_id: str) -> Result[str]:
        if not asset_id:
            return Result.Err(ErrorCode.INVALID_INPUT, "asset id is required")
        res = await self._request(
            "POST",
            self._url(RESOURCE_TYPE, "destroy"),
            data=self._signed({"public_id": asset_id}),
        )
        if not res.ok:
            if res.code == ErrorCode.NOT_FOUND.value:
                return Result.Ok(DELETE_NOT_FOUND)
            return Result.Err(ErrorCode.DELETE_FAILED, res.error or "Delete failed", **res.meta)
        outcome = str((res.data or {}).get("result") or "").strip().lower()
        if outcome == "ok":
            return Result.Ok(DELETE_OK)
        if outcome in ("not found", "not_found"):
            return Result.Ok(DELETE_NOT_FOUND)
        return Result.Err(ErrorCode.DELETE_FAILED, f"Unexpected destroy result: {outcome or '<empty>'}")

    async def put_asset(self, content: bytes, content_type: str, folder: str, name: str) -> Result[Dict[str, Any]]:
        if not content:
            return Result.Err(ErrorCode.INVALID_INPUT, "upload content is empty")
        signed = self._signed({"folder": folder, "public_id": name, "overwrite": "false"})
        form = FormData()
        for key, value in signed.items():
            form.add_field(key, value)
        form.add_field("file", content, filename=name, content_type=content_type or "application/octet-stream")
        res = await self._request("POST", self._url(RESOURCE_TYPE, DELIVERY_TYPE), data=form)
        if not res.ok:
            return Result.Err(ErrorCode.UPLOAD_FAILED, res.error or "Upload failed", **res.meta)
        asset = normalize_resource(res.data or {})
        if not asset.get("public_id") or not asset.get("secure_url"):
            return Result.Err(ErrorCode.UPLOAD_FAILED, "Upload response missing public_id or secure_url")
        logger.debug("Uploaded %s", asset.get("public_id"))
        return Result.Ok(asset)
