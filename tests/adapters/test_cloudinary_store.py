from __future__ import annotations

import asyncio
import hashlib

import pytest

import mrc_backend.adapters.remote.cloudinary as cloud_mod
from mrc_backend.adapters.remote import CloudinaryStore
from mrc_backend.adapters.remote.cloudinary import sign_params
from mrc_backend.shared import ErrorCode


class _Resp:
    def __init__(self, status, payload):
        self.status = status
        self._payload = payload

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def json(self, content_type=None):
        _ = content_type
        return self._payload


def _install(monkeypatch, handler):
    calls = []

    class _Session:
        async def __aenter__(self):
            return self

        async def __aexit__(self, exc_type, exc, tb):
            return False

        def request(self, method, url, timeout=None, **kwargs):
            _ = timeout
            calls.append({"method": method, "url": url, **kwargs})
            out = handler(method, url, kwargs)
            if isinstance(out, BaseException):
                raise out
            return _Resp(*out)

    monkeypatch.setattr(cloud_mod, "ClientSession", lambda: _Session())
    return calls


def test_sign_params_sorts_and_skips_empty_values():
    expected = hashlib.sha1(b"folder=looklyn&public_id=a&timestamp=10secret").hexdigest()
    assert sign_params({"timestamp": 10, "public_id": "a", "folder": "looklyn", "x": ""}, "secret") == expected


@pytest.mark.asyncio
async def test_list_assets_passes_cursor_and_normalizes(monkeypatch, store_config):
    calls = _install(
        monkeypatch,
        lambda m, u, kw: (
            200,
            {
                "resources": [
                    {
                        "public_id": "looklyn/p/a",
                        "asset_id": "abc",
                        "created_at": "2024-01-01T00:00:00Z",
                        "width": 1,
                        "height": 2,
                        "format": "jpg",
                        "bytes": 3,
                        "secure_url": "https://res.cloudinary.com/demo/image/upload/v1/looklyn/p/a.jpg",
                        "tags": ["ignored"],
                    }
                ],
                "next_cursor": "c2",
            },
        ),
    )

    res = await CloudinaryStore(store_config).list_assets("looklyn/", 500, "c1")

    assert res.ok, res.error
    assert res.data.next_cursor == "c2"
    assert res.data.assets[0]["public_id"] == "looklyn/p/a"
    assert "tags" not in res.data.assets[0]
    call = calls[0]
    assert call["method"] == "GET"
    assert call["url"] == "https://api.cloudinary.com/v1_1/demo/resources/image/upload"
    assert call["params"] == {"max_results": "500", "prefix": "looklyn/", "next_cursor": "c1"}


@pytest.mark.asyncio
async def test_list_assets_maps_http_errors(monkeypatch, store_config):
    _install(monkeypatch, lambda m, u, kw: (420, {"error": {"message": "Rate Limit Exceeded"}}))

    res = await CloudinaryStore(store_config).list_assets("looklyn/", 500)

    assert res.code == ErrorCode.REMOTE_ERROR
    assert res.error == "Rate Limit Exceeded"
    assert res.meta["status"] == 420


@pytest.mark.asyncio
async def test_timeout_is_reported(monkeypatch, store_config):
    _install(monkeypatch, lambda m, u, kw: asyncio.TimeoutError())

    res = await CloudinaryStore(store_config).get_asset("looklyn/p/a")

    assert res.code == ErrorCode.TIMEOUT


@pytest.mark.asyncio
async def test_get_asset_not_found(monkeypatch, store_config):
    calls = _install(monkeypatch, lambda m, u, kw: (404, {"error": {"message": "Resource not found"}}))

    res = await CloudinaryStore(store_config).get_asset("looklyn/p/a b")

    assert res.code == ErrorCode.NOT_FOUND
    assert calls[0]["url"].endswith("/resources/image/upload/looklyn/p/a%20b")


@pytest.mark.parametrize(
    "status, payload, ok, data",
    [
        (200, {"result": "ok"}, True, "ok"),
        (200, {"result": "not found"}, True, "not_found"),
        (404, {}, True, "not_found"),
        (200, {"result": "error"}, False, None),
        (500, {"error": {"message": "boom"}}, False, None),
    ],
)
@pytest.mark.asyncio
async def test_delete_asset_outcomes(monkeypatch, store_config, status, payload, ok, data):
    calls = _install(monkeypatch, lambda m, u, kw: (status, payload))

    res = await CloudinaryStore(store_config).delete_asset("looklyn/p/a")

    assert res.ok is ok
    if ok:
        assert res.data == data
    else:
        assert res.code == ErrorCode.DELETE_FAILED
    form = calls[0]["data"]
    assert form["public_id"] == "looklyn/p/a"
    assert form["api_key"] == "key"
    assert len(form["signature"]) == 40


@pytest.mark.asyncio
async def test_put_asset_returns_normalized_resource(monkeypatch, store_config):
    _install(
        monkeypatch,
        lambda m, u, kw: (
            200,
            {
                "public_id": "looklyn/products/product_A_0_1",
                "secure_url": "https://res.cloudinary.com/demo/image/upload/v1/looklyn/products/product_A_0_1.jpg",
            },
        ),
    )

    res = await CloudinaryStore(store_config).put_asset(b"x", "image/jpeg", "looklyn/products", "product_A_0_1")

    assert res.ok
    assert res.data["public_id"] == "looklyn/products/product_A_0_1"


@pytest.mark.asyncio
async def test_put_asset_failure(monkeypatch, store_config):
    _install(monkeypatch, lambda m, u, kw: (400, {"error": {"message": "Invalid image file"}}))

    res = await CloudinaryStore(store_config).put_asset(b"x", "image/jpeg", "looklyn", "n")

    assert res.code == ErrorCode.UPLOAD_FAILED
    assert res.error == "Invalid image file"
