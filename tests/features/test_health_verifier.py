from __future__ import annotations

import pytest
from aiohttp import ClientConnectionError

import mrc_backend.features.health.verifier as verifier_mod
from mrc_backend.adapters.db import DocumentStore
from mrc_backend.features.health import UrlHealthVerifier, classify_health, migration_status
from mrc_backend.features.references import LiveReferenceScanner
from mrc_backend.shared import ErrorCode, Result
from tests.fakes import FakeStore, delivery_url, resource

LIVE = "looklyn/products/product_A_0_1"
GONE = "looklyn/products/product_A_0_2"


def _install_fake_http(monkeypatch, statuses):
    class _Resp:
        def __init__(self, status):
            self.status = status

        async def __aenter__(self):
            return self

        async def __aexit__(self, exc_type, exc, tb):
            return False

    class _Session:
        async def __aenter__(self):
            return self

        async def __aexit__(self, exc_type, exc, tb):
            return False

        def get(self, url, timeout=None, allow_redirects=True):
            _ = (timeout, allow_redirects)
            status = statuses.get(url, 200)
            if isinstance(status, Exception):
                raise status
            return _Resp(status)

    monkeypatch.setattr(verifier_mod, "ClientSession", lambda: _Session())


@pytest.mark.parametrize(
    "accessible, exists, expected",
    [
        (True, True, "healthy"),
        (False, False, "remote-404"),
        (True, False, "unknown"),
        (False, True, "unknown"),
        (True, None, "unknown"),
    ],
)
def test_classify_health(accessible, exists, expected):
    assert classify_health(accessible, exists) == expected


@pytest.mark.asyncio
async def test_verify_healthy_and_missing(monkeypatch, store_config):
    store = FakeStore([resource(LIVE)])
    _install_fake_http(monkeypatch, {delivery_url(GONE): 404})
    verifier = UrlHealthVerifier(store, store_config)

    ok = await verifier.verify(delivery_url(LIVE))
    gone = await verifier.verify(delivery_url(GONE))

    assert ok.data.verdict == "healthy"
    assert ok.data.asset_id == LIVE
    assert gone.data.verdict == "remote-404"
    assert gone.data.status == 404
    assert gone.data.exists_in_store is False


@pytest.mark.asyncio
async def test_disagreement_is_unknown(monkeypatch, store_config):
    store = FakeStore([resource(LIVE)])
    _install_fake_http(monkeypatch, {delivery_url(LIVE): ClientConnectionError("reset")})

    res = await UrlHealthVerifier(store, store_config).verify(delivery_url(LIVE))

    assert res.data.verdict == "unknown"
    assert res.data.accessible is False
    assert res.data.exists_in_store is True


@pytest.mark.asyncio
async def test_store_lookup_error_is_unknown(monkeypatch, store_config):
    class _BrokenStore(FakeStore):
        async def get_asset(self, asset_id):
            return Result.Err(ErrorCode.REMOTE_ERROR, "Rate limit exceeded")

    _install_fake_http(monkeypatch, {})
    res = await UrlHealthVerifier(_BrokenStore(), store_config).verify(delivery_url(LIVE))

    assert res.data.verdict == "unknown"
    assert "Rate limit" in res.data.reason


@pytest.mark.asyncio
async def test_unextractable_url_is_unknown(monkeypatch, store_config):
    _install_fake_http(monkeypatch, {})
    res = await UrlHealthVerifier(FakeStore(), store_config).verify("https://images.example.com/a.jpg")

    assert res.data.asset_id is None
    assert res.data.verdict == "unknown"


@pytest.mark.asyncio
async def test_empty_url_is_invalid(store_config):
    res = await UrlHealthVerifier(FakeStore(), store_config).verify("  ")
    assert res.code == ErrorCode.INVALID_INPUT


@pytest.mark.asyncio
async def test_verify_references_reports_problems_with_their_documents(monkeypatch, db, store_config):
    store = FakeStore([resource(LIVE)])
    _install_fake_http(monkeypatch, {delivery_url(GONE): 404})
    await DocumentStore(db).put(
        "products",
        "A",
        {"gallery": [{"url": delivery_url(LIVE)}, {"url": delivery_url(GONE)}, {"url": "/uploads/x.jpg"}]},
    )
    verifier = UrlHealthVerifier(store, store_config, LiveReferenceScanner(db, store_config))

    res = await verifier.verify_references()

    assert res.ok, res.error
    summary = res.data
    assert (summary.checked, summary.healthy, summary.remote_404, summary.unknown) == (2, 1, 1, 0)
    (problem,) = summary.problems
    assert problem["entity_id"] == "A"
    assert problem["field_path"] == "gallery[1].url"
    assert problem["verdict"] == "remote-404"


@pytest.mark.asyncio
async def test_migration_status_counts_pending_entries(db, store_config):
    await DocumentStore(db).put(
        "products",
        "A",
        {"gallery": [{"url": delivery_url(LIVE)}, {"url": "/uploads/x.jpg"}, {"url": "data:image/png;base64,AA"}]},
    )
    refs = (await LiveReferenceScanner(db, store_config).scan_references()).data

    status = migration_status(refs)

    assert status["totals"] == {"remote": 1, "inline": 1, "local": 1, "external": 0}
    assert status["pending_migration"] == 2
    assert status["complete"] is False
    assert status["progress_percent"] == pytest.approx(33.3)
    assert status["sources"]["product_gallery"]["remote"] == 1


def test_migration_status_with_no_references():
    status = migration_status([])
    assert status["complete"] is True
    assert status["progress_percent"] == 100.0
