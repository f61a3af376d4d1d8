import sys

import pytest
import pytest_asyncio

from .repo_root import REPO_ROOT

if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


@pytest.fixture
def store_config(tmp_path):
    from mrc_backend.config import StoreConfig

    return StoreConfig(
        cloud_name="demo",
        api_key="key",
        api_secret="secret",
        root_folder="looklyn",
        page_size=500,
        delete_delay=0.0,
        upload_delay=0.0,
        uploads_dir=str(tmp_path / "uploads"),
    )


@pytest.fixture
def fake_store():
    from tests.fakes import FakeStore

    return FakeStore()


@pytest_asyncio.fixture
async def db(tmp_path):
    from mrc_backend.adapters.db import Sqlite, ensure_collections

    database = Sqlite(str(tmp_path / "docs.db"))
    res = await ensure_collections(database)
    assert res.ok, res.error
    try:
        yield database
    finally:
        await database.aclose()


@pytest_asyncio.fixture
async def services(tmp_path, fake_store, store_config):
    from mrc_backend.deps import build_services

    svc_res = await build_services(str(tmp_path / "services.db"), store=fake_store, config=store_config)
    assert svc_res.ok, svc_res.error
    svc = svc_res.data
    try:
        yield svc
    finally:
        await svc["db"].aclose()
