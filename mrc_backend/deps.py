"""
Dependency injection - builds services.
Simple, debug-friendly DI without framework magic.
"""

from __future__ import annotations

from typing import Optional

from .adapters.db import DocumentStore, Sqlite, ensure_collections
from .adapters.remote import CloudinaryStore, RemoteStore
from .config import DB_PATH, DB_TIMEOUT, StoreConfig
from .features.duplicates import DuplicateGrouper, RetentionPolicy
from .features.health import UrlHealthVerifier
from .features.identity import IdentityParser
from .features.inventory import RemoteInventoryScanner
from .features.reconcile import Reconciler
from .features.references import LiveReferenceScanner
from .features.upload import ReferenceMigrator, UploadPipeline
from .shared import ErrorCode, Result, get_logger, log_success

logger = get_logger(__name__)


def _resolve_db_path(db_path: Optional[str]) -> str:
    return db_path if db_path is not None else DB_PATH


async def _init_db_or_error(db_path: str) -> Result[Sqlite]:
    logger.info(f"Initializing database: {db_path}")
    try:
        db = Sqlite(db_path, timeout=DB_TIMEOUT)
    except OSError as exc:
        logger.error("Failed to initialize database: %s", exc)
        return Result.Err(ErrorCode.DB_ERROR, f"Failed to initialize database: {exc}")
    schema_res = await ensure_collections(db)
    if not schema_res.ok:
        await db.aclose()
        return Result.Err(schema_res.code or ErrorCode.DB_ERROR, schema_res.error or "Schema setup failed")
    return Result.Ok(db)


def _resolve_store(store: Optional[RemoteStore], config: StoreConfig) -> Result[RemoteStore]:
    if store is not None:
        return Result.Ok(store)
    valid = config.validate()
    if not valid.ok:
        logger.error("Remote store not configured: %s", valid.error)
        return Result.Err(valid.code, valid.error or "Remote store not configured", **valid.meta)
    return Result.Ok(CloudinaryStore(config))


async def build_services(
    db_path: Optional[str] = None,
    store: Optional[RemoteStore] = None,
    config: Optional[StoreConfig] = None,
) -> Result[dict]:
    """
    Build all services (DI container).

    Args:
        db_path: Path to the SQLite document database (default: config.DB_PATH)
        store: Remote store implementation (default: Cloudinary client from `config`)
        config: Store settings (default: StoreConfig.from_env())

    Returns:
        Result[dict] of service instances
    """
    logger.info("Building services...")
    cfg = config or StoreConfig.from_env()

    store_res = _resolve_store(store, cfg)
    if not store_res.ok or store_res.data is None:
        return Result.Err(store_res.code, store_res.error or "Remote store unavailable", **store_res.meta)
    remote = store_res.data

    db_res = await _init_db_or_error(_resolve_db_path(db_path))
    if not db_res.ok or db_res.data is None:
        return Result.Err(db_res.code or ErrorCode.DB_ERROR, db_res.error or "Failed to initialize database")
    db = db_res.data

    parser = IdentityParser()
    documents = DocumentStore(db)
    inventory = RemoteInventoryScanner(remote, cfg, parser)
    references = LiveReferenceScanner(db, cfg)
    grouper = DuplicateGrouper(RetentionPolicy())
    uploader = UploadPipeline(remote, cfg)

    services = {
        "config": cfg,
        "db": db,
        "documents": documents,
        "store": remote,
        "parser": parser,
        "inventory": inventory,
        "references": references,
        "grouper": grouper,
        "reconciler": Reconciler(remote, inventory, references, grouper, cfg),
        "uploader": uploader,
        "migrator": ReferenceMigrator(documents, references, uploader, cfg),
        "verifier": UrlHealthVerifier(remote, cfg, references),
    }

    log_success(logger, "All services initialized")
    return Result.Ok(services)
