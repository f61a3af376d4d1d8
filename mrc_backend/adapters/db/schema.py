"""
Document collections schema.

Each collection is a table of JSON documents keyed by id. Reference fields are
read through `json_each` / `json_extract` projections, so no per-field columns
are declared here.
"""
import re
from typing import Tuple

from ...shared import ErrorCode, Result, get_logger, log_success
from .sqlite import Sqlite

logger = get_logger(__name__)

CURRENT_SCHEMA_VERSION = 1

COLLECTIONS: Tuple[str, ...] = ("products", "slideshow", "orders", "reviews")

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

SCHEMA_META = """
CREATE TABLE IF NOT EXISTS metadata (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""

COLLECTION_TEMPLATE = """
CREATE TABLE IF NOT EXISTS {name} (
    id TEXT PRIMARY KEY,
    doc TEXT NOT NULL CHECK (json_valid(doc)),
    updated_at INTEGER NOT NULL DEFAULT (CAST(strftime('%s','now') AS INTEGER))
);
"""


def is_safe_identifier(value: str) -> bool:
    return bool(_IDENTIFIER_RE.match(str(value or "")))


def collection_ddl(name: str) -> str:
    if not is_safe_identifier(name):
        raise ValueError(f"Invalid collection name: {name!r}")
    return COLLECTION_TEMPLATE.format(name=name)


async def ensure_collections(db: Sqlite) -> Result[bool]:
    """Create the metadata table and every known collection if missing."""
    script = SCHEMA_META + "".join(collection_ddl(name) for name in COLLECTIONS)
    res = await db.aexecutescript(script)
    if not res.ok:
        logger.error("Schema creation failed: %s", res.error)
        return Result.Err(res.code or ErrorCode.DB_ERROR, f"Failed to create collections: {res.error}")
    ver = await db.aexecute(
        "INSERT OR REPLACE INTO metadata(key, value) VALUES ('schema_version', ?)",
        (str(CURRENT_SCHEMA_VERSION),),
    )
    if not ver.ok:
        return Result.Err(ver.code, ver.error or "Failed to record schema version")
    log_success(logger, f"Collections ready ({', '.join(COLLECTIONS)})")
    return Result.Ok(True)
