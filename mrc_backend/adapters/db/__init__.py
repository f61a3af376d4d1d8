"""Document database adapters (aiosqlite)."""
from .documents import DocumentStore
from .schema import COLLECTIONS, ensure_collections
from .sqlite import Sqlite

__all__ = ["Sqlite", "DocumentStore", "COLLECTIONS", "ensure_collections"]
