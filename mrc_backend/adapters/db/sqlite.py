"""
SQLite database connection manager.

Implementation note:
- This adapter uses `aiosqlite` and exposes async methods only.
- One connection per adapter; writes are serialized behind an asyncio lock.

Critical guarantee:
- The adapter never raises to callers; it returns `Result(...)`.
"""

from __future__ import annotations

import asyncio
import random
import sqlite3
from pathlib import Path
from typing import Any, Dict, List, Optional

import aiosqlite

from ...config import DB_TIMEOUT
from ...shared import ErrorCode, Result, get_logger

logger = get_logger(__name__)

SQLITE_BUSY_TIMEOUT_MS = max(1000, int(float(DB_TIMEOUT) * 1000))


class Sqlite:
    """
    Async SQLite adapter (aiosqlite-backed) used as the document database.
    """

    def __init__(self, db_path: str, timeout: float = DB_TIMEOUT):
        self.db_path = Path(db_path)
        self._timeout = float(timeout)
        self._conn: Optional[aiosqlite.Connection] = None
        self._init_lock = asyncio.Lock()
        self._write_lock = asyncio.Lock()
        self._lock_retry_attempts = 6
        self._lock_retry_base_seconds = 0.05
        self._lock_retry_max_seconds = 0.75

        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def _is_locked_error(exc: Exception) -> bool:
        msg = str(exc).lower()
        return "database is locked" in msg or "database table is locked" in msg or "busy" in msg

    @staticmethod
    def _is_write_sql(query: str) -> bool:
        q = str(query or "").lstrip()
        if not q:
            return False
        head = q.split(None, 1)[0].upper()
        return head not in ("SELECT", "PRAGMA", "WITH", "EXPLAIN")

    async def _sleep_backoff(self, attempt: int):
        base = float(self._lock_retry_base_seconds)
        max_s = float(self._lock_retry_max_seconds)
        delay = min(max_s, base * (2 ** max(0, attempt)))
        delay = delay + (random.random() * 0.03)
        logger.debug("DB lock backoff: attempt=%d delay=%.3fs", int(attempt), float(delay))
        await asyncio.sleep(delay)

    async def _apply_connection_pragmas(self, conn: aiosqlite.Connection):
        await conn.execute("PRAGMA journal_mode=WAL")
        await conn.execute("PRAGMA synchronous=NORMAL")
        await conn.execute(f"PRAGMA busy_timeout = {SQLITE_BUSY_TIMEOUT_MS}")

    async def _ensure_connection(self) -> aiosqlite.Connection:
        if self._conn is not None:
            return self._conn
        async with self._init_lock:
            if self._conn is None:
                conn = await aiosqlite.connect(str(self.db_path), timeout=self._timeout)
                conn.row_factory = sqlite3.Row
                await self._apply_connection_pragmas(conn)
                self._conn = conn
                logger.info("Database initialized: %s", self.db_path)
        return self._conn

    @staticmethod
    def _rows_to_dicts(rows: Any) -> List[Dict[str, Any]]:
        if not rows:
            return []
        return [dict(r) for r in rows]

    async def _execute_with_retry(self, conn: aiosqlite.Connection, query: str, params: Optional[tuple], fetch: bool) -> Result[Any]:
        for attempt in range(self._lock_retry_attempts + 1):
            try:
                cursor = await conn.execute(query, params or ())
                try:
                    if fetch:
                        rows = await cursor.fetchall()
                        return Result.Ok(self._rows_to_dicts(rows))
                    await conn.commit()
                    rowcount = getattr(cursor, "rowcount", None)
                    return Result.Ok(rowcount if rowcount is not None else 0)
                finally:
                    await cursor.close()
            except sqlite3.OperationalError as exc:
                if self._is_locked_error(exc) and attempt < self._lock_retry_attempts:
                    await self._sleep_backoff(attempt)
                    continue
                raise
        return Result.Err(ErrorCode.DB_ERROR, "Query failed after retries")

    async def aexecute(self, query: str, params: Optional[tuple] = None, fetch: bool = False) -> Result[Any]:
        """Execute one SQL statement; rows for `fetch=True`, else the affected row count."""
        try:
            conn = await self._ensure_connection()
            if self._is_write_sql(query):
                async with self._write_lock:
                    return await self._execute_with_retry(conn, query, params, fetch)
            return await self._execute_with_retry(conn, query, params, fetch)
        except sqlite3.IntegrityError as exc:
            logger.warning("Integrity error: %s", exc)
            return Result.Err(ErrorCode.DB_ERROR, f"Integrity error: {exc}")
        except sqlite3.OperationalError as exc:
            logger.error("Operational error: %s", exc)
            return Result.Err(ErrorCode.DB_ERROR, f"Operational error: {exc}")
        except Exception as exc:
            logger.error("Unexpected database error: %s", exc)
            return Result.Err(ErrorCode.DB_ERROR, str(exc))

    async def aquery(self, sql: str, params: Optional[tuple] = None) -> Result[List[Dict[str, Any]]]:
        """Execute a SELECT query and return rows (async)."""
        return await self.aexecute(sql, params, fetch=True)

    async def aexecutescript(self, script: str) -> Result[bool]:
        """Execute a multi-statement SQL script (async)."""
        try:
            conn = await self._ensure_connection()
            async with self._write_lock:
                await conn.executescript(script)
                await conn.commit()
            return Result.Ok(True)
        except Exception as exc:
            logger.error("Script execution error: %s", exc)
            return Result.Err(ErrorCode.DB_ERROR, str(exc))

    async def ahas_table(self, table_name: str) -> bool:
        """Return True if `table_name` exists in sqlite_master (async)."""
        result = await self.aexecute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name = ?",
            (table_name,),
            fetch=True,
        )
        return bool(result.ok and result.data and len(result.data) > 0)

    async def aclose(self):
        """Close the underlying connection (async)."""
        conn, self._conn = self._conn, None
        if conn is None:
            return
        try:
            await conn.close()
        except Exception as exc:
            logger.warning("Failed to close database: %s", exc)
