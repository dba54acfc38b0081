# src/cubit_connect/storage/kv_store.py

from __future__ import annotations

import asyncio
import contextlib
import logging
import sqlite3
import time
from pathlib import Path

logger = logging.getLogger(__name__)


class SqliteKeyValueStore:
    """
    SQLite-backed async key-value blob store.

    One table, one row per key, the value is an opaque BLOB. The async API runs
    the blocking sqlite calls in a worker thread.

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path = "cubit.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        logger.info("KeyValueStore ready db=%s", self._db_path)

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        with contextlib.suppress(sqlite3.DatabaseError):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value BLOB NOT NULL,
                    updated_at REAL NOT NULL
                )
                """
            )
            conn.commit()
        finally:
            conn.close()

    def _get_sync(self, key: str) -> bytes | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
            return bytes(row[0]) if row else None
        finally:
            conn.close()

    def _set_sync(self, key: str, value: bytes) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO kv(key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                """,
                (key, sqlite3.Binary(value), time.time()),
            )
            conn.commit()
            logger.debug("kv set key=%s bytes=%d", key, len(value))
        finally:
            conn.close()

    def _delete_sync(self, key: str) -> None:
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM kv WHERE key = ?", (key,))
            conn.commit()
            logger.debug("kv delete key=%s", key)
        finally:
            conn.close()

    # ---- public API ----

    async def get(self, key: str) -> bytes | None:
        return await asyncio.to_thread(self._get_sync, key)

    async def set(self, key: str, value: bytes) -> None:
        await asyncio.to_thread(self._set_sync, key, value)

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self._delete_sync, key)
