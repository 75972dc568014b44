"""SQLite-backed key-value store."""

import asyncio
import logging
import sqlite3
from pathlib import Path

from microlearn.exceptions import PersistenceUnavailableError

logger = logging.getLogger(__name__)


class SQLiteKeyValueStore:
    """Persistent key-value store in a single SQLite table.

    Implements the KeyValueStore protocol. Blocking sqlite3 calls run in a
    worker thread so they never stall the event loop.

    Thread Safety:
        Each operation opens its own sqlite3.Connection, which is safe
        from any worker thread.
    """

    def __init__(self, db_path: Path):
        """Initialize the store.

        Args:
            db_path: Path to the SQLite database file
        """
        self._db_path = db_path

    @property
    def db_path(self) -> Path:
        return self._db_path

    def initialize(self) -> None:
        """Create the database and table if they don't exist.

        Raises:
            PersistenceUnavailableError: If the database cannot be created
        """
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self._db_path))
            try:
                conn.execute(
                    "CREATE TABLE IF NOT EXISTS kv_store ("
                    "key TEXT PRIMARY KEY, "
                    "value TEXT NOT NULL, "
                    "updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP"
                    ")"
                )
                conn.commit()
            finally:
                conn.close()
        except (sqlite3.Error, OSError) as e:
            raise PersistenceUnavailableError(f"Cannot open store at {self._db_path}: {e}") from e
        logger.info(f"Key-value store initialized at {self._db_path}")

    async def get(self, key: str) -> str | None:
        return await asyncio.to_thread(self._get, key)

    async def set(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._set, key, value)

    async def remove(self, key: str) -> None:
        await asyncio.to_thread(self._multi_remove, [key])

    async def multi_remove(self, keys: list[str]) -> None:
        if not keys:
            return
        await asyncio.to_thread(self._multi_remove, list(keys))

    async def list_keys(self) -> list[str]:
        return await asyncio.to_thread(self._list_keys)

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(str(self._db_path))

    def _get(self, key: str) -> str | None:
        try:
            conn = self._connect()
            try:
                row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise PersistenceUnavailableError(f"Failed to read {key!r}: {e}") from e
        return row[0] if row else None

    def _set(self, key: str, value: str) -> None:
        try:
            conn = self._connect()
            try:
                conn.execute(
                    "INSERT INTO kv_store (key, value, updated_at) "
                    "VALUES (?, ?, CURRENT_TIMESTAMP) "
                    "ON CONFLICT(key) DO UPDATE SET "
                    "value = excluded.value, updated_at = excluded.updated_at",
                    (key, value),
                )
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise PersistenceUnavailableError(f"Failed to write {key!r}: {e}") from e

    def _multi_remove(self, keys: list[str]) -> None:
        try:
            conn = self._connect()
            try:
                conn.executemany("DELETE FROM kv_store WHERE key = ?", [(k,) for k in keys])
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise PersistenceUnavailableError(f"Failed to remove {len(keys)} keys: {e}") from e

    def _list_keys(self) -> list[str]:
        try:
            conn = self._connect()
            try:
                rows = conn.execute("SELECT key FROM kv_store ORDER BY key").fetchall()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise PersistenceUnavailableError(f"Failed to list keys: {e}") from e
        return [row[0] for row in rows]
