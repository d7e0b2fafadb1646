from __future__ import annotations

import sqlite3
import typing as tp
from pathlib import Path

import anyio
import anysqlite
import msgpack

from iconcache._core._kv._base import AsyncBaseKeyValueStore
from iconcache._exceptions import PersistenceError
from iconcache._utils import resolve_database_path


class AsyncSqliteKeyValueStore(AsyncBaseKeyValueStore):
    """
    Key-value store kept in a SQLite table, one row per (namespace, key).

    Values are packed with msgpack.
    """

    def __init__(
        self,
        *,
        connection: tp.Optional[anysqlite.Connection] = None,
        database_path: tp.Union[str, Path] = "iconcache.db",
    ) -> None:
        self.connection = connection
        self.database_path: Path = database_path if isinstance(database_path, Path) else Path(database_path)
        self._initialized = False
        self._lock = anyio.Lock()

    async def _ensure_connection(self) -> anysqlite.Connection:
        if self.connection is None:
            full_path = resolve_database_path(self.database_path)
            self.connection = await anysqlite.connect(str(full_path))
        if not self._initialized:
            cursor = await self.connection.cursor()
            await cursor.execute("""
                CREATE TABLE IF NOT EXISTS key_values (
                    namespace TEXT NOT NULL,
                    key TEXT NOT NULL,
                    value BLOB NOT NULL,
                    PRIMARY KEY (namespace, key)
                )
            """)
            await self.connection.commit()
            self._initialized = True
        return self.connection

    async def get(self, namespace: str, key: str) -> tp.Any:
        async with self._lock:
            try:
                connection = await self._ensure_connection()
                cursor = await connection.cursor()
                await cursor.execute(
                    "SELECT value FROM key_values WHERE namespace = ? AND key = ?",
                    (namespace, key),
                )
                row = await cursor.fetchone()
            except sqlite3.Error as exc:
                raise PersistenceError(f"Could not read {namespace}/{key}") from exc

        if row is None:
            return None
        return msgpack.unpackb(row[0])

    async def set(self, namespace: str, values: tp.Mapping[str, tp.Any]) -> None:
        async with self._lock:
            try:
                connection = await self._ensure_connection()
                cursor = await connection.cursor()
                for key, value in values.items():
                    await cursor.execute(
                        "INSERT OR REPLACE INTO key_values (namespace, key, value) VALUES (?, ?, ?)",
                        (namespace, key, msgpack.packb(value)),
                    )
                await connection.commit()
            except sqlite3.Error as exc:
                raise PersistenceError(f"Could not write namespace {namespace!r}") from exc

    async def close(self) -> None:
        if self.connection is not None:
            await self.connection.close()
            self.connection = None
            self._initialized = False
