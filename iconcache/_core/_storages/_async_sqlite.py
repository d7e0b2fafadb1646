from __future__ import annotations

import logging
import sqlite3
from dataclasses import replace
from pathlib import Path
from typing import List, Optional, Union

import anyio
import anysqlite

from iconcache._core._storages._async_base import DEFAULT_NAMESPACE, AsyncBaseStorage
from iconcache._core._storages._packing import pack, unpack
from iconcache._core.models import Entry
from iconcache._exceptions import PersistenceError
from iconcache._utils import resolve_database_path

logger = logging.getLogger("iconcache.storages")


class AsyncSqliteStorage(AsyncBaseStorage):
    """
    Icon storage backed by a SQLite database.

    :param connection: An already opened connection. When given, ``database_path`` is ignored
        and no cache directory is created.
    :param database_path: Where to create the database when no connection is given. A bare
        file name is placed inside ``.cache/iconcache``.
    :param namespace: The cache namespace this storage reads and writes.
    """

    def __init__(
        self,
        *,
        connection: Optional[anysqlite.Connection] = None,
        database_path: Union[str, Path] = "iconcache.db",
        namespace: str = DEFAULT_NAMESPACE,
    ) -> None:
        super().__init__(namespace)
        self.connection = connection
        self.database_path: Path = database_path if isinstance(database_path, Path) else Path(database_path)
        self._initialized = False
        self._lock = anyio.Lock()

    async def _ensure_connection(self) -> anysqlite.Connection:
        """Ensure connection is established and database is initialized."""
        if self.connection is None:
            full_path = resolve_database_path(self.database_path)
            self.connection = await anysqlite.connect(str(full_path))
        if not self._initialized:
            await self._initialize_database()
            self._initialized = True
        return self.connection

    async def _initialize_database(self) -> None:
        assert self.connection is not None
        cursor = await self.connection.cursor()

        # Headers and status live in `data`, the payload is kept apart as a plain blob
        await cursor.execute("""
            CREATE TABLE IF NOT EXISTS icons (
                namespace TEXT NOT NULL,
                cache_key TEXT NOT NULL,
                data BLOB NOT NULL,
                body BLOB NOT NULL,
                stored_at REAL NOT NULL,
                PRIMARY KEY (namespace, cache_key)
            )
        """)
        await self.connection.commit()

    async def get(self, key: str) -> Optional[Entry]:
        async with self._lock:
            try:
                connection = await self._ensure_connection()
                cursor = await connection.cursor()
                await cursor.execute(
                    "SELECT data, body FROM icons WHERE namespace = ? AND cache_key = ?",
                    (self.namespace, key),
                )
                row = await cursor.fetchone()
            except sqlite3.Error as exc:
                raise PersistenceError(f"Could not read icon {key!r}") from exc

        if row is None:
            return None
        return unpack(row[0], row[1])

    async def put(self, key: str, entry: Entry) -> None:
        body = await entry.response.aread()
        entry = replace(entry, key=key)

        async with self._lock:
            try:
                connection = await self._ensure_connection()
                cursor = await connection.cursor()
                await cursor.execute(
                    "DELETE FROM icons WHERE namespace = ? AND cache_key = ?",
                    (self.namespace, key),
                )
                await cursor.execute(
                    "INSERT INTO icons (namespace, cache_key, data, body, stored_at) VALUES (?, ?, ?, ?, ?)",
                    (self.namespace, key, pack(entry), body, entry.stored_at),
                )
                await connection.commit()
            except sqlite3.Error as exc:
                raise PersistenceError(f"Could not store icon {key!r}") from exc
        logger.debug(f"Stored icon under {key}")

    async def delete(self, key: str) -> None:
        async with self._lock:
            try:
                connection = await self._ensure_connection()
                cursor = await connection.cursor()
                await cursor.execute(
                    "DELETE FROM icons WHERE namespace = ? AND cache_key = ?",
                    (self.namespace, key),
                )
                await connection.commit()
            except sqlite3.Error as exc:
                raise PersistenceError(f"Could not delete icon {key!r}") from exc

    async def list_keys(self) -> List[str]:
        async with self._lock:
            try:
                connection = await self._ensure_connection()
                cursor = await connection.cursor()
                await cursor.execute(
                    "SELECT cache_key FROM icons WHERE namespace = ? ORDER BY stored_at",
                    (self.namespace,),
                )
                rows = await cursor.fetchall()
            except sqlite3.Error as exc:
                raise PersistenceError("Could not list stored icons") from exc
        return [row[0] for row in rows]

    async def close(self) -> None:
        if self.connection is not None:
            await self.connection.close()
            self.connection = None
            self._initialized = False
