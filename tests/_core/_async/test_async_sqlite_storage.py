from pathlib import Path
from unittest.mock import patch

import anysqlite
import pytest

from iconcache import AsyncSqliteStorage, Entry, Headers, PersistenceError, Response
from iconcache._utils import make_async_iterator


def create_entry(key: str = "https://example.com/favicon.ico", body: bytes = b"icon", stored_at: float = 1.0) -> Entry:
    return Entry(
        key=key,
        response=Response(
            status_code=200,
            headers=Headers({"Content-Type": "image/x-icon", "Date": "Mon, 01 Jan 2024 00:00:00 GMT"}),
            stream=make_async_iterator([body]),
            url=key,
            metadata={"iconcache_stored": True, "source": "network"},
        ),
        stored_at=stored_at,
    )


@pytest.mark.anyio
async def test_custom_connection_does_not_create_directory() -> None:
    with patch("iconcache._core._storages._async_sqlite.resolve_database_path") as mock_resolve:
        storage = AsyncSqliteStorage(connection=await anysqlite.connect(":memory:"))
        await storage.put("https://example.com/favicon.ico", create_entry())

        mock_resolve.assert_not_called()


@pytest.mark.anyio
async def test_default_database_location(use_temp_dir) -> None:
    storage = AsyncSqliteStorage()
    await storage.put("https://example.com/favicon.ico", create_entry())
    await storage.close()

    assert Path(".cache/iconcache/iconcache.db").is_file()
    assert Path(".cache/iconcache/.gitignore").is_file()


@pytest.mark.anyio
async def test_put_and_get() -> None:
    storage = AsyncSqliteStorage(connection=await anysqlite.connect(":memory:"))

    await storage.put("https://example.com/favicon.ico", create_entry(body=b"\x00\x01icon", stored_at=1704067200.0))
    entry = await storage.get("https://example.com/favicon.ico")

    assert entry is not None
    assert entry.key == "https://example.com/favicon.ico"
    assert entry.stored_at == 1704067200.0
    assert entry.response.status_code == 200
    assert entry.response.url == "https://example.com/favicon.ico"
    assert entry.response.headers == Headers(
        {"Content-Type": "image/x-icon", "Date": "Mon, 01 Jan 2024 00:00:00 GMT"}
    )
    assert entry.response.metadata == {"source": "network"}
    assert await entry.response.aread() == b"\x00\x01icon"


@pytest.mark.anyio
async def test_get_missing_key() -> None:
    storage = AsyncSqliteStorage(connection=await anysqlite.connect(":memory:"))

    assert await storage.get("https://example.com/favicon.ico") is None


@pytest.mark.anyio
async def test_put_uses_the_given_key() -> None:
    storage = AsyncSqliteStorage(connection=await anysqlite.connect(":memory:"))

    await storage.put("https://cdn.example.com/fav.ico", create_entry(key="https://example.com/favicon.ico"))

    entry = await storage.get("https://cdn.example.com/fav.ico")
    assert entry is not None
    assert entry.key == "https://cdn.example.com/fav.ico"
    assert await storage.get("https://example.com/favicon.ico") is None


@pytest.mark.anyio
async def test_put_replaces_the_previous_entry() -> None:
    storage = AsyncSqliteStorage(connection=await anysqlite.connect(":memory:"))

    await storage.put("https://example.com/favicon.ico", create_entry(body=b"old"))
    await storage.put("https://example.com/favicon.ico", create_entry(body=b"new", stored_at=2.0))

    entry = await storage.get("https://example.com/favicon.ico")
    assert entry is not None
    assert await entry.response.aread() == b"new"
    assert await storage.list_keys() == ["https://example.com/favicon.ico"]


@pytest.mark.anyio
async def test_delete_and_list_keys() -> None:
    storage = AsyncSqliteStorage(connection=await anysqlite.connect(":memory:"))

    await storage.put("https://b.example.com/i.ico", create_entry(stored_at=2.0))
    await storage.put("https://a.example.com/i.ico", create_entry(stored_at=1.0))
    await storage.put("https://c.example.com/i.ico", create_entry(stored_at=3.0))

    assert await storage.list_keys() == [
        "https://a.example.com/i.ico",
        "https://b.example.com/i.ico",
        "https://c.example.com/i.ico",
    ]

    await storage.delete("https://b.example.com/i.ico")
    await storage.delete("https://unknown.example.com/i.ico")

    assert await storage.list_keys() == ["https://a.example.com/i.ico", "https://c.example.com/i.ico"]
    assert await storage.get("https://b.example.com/i.ico") is None


@pytest.mark.anyio
async def test_namespaces_are_isolated() -> None:
    connection = await anysqlite.connect(":memory:")
    current = AsyncSqliteStorage(connection=connection)
    legacy = AsyncSqliteStorage(connection=connection, namespace="iconcache-icons-v0")

    await legacy.put("https://example.com/favicon.ico", create_entry(body=b"legacy"))

    assert await current.get("https://example.com/favicon.ico") is None
    assert await current.list_keys() == []
    assert await legacy.list_keys() == ["https://example.com/favicon.ico"]

    await current.delete("https://example.com/favicon.ico")
    assert await legacy.get("https://example.com/favicon.ico") is not None


@pytest.mark.anyio
async def test_backend_errors_are_wrapped() -> None:
    connection = await anysqlite.connect(":memory:")
    storage = AsyncSqliteStorage(connection=connection)
    await connection.close()

    with pytest.raises(PersistenceError, match="Could not read icon"):
        await storage.get("https://example.com/favicon.ico")
