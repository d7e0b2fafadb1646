from __future__ import annotations

import typing as tp
from dataclasses import replace

from iconcache._core._headers import Headers
from iconcache._core._storages._async_base import DEFAULT_NAMESPACE, AsyncBaseStorage
from iconcache._core.models import Entry
from iconcache._utils import make_async_iterator

StoredIcon = tp.Tuple[Entry, bytes]


class AsyncInMemoryStorage(AsyncBaseStorage):
    """
    A simple in-memory storage.

    :param namespace: The cache namespace this storage reads and writes.
    :param backend: A dictionary to keep the entries in. Storages created over the same
        dictionary share it, each one only seeing its own namespace.
    """

    def __init__(
        self,
        namespace: str = DEFAULT_NAMESPACE,
        backend: tp.Optional[tp.Dict[str, tp.Dict[str, StoredIcon]]] = None,
    ) -> None:
        super().__init__(namespace)
        self._backend: tp.Dict[str, tp.Dict[str, StoredIcon]] = backend if backend is not None else {}

    @property
    def _entries(self) -> tp.Dict[str, StoredIcon]:
        return self._backend.setdefault(self.namespace, {})

    async def get(self, key: str) -> tp.Optional[Entry]:
        stored = self._entries.get(key)
        if stored is None:
            return None

        entry, body = stored
        # Hand out a fresh copy so callers can consume the stream without touching the stored one
        return replace(
            entry,
            response=replace(
                entry.response,
                headers=entry.response.headers.copy(),
                stream=make_async_iterator([body]),
                metadata=dict(entry.response.metadata),
            ),
        )

    async def put(self, key: str, entry: Entry) -> None:
        body = await entry.response.aread()
        stored_entry = replace(
            entry,
            key=key,
            response=replace(
                entry.response,
                headers=Headers(entry.response.headers.raw()),
                stream=make_async_iterator([]),
                metadata={},
            ),
        )
        self._entries.pop(key, None)
        self._entries[key] = (stored_entry, body)

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    async def list_keys(self) -> tp.List[str]:
        return list(self._entries)
