from __future__ import annotations

import abc
import typing as tp

from iconcache._core._kv._base import AsyncBaseKeyValueStore
from iconcache._exceptions import ClassificationError

ALLOW_LIST_NAMESPACE = "iconcache"
ALLOW_LIST_KEY = "cached-online-icon-urls"


class AsyncBaseAllowList(abc.ABC):
    """The set of icon URLs the cache is allowed to handle."""

    @abc.abstractmethod
    async def contains(self, url: str) -> bool:
        raise NotImplementedError()


class InMemoryAllowList(AsyncBaseAllowList):
    def __init__(self, urls: tp.Iterable[str] = ()) -> None:
        self.urls: tp.Set[str] = set(urls)

    async def contains(self, url: str) -> bool:
        return url in self.urls


class KeyValueAllowList(AsyncBaseAllowList):
    """
    Reads the allow-list from a key-value store, where the icon picker keeps it
    as a list of URLs.

    The list is read on every lookup so that changes made by its owner are
    picked up immediately.
    """

    def __init__(
        self,
        store: AsyncBaseKeyValueStore,
        namespace: str = ALLOW_LIST_NAMESPACE,
        key: str = ALLOW_LIST_KEY,
    ) -> None:
        self.store = store
        self.namespace = namespace
        self.key = key

    async def urls(self) -> tp.Set[str]:
        try:
            value = await self.store.get(self.namespace, self.key)
        except Exception as exc:
            raise ClassificationError("Could not read the icon allow-list") from exc

        if value is None:
            return set()
        if not isinstance(value, list):
            raise ClassificationError(f"The icon allow-list must be a list, got {type(value).__name__}")
        return set(value)

    async def contains(self, url: str) -> bool:
        return url in await self.urls()
