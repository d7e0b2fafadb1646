from __future__ import annotations

import abc
import typing as tp


class AsyncBaseKeyValueStore(abc.ABC):
    """
    A durable, namespaced key-value store for small JSON-compatible values.

    Writes are merged into the namespace: keys not mentioned in ``set`` keep
    their current values.
    """

    @abc.abstractmethod
    async def get(self, namespace: str, key: str) -> tp.Any:
        """Return the value stored under ``key``, or None."""
        raise NotImplementedError()

    @abc.abstractmethod
    async def set(self, namespace: str, values: tp.Mapping[str, tp.Any]) -> None:
        raise NotImplementedError()

    async def close(self) -> None:
        pass
