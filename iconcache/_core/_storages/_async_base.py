from __future__ import annotations

import abc
import typing as tp

from ..models import Entry

DEFAULT_NAMESPACE = "iconcache-icons-v1"


class AsyncBaseStorage(abc.ABC):
    """
    A keyed store of icon entries.

    Every storage is bound to a ``namespace``; entries written under one
    namespace are invisible to storages bound to another, even when both share
    the same backend. Bump the trailing version of the namespace to abandon the
    entries written by an older cache format.
    """

    def __init__(self, namespace: str = DEFAULT_NAMESPACE) -> None:
        self.namespace = namespace

    @abc.abstractmethod
    async def get(self, key: str) -> tp.Optional[Entry]:
        raise NotImplementedError()

    @abc.abstractmethod
    async def put(self, key: str, entry: Entry) -> None:
        raise NotImplementedError()

    @abc.abstractmethod
    async def delete(self, key: str) -> None:
        raise NotImplementedError()

    @abc.abstractmethod
    async def list_keys(self) -> tp.List[str]:
        raise NotImplementedError()

    async def close(self) -> None:
        pass
