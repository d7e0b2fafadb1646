from __future__ import annotations

import copy
import typing as tp

from iconcache._core._kv._base import AsyncBaseKeyValueStore


class AsyncInMemoryKeyValueStore(AsyncBaseKeyValueStore):
    def __init__(self, initial: tp.Optional[tp.Mapping[str, tp.Mapping[str, tp.Any]]] = None) -> None:
        self._data: tp.Dict[str, tp.Dict[str, tp.Any]] = {
            namespace: dict(values) for namespace, values in (initial or {}).items()
        }

    async def get(self, namespace: str, key: str) -> tp.Any:
        return copy.deepcopy(self._data.get(namespace, {}).get(key))

    async def set(self, namespace: str, values: tp.Mapping[str, tp.Any]) -> None:
        self._data.setdefault(namespace, {}).update(copy.deepcopy(dict(values)))
