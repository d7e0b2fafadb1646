from __future__ import annotations

import json
import typing as tp
from pathlib import Path

import anyio

from iconcache._core._kv._base import AsyncBaseKeyValueStore
from iconcache._exceptions import PersistenceError
from iconcache._utils import ensure_cache_dict


class AsyncFileKeyValueStore(AsyncBaseKeyValueStore):
    """
    Keeps every namespace in its own JSON document under ``base_path``.

    :param base_path: A directory where the documents should be saved, defaults to ``.cache/iconcache``
    :type base_path: tp.Optional[Path], optional
    """

    def __init__(self, base_path: tp.Optional[tp.Union[str, Path]] = None) -> None:
        self._base_path = ensure_cache_dict(Path(base_path) if base_path is not None else None)
        self._lock = anyio.Lock()

    def _path_for(self, namespace: str) -> Path:
        return self._base_path / f"{namespace}.json"

    async def _load(self, namespace: str) -> tp.Dict[str, tp.Any]:
        path = anyio.Path(self._path_for(namespace))
        if not await path.is_file():
            return {}
        try:
            async with await anyio.open_file(path, "rt", encoding="utf-8") as f:
                data = json.loads(await f.read())
        except (OSError, ValueError) as exc:
            raise PersistenceError(f"Could not read namespace {namespace!r}") from exc

        if not isinstance(data, dict):
            raise PersistenceError(f"Namespace {namespace!r} does not hold a JSON object")
        return data

    async def get(self, namespace: str, key: str) -> tp.Any:
        async with self._lock:
            data = await self._load(namespace)
        return data.get(key)

    async def set(self, namespace: str, values: tp.Mapping[str, tp.Any]) -> None:
        async with self._lock:
            data = await self._load(namespace)
            data.update(values)
            path = self._path_for(namespace)
            temp_path = path.with_name(f"{path.name}.tmp")
            try:
                document = json.dumps(data, ensure_ascii=False)
                async with await anyio.open_file(temp_path, "wt", encoding="utf-8") as f:
                    await f.write(document)
                # Readers only ever see a complete document
                await anyio.Path(temp_path).replace(path)
            except (OSError, TypeError, ValueError) as exc:
                raise PersistenceError(f"Could not write namespace {namespace!r}") from exc
