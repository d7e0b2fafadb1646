from __future__ import annotations

import logging
import time
from dataclasses import replace
from typing import Awaitable, Callable, Optional

from typing_extensions import assert_never

from iconcache._core._allowlist import AsyncBaseAllowList, KeyValueAllowList
from iconcache._core._classifier import EntryClassifier
from iconcache._core._kv._base import AsyncBaseKeyValueStore
from iconcache._core._kv._sqlite import AsyncSqliteKeyValueStore
from iconcache._core._resolver import RedirectResolver
from iconcache._core._spec import (
    AnyState,
    CacheLookup,
    CacheMiss,
    CouldNotBeStored,
    FallbackToCache,
    FromCache,
    IconCacheOptions,
    IdleClient,
    InvalidateEntries,
    PassThrough,
    Placeholder,
    RecordRedirect,
    ResolveKey,
    StoreAndUse,
)
from iconcache._core._storages._async_base import AsyncBaseStorage
from iconcache._core._storages._async_sqlite import AsyncSqliteStorage
from iconcache._core.models import Entry, Request, Response
from iconcache._exceptions import TransportError
from iconcache._utils import generate_http_date, make_async_iterator

logger = logging.getLogger("iconcache.proxy")

RequestSender = Callable[[Request], Awaitable[Response]]


class AsyncIconCacheProxy:
    """
    Serves allow-listed icon requests from the cache, everything else from the network.

    This class is independent of any specific HTTP library and works only with internal models.
    It delegates request execution to user-provided callables.

    Args:
        request_sender: Fetches an icon following redirects. The returned response's ``url`` must be
            the URL it was finally served from. Must raise ``TransportError`` when no response
            could be received at all.
        storage: Storage backend for icons. Defaults to AsyncSqliteStorage.
        kv_store: Key-value store holding the redirect map and, unless ``allow_list`` is given,
            the allow-list. Defaults to AsyncSqliteKeyValueStore.
        allow_list: The URLs that may be cached. Defaults to a KeyValueAllowList over ``kv_store``.
        options: Cache configuration. Defaults to IconCacheOptions().
        passthrough_sender: Sends requests that are not cacheable. Defaults to ``request_sender``.
    """

    def __init__(
        self,
        request_sender: RequestSender,
        storage: Optional[AsyncBaseStorage] = None,
        kv_store: Optional[AsyncBaseKeyValueStore] = None,
        allow_list: Optional[AsyncBaseAllowList] = None,
        options: Optional[IconCacheOptions] = None,
        passthrough_sender: Optional[RequestSender] = None,
    ) -> None:
        self.send_request = request_sender
        self.send_passthrough = passthrough_sender if passthrough_sender is not None else request_sender
        self.storage = storage if storage is not None else AsyncSqliteStorage()
        self.kv_store = kv_store if kv_store is not None else AsyncSqliteKeyValueStore()
        self.allow_list = allow_list if allow_list is not None else KeyValueAllowList(self.kv_store)
        self.options = options if options is not None else IconCacheOptions()
        self.classifier = EntryClassifier(self.allow_list, self.options.reserved_path_prefixes)
        self.resolver = RedirectResolver(self.kv_store)

    async def handle_request(self, request: Request) -> Response:
        state: AnyState = IdleClient(options=self.options)

        while state:
            logger.debug(f"Handling state: {state.__class__.__name__}")
            if isinstance(state, IdleClient):
                state = state.next(request, await self.classifier.is_cacheable(request.url))
            elif isinstance(state, PassThrough):
                return await self.send_passthrough(state.request)
            elif isinstance(state, ResolveKey):
                state = state.next(await self.resolver.resolve(state.request.url))
            elif isinstance(state, CacheLookup):
                state = state.next(await self._get_entry(state.key))
            elif isinstance(state, CacheMiss):
                state = await self._handle_cache_miss(state)
            elif isinstance(state, RecordRedirect):
                await self.resolver.record(state.original_url, state.final_url)
                state = state.next()
            elif isinstance(state, InvalidateEntries):
                state = await self._handle_invalidate_entries(state)
            elif isinstance(state, StoreAndUse):
                return await self._handle_store_and_use(state)
            elif isinstance(state, CouldNotBeStored):
                return state.response
            elif isinstance(state, FallbackToCache):
                state = state.next(await self._find_any_entry(state))
            elif isinstance(state, FromCache):
                return state.entry.response
            elif isinstance(state, Placeholder):
                return state.response
            else:
                assert_never(state)

        raise RuntimeError("Unreachable")

    async def _get_entry(self, key: str) -> Optional[Entry]:
        try:
            return await self.storage.get(key)
        except Exception:
            logger.exception(f"Could not read icon {key} from the cache")
            return None

    async def _handle_cache_miss(self, state: CacheMiss) -> AnyState:
        try:
            response = await self.send_request(state.request)
        except TransportError as exc:
            return state.next(exc)
        return state.next(response)

    async def _handle_invalidate_entries(self, state: InvalidateEntries) -> AnyState:
        for key in state.keys:
            try:
                await self.storage.delete(key)
            except Exception:
                logger.exception(f"Could not delete expired icon {key}")
        return state.next()

    async def _handle_store_and_use(self, state: StoreAndUse) -> Response:
        response = state.response
        body = await response.aread()

        stored_at = time.time()
        headers = response.headers.copy()
        if "Date" not in headers:
            # Freshness is measured from the Date header
            headers["Date"] = generate_http_date(stored_at)

        entry = Entry(
            key=state.key,
            response=replace(response, headers=headers, stream=make_async_iterator([body]), metadata={}),
            stored_at=stored_at,
        )
        try:
            await self.storage.put(state.key, entry)
        except Exception:
            logger.exception(f"Could not store icon {state.key}")
            response.metadata.update({"iconcache_stored": False})  # type: ignore
        return response

    async def _find_any_entry(self, state: FallbackToCache) -> Optional[Entry]:
        # Freshness is not checked, stale entries are acceptable here
        for key in dict.fromkeys([state.request.url, state.key]):
            entry = await self._get_entry(key)
            if entry is not None:
                return entry
        return None

    async def aclose(self) -> None:
        await self.storage.close()
        await self.kv_store.close()
