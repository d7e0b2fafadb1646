from __future__ import annotations

import ssl
import typing as t
from typing import (
    AsyncIterable,
    AsyncIterator,
    Optional,
    Union,
    cast,
    overload,
)

from httpx import RequestNotRead

from iconcache._async_cache import AsyncIconCacheProxy
from iconcache._core._allowlist import AsyncBaseAllowList
from iconcache._core._headers import Headers
from iconcache._core._kv._base import AsyncBaseKeyValueStore
from iconcache._core._spec import IconCacheOptions
from iconcache._core._storages._async_base import AsyncBaseStorage
from iconcache._core.models import Request, Response
from iconcache._exceptions import TransportError
from iconcache._utils import filter_mapping, make_async_iterator

try:
    import httpx
except ImportError as e:
    raise ImportError(
        "httpx is required to use iconcache.httpx module. Please install it with 'pip install httpx'."
    ) from e

# 128 KB
CHUNK_SIZE = 131072


@overload
def _internal_to_httpx(
    value: Request,
) -> httpx.Request: ...
@overload
def _internal_to_httpx(
    value: Response,
) -> httpx.Response: ...
def _internal_to_httpx(
    value: Union[Request, Response],
) -> Union[httpx.Request, httpx.Response]:
    """
    Convert internal Request/Response to httpx.Request/httpx.Response.
    """
    if isinstance(value, Request):
        return httpx.Request(
            method=value.method,
            url=value.url,
            headers=value.headers.multi_items(),
            stream=_IteratorStream(value.stream),
            extensions=dict(value.metadata),
        )
    elif isinstance(value, Response):
        extensions = dict(value.metadata)
        if value.url is not None:
            extensions["iconcache_final_url"] = value.url
        return httpx.Response(
            status_code=value.status_code,
            headers=value.headers.multi_items(),
            stream=_IteratorStream(value.stream),
            extensions=extensions,
        )


@overload
def _httpx_to_internal(
    value: httpx.Request,
) -> Request: ...
@overload
def _httpx_to_internal(
    value: httpx.Response,
    url: Optional[str] = None,
) -> Response: ...
def _httpx_to_internal(
    value: Union[httpx.Request, httpx.Response],
    url: Optional[str] = None,
) -> Union[Request, Response]:
    """
    Convert httpx.Request/httpx.Response to internal Request/Response.
    """
    raw_headers: dict[str, list[str]] = {}
    for key, header_value in value.headers.multi_items():
        raw_headers.setdefault(key, []).append(header_value)
    headers = Headers(filter_mapping(raw_headers, ["Transfer-Encoding"]))

    if isinstance(value, httpx.Request):
        try:
            stream = make_async_iterator([value.content])
        except RequestNotRead:
            stream = cast(AsyncIterator[bytes], value.stream)

        return Request(
            method=value.method,
            url=str(value.url),
            headers=headers,
            stream=stream,
            metadata=dict(value.extensions),
        )
    elif isinstance(value, httpx.Response):
        stream = (
            make_async_iterator([value.content]) if value.is_stream_consumed else value.aiter_raw(chunk_size=CHUNK_SIZE)
        )

        if value.is_stream_consumed and "content-encoding" in value.headers:
            # The stream was consumed and decoded, so the stored body no longer
            # matches Content-Encoding; drop it and fix the Content-Length.
            headers = Headers(
                {
                    **filter_mapping(raw_headers, ["content-encoding", "content-length", "transfer-encoding"]),
                    "content-length": str(len(value.content)),
                }
            )

        return Response(
            status_code=value.status_code,
            headers=headers,
            stream=stream,
            url=url,
            metadata={},
        )


class _IteratorStream(httpx.AsyncByteStream):
    def __init__(self, iterator: AsyncIterator[bytes]) -> None:
        self.iterator = iterator

    async def __aiter__(self) -> AsyncIterator[bytes]:
        assert isinstance(self.iterator, (AsyncIterator, AsyncIterable))
        async for chunk in self.iterator:
            yield chunk

    async def aclose(self) -> None:
        if hasattr(self.iterator, "aclose"):
            await self.iterator.aclose()


class AsyncIconCacheTransport(httpx.AsyncBaseTransport):
    """
    An HTTPX transport that serves allow-listed icons from a cache.

    Icon requests are fetched with redirects followed, so the recorded
    redirects and the cache keys always point at the URL the icon was finally
    served from. Other requests go to ``next_transport`` untouched.
    """

    def __init__(
        self,
        next_transport: httpx.AsyncBaseTransport,
        storage: AsyncBaseStorage | None = None,
        kv_store: AsyncBaseKeyValueStore | None = None,
        allow_list: AsyncBaseAllowList | None = None,
        options: IconCacheOptions | None = None,
    ) -> None:
        self.next_transport = next_transport
        self._fetch_client = httpx.AsyncClient(transport=next_transport, follow_redirects=True)
        self._cache_proxy: AsyncIconCacheProxy = AsyncIconCacheProxy(
            request_sender=self.request_sender,
            passthrough_sender=self.passthrough_sender,
            storage=storage,
            kv_store=kv_store,
            allow_list=allow_list,
            options=options,
        )
        self.storage = self._cache_proxy.storage
        self.kv_store = self._cache_proxy.kv_store

    async def handle_async_request(
        self,
        request: httpx.Request,
    ) -> httpx.Response:
        internal_request = _httpx_to_internal(request)
        internal_response = await self._cache_proxy.handle_request(internal_request)
        return _internal_to_httpx(internal_response)

    async def aclose(self) -> None:
        await self._fetch_client.aclose()
        await self._cache_proxy.aclose()
        await super().aclose()

    async def request_sender(self, request: Request) -> Response:
        body = await request.aread()
        httpx_request = self._fetch_client.build_request(
            method=request.method,
            url=request.url,
            headers=request.headers.multi_items(),
            content=body or None,
            # Keeps the caller's "timeout" and other per-request extensions.
            extensions=dict(request.metadata),
        )
        try:
            httpx_response = await self._fetch_client.send(httpx_request)
        except httpx.RequestError as exc:
            raise TransportError(str(exc) or exc.__class__.__name__) from exc
        return _httpx_to_internal(httpx_response, url=str(httpx_response.url))

    async def passthrough_sender(self, request: Request) -> Response:
        httpx_response = await self.next_transport.handle_async_request(_internal_to_httpx(request))
        return _httpx_to_internal(httpx_response)


class AsyncIconCacheClient(httpx.AsyncClient):
    def __init__(self, *args: t.Any, **kwargs: t.Any) -> None:
        self.storage: AsyncBaseStorage | None = kwargs.pop("storage", None)
        self.kv_store: AsyncBaseKeyValueStore | None = kwargs.pop("kv_store", None)
        self.allow_list: AsyncBaseAllowList | None = kwargs.pop("allow_list", None)
        self.options: IconCacheOptions | None = kwargs.pop("options", None)
        super().__init__(*args, **kwargs)

    def _init_transport(
        self,
        verify: ssl.SSLContext | str | bool = True,
        cert: t.Union[str, t.Tuple[str, str], t.Tuple[str, str, str], None] = None,
        trust_env: bool = True,
        http1: bool = True,
        http2: bool = False,
        limits: httpx.Limits = httpx.Limits(max_connections=100, max_keepalive_connections=20),
        transport: httpx.AsyncBaseTransport | None = None,
        **kwargs: t.Any,
    ) -> httpx.AsyncBaseTransport:
        if transport is not None:
            return transport

        return AsyncIconCacheTransport(
            next_transport=httpx.AsyncHTTPTransport(
                verify=verify,
                cert=cert,
                trust_env=trust_env,
                http1=http1,
                http2=http2,
                limits=limits,
            ),
            storage=self.storage,
            kv_store=self.kv_store,
            allow_list=self.allow_list,
            options=self.options,
        )

    def _init_proxy_transport(
        self,
        proxy: httpx.Proxy,
        verify: ssl.SSLContext | str | bool = True,
        cert: t.Union[str, t.Tuple[str, str], t.Tuple[str, str, str], None] = None,
        trust_env: bool = True,
        http1: bool = True,
        http2: bool = False,
        limits: httpx.Limits = httpx.Limits(max_connections=100, max_keepalive_connections=20),
        **kwargs: t.Any,
    ) -> httpx.AsyncBaseTransport:
        return AsyncIconCacheTransport(
            next_transport=httpx.AsyncHTTPTransport(
                verify=verify,
                cert=cert,
                trust_env=trust_env,
                http1=http1,
                http2=http2,
                limits=limits,
                proxy=proxy,
            ),
            storage=self.storage,
            kv_store=self.kv_store,
            allow_list=self.allow_list,
            options=self.options,
        )
