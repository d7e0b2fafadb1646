from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import (
    Any,
    AsyncIterable,
    AsyncIterator,
    Mapping,
    Optional,
    TypedDict,
    cast,
)

from iconcache._core._headers import Headers
from iconcache._utils import make_async_iterator


class AnyIterable:
    def __init__(self, content: bytes | None = None) -> None:
        self.consumed = False
        self.content = content

    async def __anext__(self) -> bytes:
        if self.content is not None and not self.consumed:
            self.consumed = True
            return self.content
        raise StopAsyncIteration()

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self

    def __eq__(self, value: Any) -> bool:
        return isinstance(value, AnyIterable)


class ResponseMetadata(TypedDict, total=False):
    # All the names here should be prefixed with "iconcache_" to avoid collisions with user data
    iconcache_from_cache: bool
    """Indicates whether the response was served from cache."""

    iconcache_stored: bool
    """Indicates whether the response was written to the cache."""

    iconcache_stale: bool
    """Indicates that an expired entry was served because the network was unreachable."""

    iconcache_placeholder: bool
    """Indicates that the response is the generated placeholder image."""

    iconcache_created_at: float
    """Timestamp when the served entry was stored."""

    iconcache_final_url: str
    """The URL the response was finally served from, set by the httpx transport."""


async def _read_stream(owner: Any) -> bytes:
    if hasattr(owner, "collected_body"):
        return cast(bytes, getattr(owner, "collected_body"))

    if not isinstance(owner.stream, (AsyncIterator, AsyncIterable)):
        raise TypeError(f"{type(owner).__name__} stream is not an AsyncIterator")

    collected = b"".join([chunk async for chunk in owner.stream])
    setattr(owner, "collected_body", collected)
    owner.stream = make_async_iterator([collected])
    return collected


@dataclass
class Request:
    method: str
    url: str
    headers: Headers = field(default_factory=lambda: Headers({}))
    stream: AsyncIterator[bytes] = field(default_factory=AnyIterable)
    metadata: Mapping[str, Any] = field(default_factory=dict)

    async def aread(self) -> bytes:
        """
        Reads the entire request body without consuming the stream.
        """
        return await _read_stream(self)


@dataclass
class Response:
    status_code: int
    headers: Headers = field(default_factory=lambda: Headers({}))
    stream: AsyncIterator[bytes] = field(default_factory=AnyIterable)
    url: Optional[str] = None
    """The URL the response was finally served from, after following redirects."""
    metadata: ResponseMetadata | Mapping[str, Any] = field(default_factory=dict)

    @property
    def is_ok(self) -> bool:
        return 200 <= self.status_code < 300

    async def aread(self) -> bytes:
        """
        Reads the entire response body without consuming the stream.
        """
        return await _read_stream(self)


@dataclass
class Entry:
    """A stored icon: the response that was fetched for ``key`` and when it was written."""

    key: str
    response: Response
    stored_at: float = field(default_factory=time.time)
