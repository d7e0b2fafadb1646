from __future__ import annotations

import logging
import typing as tp
from enum import Enum

from typing_extensions import TypedDict

from iconcache._exceptions import IconCacheError
from iconcache._fetch import AsyncFetcher

logger = logging.getLogger("iconcache.messaging")


class MessageType(str, Enum):
    FETCH_SEARCH_SUGGESTIONS = "FETCH_SEARCH_SUGGESTIONS"
    FETCH_NETWORK_SOURCE_CONTENT_TYPE = "FETCH_NETWORK_SOURCE_CONTENT_TYPE"
    FETCH_HOST_FAVICON = "FETCH_HOST_FAVICON"


# Misspelled type still sent by older content scripts
MESSAGE_TYPE_ALIASES = {"FEICH_HOST_FAVICON": MessageType.FETCH_HOST_FAVICON}


class MessageResult(TypedDict, total=False):
    success: bool
    data: tp.Any
    error: str


class MessageRouter:
    """
    Answers ``{"type": ..., "payload": {"url": ...}}`` messages.

    Every message gets exactly one result, ``{"success": True, "data": ...}``
    or ``{"success": False, "error": "..."}``; ``dispatch`` never raises.
    """

    def __init__(self, fetcher: tp.Optional[AsyncFetcher] = None) -> None:
        self.fetcher = fetcher if fetcher is not None else AsyncFetcher()
        self._handlers: tp.Dict[MessageType, tp.Callable[[str], tp.Awaitable[tp.Any]]] = {
            MessageType.FETCH_SEARCH_SUGGESTIONS: self.fetch_search_suggestions,
            MessageType.FETCH_NETWORK_SOURCE_CONTENT_TYPE: self.fetch_content_type,
            MessageType.FETCH_HOST_FAVICON: self.fetch_host_favicon,
        }

    async def dispatch(self, message: tp.Any) -> MessageResult:
        if not isinstance(message, tp.Mapping):
            return MessageResult(success=False, error="Malformed message")

        message_type = message.get("type")
        try:
            handler = self._handlers[_parse_message_type(message_type)]
        except (TypeError, ValueError):
            logger.warning(f"Unknown message type: {message_type}")
            return MessageResult(success=False, error=f"Unknown message type: {message_type}")

        payload = message.get("payload")
        url = payload.get("url") if isinstance(payload, tp.Mapping) else None
        if not isinstance(url, str) or not url:
            return MessageResult(success=False, error="Malformed message: payload.url is required")

        logger.debug(f"Handling message {message_type} for {url}")
        try:
            data = await handler(url)
        except IconCacheError as exc:
            return MessageResult(success=False, error=str(exc))
        except Exception as exc:
            logger.exception(f"Message {message_type} for {url} failed")
            return MessageResult(success=False, error=str(exc) or exc.__class__.__name__)
        return MessageResult(success=True, data=data)

    async def fetch_search_suggestions(self, url: str) -> str:
        return await self.fetcher.fetch(url)

    async def fetch_content_type(self, url: str) -> tp.Optional[str]:
        response = await self.fetcher.fetch(url, return_response=True)
        return response.headers.get("content-type")

    async def fetch_host_favicon(self, url: str) -> str:
        response = await self.fetcher.fetch(url, return_response=True)
        return response.text

    async def aclose(self) -> None:
        await self.fetcher.aclose()


def _parse_message_type(value: tp.Any) -> MessageType:
    if isinstance(value, str) and value in MESSAGE_TYPE_ALIASES:
        return MESSAGE_TYPE_ALIASES[value]
    return MessageType(value)
