from __future__ import annotations

import logging
from typing import Literal, Optional, Union, overload

import httpx

from iconcache._core._headers import parse_content_type
from iconcache._exceptions import TransportError, UpstreamStatusError

logger = logging.getLogger("iconcache.fetch")

# Charsets that are always decoded with the gbk codec
LEGACY_CHARSETS = frozenset({"gbk", "gb2312"})


def decode_text(response: httpx.Response) -> str:
    """
    Decode a fully read response body.

    Bodies declared as a legacy Chinese charset are transcoded with the ``gbk``
    codec, undecodable bytes becoming U+FFFD. Everything else is decoded the
    way httpx decodes ``response.text``.
    """
    _, params = parse_content_type(response.headers.get("Content-Type"))
    if params.get("charset", "").lower() in LEGACY_CHARSETS:
        return response.content.decode("gbk", errors="replace")
    return response.text


class AsyncFetcher:
    """
    The plain network fetch used by the message handlers.

    Nothing fetched here goes through the icon cache. No ``Referer`` header is
    sent with the requests.
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None) -> None:
        self._owns_client = client is None
        self.client = client if client is not None else httpx.AsyncClient()

    @overload
    async def fetch(
        self, url: str, *, follow_redirects: bool = ..., return_response: Literal[False] = ...
    ) -> str: ...
    @overload
    async def fetch(self, url: str, *, follow_redirects: bool = ..., return_response: Literal[True]) -> httpx.Response: ...
    async def fetch(
        self,
        url: str,
        *,
        follow_redirects: bool = True,
        return_response: bool = False,
    ) -> Union[str, httpx.Response]:
        """
        GET ``url`` and return its decoded text, or the response itself when
        ``return_response`` is set.

        Raises:
            TransportError: No response was received.
            UpstreamStatusError: The response status is outside [200, 300).
        """
        request = self.client.build_request("GET", url)
        request.headers.pop("Referer", None)

        try:
            response = await self.client.send(request, follow_redirects=follow_redirects)
        except httpx.RequestError as exc:
            logger.error(f"Could not fetch {url}: {exc!r}")
            raise TransportError(str(exc) or exc.__class__.__name__) from exc

        if not response.is_success:
            logger.warning(f"Fetching {url} failed with status {response.status_code}")
            raise UpstreamStatusError(response.status_code)

        if return_response:
            return response
        return decode_text(response)

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()
