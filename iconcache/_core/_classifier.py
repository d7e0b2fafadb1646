from __future__ import annotations

import logging
import typing as tp

import httpx

from iconcache._core._allowlist import AsyncBaseAllowList

logger = logging.getLogger("iconcache.core.classifier")

DEFAULT_RESERVED_PATH_PREFIXES = ("/assets/",)


class EntryClassifier:
    """
    Decides whether a request targets a cacheable icon.

    URLs whose path starts with one of ``reserved_path_prefixes`` are bundled
    assets and are never cached. Any other URL is cacheable only if it is a
    member of the allow-list. A failing allow-list makes the URL uncacheable.
    """

    def __init__(
        self,
        allow_list: AsyncBaseAllowList,
        reserved_path_prefixes: tp.Sequence[str] = DEFAULT_RESERVED_PATH_PREFIXES,
    ) -> None:
        self.allow_list = allow_list
        self.reserved_path_prefixes = tuple(reserved_path_prefixes)

    def is_reserved(self, url: str) -> bool:
        try:
            path = httpx.URL(url).path
        except httpx.InvalidURL:
            return True
        return path.startswith(self.reserved_path_prefixes)

    async def is_cacheable(self, url: str) -> bool:
        if self.is_reserved(url):
            return False

        try:
            return await self.allow_list.contains(url)
        except Exception:
            logger.exception(f"Could not check the allow-list for {url}, treating it as not cacheable")
            return False
