from __future__ import annotations

import logging

from iconcache._core._kv._base import AsyncBaseKeyValueStore

logger = logging.getLogger("iconcache.core.resolver")

REDIRECT_MAP_NAMESPACE = "icon-redirect-map"


class RedirectResolver:
    """
    Remembers where icon URLs redirected to.

    ``resolve`` does a single lookup and never follows chains of mappings.
    Failures of the backing store are logged and never propagated: a lost
    mapping only costs an extra redirect hop.
    """

    def __init__(self, store: AsyncBaseKeyValueStore, namespace: str = REDIRECT_MAP_NAMESPACE) -> None:
        self.store = store
        self.namespace = namespace

    async def resolve(self, original_url: str) -> str:
        try:
            final_url = await self.store.get(self.namespace, original_url)
        except Exception:
            logger.exception(f"Could not read the redirect mapping for {original_url}")
            return original_url

        if isinstance(final_url, str) and final_url:
            logger.debug(f"Using recorded redirect {original_url} -> {final_url}")
            return final_url
        return original_url

    async def record(self, original_url: str, final_url: str) -> None:
        if original_url == final_url:
            return

        try:
            await self.store.set(self.namespace, {original_url: final_url})
        except Exception:
            logger.exception(f"Could not save the redirect mapping {original_url} -> {final_url}")
