from __future__ import annotations

import logging
import time
from typing import Optional

from iconcache._core._freshness import MAX_AGE, is_expired
from iconcache._core._spec import IconCacheOptions
from iconcache._core._storages._async_base import AsyncBaseStorage

logger = logging.getLogger("iconcache.lifecycle")


async def sweep_expired(storage: AsyncBaseStorage, max_age: float = MAX_AGE, now: Optional[float] = None) -> int:
    """
    Delete every expired entry of ``storage``.

    Entries that fail to load or delete are logged and skipped.

    Returns:
        The number of deleted entries.
    """
    now = time.time() if now is None else now
    removed = 0

    for key in await storage.list_keys():
        try:
            entry = await storage.get(key)
            if entry is None or not is_expired(entry, now=now, max_age=max_age):
                continue
            await storage.delete(key)
        except Exception:
            logger.exception(f"Could not sweep icon {key}")
            continue
        removed += 1

    logger.debug(f"Swept {removed} expired icons")
    return removed


class IconCacheLifecycle:
    """
    Reacts to the host process lifecycle.

    ``on_activate`` sweeps every stored icon; lookups
    only delete an expired entry once the network has answered.
    """

    def __init__(self, storage: AsyncBaseStorage, options: Optional[IconCacheOptions] = None) -> None:
        self.storage = storage
        self.options = options if options is not None else IconCacheOptions()

    async def on_install(self) -> None:
        logger.info("Icon cache installed")

    async def on_activate(self) -> int:
        logger.info("Icon cache activated")
        try:
            return await sweep_expired(self.storage, max_age=self.options.max_age)
        except Exception:
            logger.exception("Sweeping expired icons failed")
            return 0
