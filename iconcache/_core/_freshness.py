from __future__ import annotations

import time
from typing import Optional

from iconcache._core._headers import parse_cache_control
from iconcache._core.models import Entry
from iconcache._utils import parse_date

__all__ = ("MAX_AGE", "get_age", "is_expired")

# 30 days
MAX_AGE = 30 * 24 * 60 * 60


def get_age(entry: Entry, now: Optional[float] = None) -> Optional[float]:
    """
    Seconds elapsed since the timestamp in the stored response's Date header.

    Returns None when the header is missing or cannot be parsed.
    """
    date_header = entry.response.headers.get("Date")
    if not date_header:
        return None

    stored_timestamp = parse_date(date_header)
    if stored_timestamp is None:
        return None

    now = time.time() if now is None else now
    return now - stored_timestamp


def is_expired(entry: Optional[Entry], now: Optional[float] = None, max_age: float = MAX_AGE) -> bool:
    """
    Decide whether a stored icon may no longer be served.

    An entry is expired when it has no response or headers, when its response
    carries ``Cache-Control: no-store``, when its age cannot be established from
    the Date header, or when it is older than ``max_age`` seconds. An entry
    exactly ``max_age`` seconds old is still fresh.

    Args:
        entry: The stored entry, or None when nothing was found.
        now: Current unix time; defaults to ``time.time()``.
        max_age: Maximum age in seconds.

    Returns:
        True if the entry must be treated as absent.
    """
    if entry is None or entry.response is None or entry.response.headers is None:
        return True

    cache_control = parse_cache_control(entry.response.headers.get("Cache-Control"))
    if cache_control.no_store:
        return True

    age = get_age(entry, now)
    if age is None:
        return True

    return age > max_age
