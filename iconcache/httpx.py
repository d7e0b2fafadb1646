try:
    import httpx  # noqa: F401
except ImportError as e:
    raise ImportError(
        "httpx is required to use iconcache.httpx module. Please install it with 'pip install httpx'."
    ) from e


from ._async_httpx import (
    AsyncIconCacheClient as AsyncIconCacheClient,
    AsyncIconCacheTransport as AsyncIconCacheTransport,
)
from ._fetch import AsyncFetcher as AsyncFetcher
