from __future__ import annotations

__all__ = (
    "IconCacheError",
    "ClassificationError",
    "TransportError",
    "PersistenceError",
    "UpstreamStatusError",
    "ValidationError",
)


class IconCacheError(Exception): ...


class ClassificationError(IconCacheError):
    """The allow-list could not be read."""


class TransportError(IconCacheError):
    """The network fetch failed before any response was received."""


class PersistenceError(IconCacheError):
    """A cache entry or a redirect mapping could not be written or read back."""


class UpstreamStatusError(IconCacheError):
    def __init__(self, status_code: int) -> None:
        super().__init__(f"HTTP error! status: {status_code}")
        self.status_code = status_code


class ValidationError(IconCacheError):
    """The response payload is not admitted into the cache."""
