from iconcache._async_cache import AsyncIconCacheProxy as AsyncIconCacheProxy
from iconcache._core._allowlist import (
    AsyncBaseAllowList as AsyncBaseAllowList,
    InMemoryAllowList as InMemoryAllowList,
    KeyValueAllowList as KeyValueAllowList,
)
from iconcache._core._classifier import EntryClassifier as EntryClassifier
from iconcache._core._freshness import MAX_AGE as MAX_AGE, is_expired as is_expired
from iconcache._core._headers import Headers as Headers
from iconcache._core._kv._base import AsyncBaseKeyValueStore as AsyncBaseKeyValueStore
from iconcache._core._kv._file import AsyncFileKeyValueStore as AsyncFileKeyValueStore
from iconcache._core._kv._memory import AsyncInMemoryKeyValueStore as AsyncInMemoryKeyValueStore
from iconcache._core._kv._sqlite import AsyncSqliteKeyValueStore as AsyncSqliteKeyValueStore
from iconcache._core._mime import ImageType as ImageType
from iconcache._core._resolver import RedirectResolver as RedirectResolver
from iconcache._core._spec import (
    PLACEHOLDER_PNG as PLACEHOLDER_PNG,
    AnyState as AnyState,
    CacheLookup as CacheLookup,
    CacheMiss as CacheMiss,
    CouldNotBeStored as CouldNotBeStored,
    FallbackToCache as FallbackToCache,
    FromCache as FromCache,
    IconCacheOptions as IconCacheOptions,
    IdleClient as IdleClient,
    InvalidateEntries as InvalidateEntries,
    PassThrough as PassThrough,
    Placeholder as Placeholder,
    RecordRedirect as RecordRedirect,
    ResolveKey as ResolveKey,
    State as State,
    StoreAndUse as StoreAndUse,
)
from iconcache._core._storages._async_base import AsyncBaseStorage as AsyncBaseStorage
from iconcache._core._storages._async_memory import AsyncInMemoryStorage as AsyncInMemoryStorage
from iconcache._core._storages._async_sqlite import AsyncSqliteStorage as AsyncSqliteStorage
from iconcache._core.models import (
    Entry as Entry,
    Request as Request,
    Response as Response,
    ResponseMetadata as ResponseMetadata,
)
from iconcache._exceptions import (
    ClassificationError as ClassificationError,
    IconCacheError as IconCacheError,
    PersistenceError as PersistenceError,
    TransportError as TransportError,
    UpstreamStatusError as UpstreamStatusError,
    ValidationError as ValidationError,
)
from iconcache._lifecycle import IconCacheLifecycle as IconCacheLifecycle, sweep_expired as sweep_expired
from iconcache._messaging import MessageRouter as MessageRouter, MessageType as MessageType

__all__ = (
    ## States
    "AnyState",
    "State",
    "IdleClient",
    "PassThrough",
    "ResolveKey",
    "CacheLookup",
    "CacheMiss",
    "RecordRedirect",
    "InvalidateEntries",
    "StoreAndUse",
    "CouldNotBeStored",
    "FallbackToCache",
    "FromCache",
    "Placeholder",
    "IconCacheOptions",
    "PLACEHOLDER_PNG",
    ## Models
    "Request",
    "Response",
    "Entry",
    "ResponseMetadata",
    ## Headers
    "Headers",
    "ImageType",
    ## Freshness
    "MAX_AGE",
    "is_expired",
    ## Classification and redirects
    "AsyncBaseAllowList",
    "InMemoryAllowList",
    "KeyValueAllowList",
    "EntryClassifier",
    "RedirectResolver",
    ## Storages
    "AsyncBaseStorage",
    "AsyncSqliteStorage",
    "AsyncInMemoryStorage",
    "AsyncBaseKeyValueStore",
    "AsyncInMemoryKeyValueStore",
    "AsyncFileKeyValueStore",
    "AsyncSqliteKeyValueStore",
    # Proxy
    "AsyncIconCacheProxy",
    # Host glue
    "IconCacheLifecycle",
    "sweep_expired",
    "MessageRouter",
    "MessageType",
    # Exceptions
    "IconCacheError",
    "ClassificationError",
    "TransportError",
    "PersistenceError",
    "UpstreamStatusError",
    "ValidationError",
)
