"""fscache: disk-backed TTL cache with a read-through caching proxy.

Exposes the Store (key/value storage addressed by logical paths), the
CachingProxy / cached decorator (memoized method calls) and the
create_store factory that wires them to the configured cache directory.
"""

from fscache.domain.exceptions import (
    CacheError,
    CacheSerializationError,
    ConfigError,
    StorageError,
)
from fscache.domain.models.common import CallRecord
from fscache.infrastructure.cache.factory import create_store, proxy
from fscache.infrastructure.cache.proxy import CachingProxy, cached
from fscache.infrastructure.cache.store import Store
from fscache.infrastructure.cache.ttl import ComputedTTL, FixedTTL

__version__ = "0.1.0"

__all__ = [
    "CacheError",
    "CacheSerializationError",
    "CachingProxy",
    "CallRecord",
    "ComputedTTL",
    "ConfigError",
    "FixedTTL",
    "StorageError",
    "Store",
    "cached",
    "create_store",
    "proxy",
]
