"""Exception taxonomy for the cache.

A miss is never an error: lookups return ``(None, False)``. Exceptions are
reserved for misconfiguration, I/O failures and values that cannot be
serialized.
"""

from typing import Optional


class CacheError(Exception):
    """Base class for all cache errors."""


class ConfigError(CacheError):
    """Raised for an unusable cache root, an invalid namespace prefix or a malformed TTL."""


class StorageError(CacheError):
    """Raised when writing, deleting or clearing entries fails at the filesystem level."""

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(message)


class CacheSerializationError(CacheError, TypeError):
    """Raised when a value or a call argument cannot be serialized for caching."""
