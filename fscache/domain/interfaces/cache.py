"""Interface for caching mechanisms.

Defines the contract for storing, retrieving, and managing cached data
addressed by logical keys, with TTL based expiration.
"""

import abc
from typing import Any, Callable, Optional, Tuple, Union

from ..models.common import NamespaceStats

# Seconds (int) or a relative/absolute time expression ('2 hours', '+1 day').
TTLSpec = Union[int, str]


class CacheStore(abc.ABC):
    """Abstract Base Class for cache store operations."""

    @abc.abstractmethod
    def get(self, key: str) -> Tuple[Any, bool]:
        """Retrieves an item from the cache.

        Args:
            key: The logical key, absolute ('/users/42') or relative to the
                store's base path ('users/42').

        Returns:
            A ``(value, found)`` tuple. ``found`` is False when the entry is
            missing or expired; the value is then None.
        """
        pass

    @abc.abstractmethod
    def set(self, key: str, value: Any, ttl: Optional[TTLSpec] = None) -> None:
        """Stores an item in the cache.

        Args:
            key: The logical key to store the item under.
            value: The item to store. Must be picklable.
            ttl: Seconds or a time expression; the store default when None.

        Raises:
            ConfigError: If ``ttl`` cannot be parsed.
            CacheSerializationError: If ``value`` cannot be serialized.
            StorageError: If the entry cannot be written.
        """
        pass

    @abc.abstractmethod
    def delete(self, key: str) -> None:
        """Deletes an item. Deleting a missing key is not an error."""
        pass

    @abc.abstractmethod
    def clear(self) -> int:
        """Removes every entry in this store's namespace.

        Returns:
            The number of files removed.
        """
        pass

    @abc.abstractmethod
    def exists(self, key: str) -> bool:
        """True only if the entry is present and not expired."""
        pass

    def cache(self, key: str, compute: Callable[[], Any], ttl: Optional[TTLSpec] = None) -> Any:
        """Returns the cached value for ``key``, computing and storing it on a miss."""
        value, found = self.get(key)
        if found:
            return value
        value = compute()
        self.set(key, value, ttl)
        return value

    @abc.abstractmethod
    def sweep(self) -> int:
        """Removes expired entries from the namespace. Returns the count removed."""
        pass

    @abc.abstractmethod
    def stats(self) -> NamespaceStats:
        """Summarizes the namespace (entries, expired entries, bytes on disk)."""
        pass
