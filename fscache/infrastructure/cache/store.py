"""Public cache API over a namespaced FileStore.

Resolves logical keys against the store's base path, resolves TTL
specifications to absolute expiration times and serializes values with
pickle. Only load entries from cache directories you trust: the namespace
directories are created owner-only for that reason.
"""

import logging
import pickle
import posixpath
import time
from pathlib import Path
from typing import Any, Optional, Tuple, Union

from fscache.domain.exceptions import CacheSerializationError
from fscache.domain.interfaces.cache import CacheStore, TTLSpec
from fscache.domain.models.common import DEFAULT_TTL_SECONDS, CacheKey, NamespaceStats
from fscache.infrastructure.cache.file_store import FileStore
from fscache.infrastructure.cache.ttl import resolve_expiry

logger = logging.getLogger(__name__)

_UNPICKLE_ERRORS = (pickle.UnpicklingError, EOFError, AttributeError, ImportError, IndexError, TypeError, ValueError)


def resolve_key(key: str, base_path: str = "/") -> CacheKey:
    """Resolves a relative key against ``base_path`` and normalizes it.

    >>> resolve_key("users/42/", "/api")
    '/api/users/42'
    """
    if not key:
        raise ValueError("Cache key must not be empty")
    joined = posixpath.join(base_path or "/", key)
    normalized = posixpath.normpath("/" + joined.lstrip("/"))
    return CacheKey(normalized)


class Store(CacheStore):
    """TTL cache addressed by logical paths, backed by one namespace directory."""

    def __init__(self, file_store: FileStore, default_ttl: TTLSpec = DEFAULT_TTL_SECONDS, base_path: str = "/"):
        # Fail on a malformed default now rather than on the first write.
        resolve_expiry(default_ttl)
        self.file_store = file_store
        self.default_ttl = default_ttl
        self.base_path = resolve_key(base_path or "/", "/")

    @classmethod
    def create(
        cls,
        cache_root: Union[str, Path],
        prefix: Optional[str] = None,
        default_ttl: TTLSpec = DEFAULT_TTL_SECONDS,
        base_path: str = "/",
    ) -> "Store":
        """Creates a store bound to ``<cache_root>/<prefix>``.

        Args:
            cache_root: Existing, writable cache directory.
            prefix: Namespace below the root; 'default' when empty.
            default_ttl: TTL used by ``set`` when none is given.
            base_path: Base against which relative keys are resolved, so the
                same relative key used by two call sites with different bases
                maps to two entries.

        Raises:
            ConfigError: For an unusable root, an invalid prefix or default TTL.
        """
        return cls(FileStore(cache_root, prefix), default_ttl=default_ttl, base_path=base_path)

    @property
    def prefix(self) -> str:
        return self.file_store.prefix

    def resolve(self, key: str) -> CacheKey:
        return resolve_key(key, self.base_path)

    def cd(self, path: str) -> "Store":
        """Returns a store over the same namespace with ``path`` as its base path."""
        return Store(self.file_store, default_ttl=self.default_ttl, base_path=self.resolve(path))

    def get(self, key: str) -> Tuple[Any, bool]:
        resolved = self.resolve(key)
        raw, found = self.file_store.get(resolved)
        if not found:
            return None, False
        try:
            return pickle.loads(raw), True
        except _UNPICKLE_ERRORS as e:
            logger.warning(f"Failed to deserialize cache entry '{resolved}': {e}. Removing.")
            self.file_store.discard(resolved)
            return None, False

    def set(self, key: str, value: Any, ttl: Optional[TTLSpec] = None) -> None:
        resolved = self.resolve(key)
        now = time.time()
        expires_at = resolve_expiry(self.default_ttl if ttl is None else ttl, now)
        if expires_at <= now:
            # A TTL that is already over means "do not cache".
            logger.debug(f"TTL {ttl!r} already expired for '{resolved}'. Not caching.")
            self.file_store.delete(resolved)
            return
        try:
            payload = pickle.dumps(value, protocol=pickle.HIGHEST_PROTOCOL)
        except (pickle.PicklingError, TypeError, AttributeError, RecursionError) as e:
            raise CacheSerializationError(f"Cannot serialize value for cache key '{resolved}': {e}") from e
        self.file_store.put(resolved, payload, expires_at)

    def delete(self, key: str) -> None:
        self.file_store.delete(self.resolve(key))

    def exists(self, key: str) -> bool:
        return self.file_store.exists(self.resolve(key))

    def clear(self) -> int:
        return self.file_store.clear()

    def sweep(self) -> int:
        return self.file_store.sweep()

    def stats(self) -> NamespaceStats:
        return self.file_store.stats()

    def __repr__(self) -> str:
        return f"Store(prefix={self.prefix!r}, base_path={self.base_path!r}, default_ttl={self.default_ttl!r})"
