"""Defines common Value Objects used across the cache.

These objects represent simple values or concepts like cache keys, namespace
prefixes and call records, ensuring consistency and type safety.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, NewType, Tuple

# === Core Value Objects ===

# Using NewType for semantic clarity, although they are strings at runtime.
CacheKey = NewType("CacheKey", str)          # Normalized logical key, e.g. '/users/42'
CachePrefix = NewType("CachePrefix", str)    # Namespace directory below the cache root
EncodedKey = NewType("EncodedKey", str)      # Filesystem-safe entry name derived from a CacheKey

DEFAULT_PREFIX = CachePrefix("default")
DEFAULT_TTL_SECONDS = 7200


@dataclass(frozen=True)
class CacheEntry:
    """One persisted cache entry: serialized payload plus absolute expiry."""
    value: bytes
    expires_at: float  # Unix timestamp (wall clock)

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


@dataclass
class CallRecord:
    """A single intercepted method call, handed to dynamic TTL policies.

    Not persisted; it lives only for the duration of the call that produced it.
    """
    target: Any
    method: str
    arguments: Tuple[Any, ...]
    result: Any
    kwargs: Dict[str, Any] = field(default_factory=dict)


@dataclass
class NamespaceStats:
    """Summary of one namespace directory, as reported by the stats command."""
    directory: str
    entries: int = 0
    expired: int = 0
    total_bytes: int = 0
    temp_files: int = 0
