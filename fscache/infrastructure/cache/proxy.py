"""Read-through caching of method calls.

``CachingProxy`` wraps an object and memoizes the results of its methods;
``cached`` decorates individual functions or methods explicitly. Both run the
same sequence per call: build the key, look it up, on a miss invoke the real
method, decide the TTL (fixed, or computed from the call record), write the
result through and return it.

A hit skips the real method entirely, side effects included, so only proxy
methods that are pure or whose side effects are safe to skip. Caching is best
effort: arguments or results that cannot be serialized, and storage failures,
turn the call into an uncached pass-through instead of failing it.
"""

import functools
import logging
from typing import Any, Callable, Dict, Iterable, Optional, Tuple

from fscache.domain.exceptions import CacheSerializationError, StorageError
from fscache.domain.interfaces.cache import CacheStore
from fscache.domain.models.common import DEFAULT_TTL_SECONDS, CallRecord
from fscache.infrastructure.cache import key_codec
from fscache.infrastructure.cache.ttl import CacheControl, as_cache_control

logger = logging.getLogger(__name__)


def call_through(
    store: CacheStore,
    cache_control: CacheControl,
    target: Any,
    target_type: str,
    method: str,
    func: Callable[..., Any],
    args: Tuple[Any, ...],
    kwargs: Dict[str, Any],
) -> Any:
    """Runs one call through the cache: lookup, invoke on miss, write-through."""
    try:
        key = key_codec.encode_call(target_type, method, args, kwargs)
    except CacheSerializationError as e:
        logger.warning(f"Uncacheable arguments for {target_type}.{method}: {e}. Calling without cache.")
        return func(*args, **kwargs)

    try:
        value, found = store.get(key)
    except StorageError as e:
        logger.warning(f"Cache lookup failed for {target_type}.{method}: {e}. Calling without cache.")
        found = False
    if found:
        logger.debug(f"Proxy cache HIT for {target_type}.{method}")
        return value

    # Failures of the real method propagate unchanged; nothing is cached.
    result = func(*args, **kwargs)

    record = CallRecord(target=target, method=method, arguments=tuple(args), result=result, kwargs=dict(kwargs))
    ttl = cache_control.for_call(record)
    if ttl is None:
        logger.debug(f"Not caching result of {target_type}.{method} (non-positive TTL)")
        return result
    try:
        store.set(key, result, ttl)
    except (CacheSerializationError, StorageError) as e:
        logger.warning(f"Could not cache result of {target_type}.{method}: {e}")
    return result


class CachingProxy:
    """Wraps ``target`` and serves its method results from a cache store.

    Attribute access is forwarded to the target. Methods listed in ``methods``
    (or, if ``methods`` is None, every public callable attribute) go through
    the cache; everything else is returned untouched.

    Args:
        target: The object whose method calls are cached.
        store: Cache store receiving the results.
        cache_control: Seconds, a time expression, a ``FixedTTL`` /
            ``ComputedTTL``, or a callable receiving the ``CallRecord`` and
            returning the TTL. A TTL of zero or less skips caching.
        methods: Names of the methods to cache.
    """

    def __init__(
        self,
        target: Any,
        store: CacheStore,
        cache_control: Any = DEFAULT_TTL_SECONDS,
        methods: Optional[Iterable[str]] = None,
    ):
        object.__setattr__(self, "_target", target)
        object.__setattr__(self, "_store", store)
        object.__setattr__(self, "_cache_control", as_cache_control(cache_control))
        object.__setattr__(self, "_methods", frozenset(methods) if methods is not None else None)
        object.__setattr__(self, "_type_id", key_codec.type_id(target))

    @classmethod
    def wrap(cls, target: Any, store: CacheStore, cache_control: Any = DEFAULT_TTL_SECONDS, methods: Optional[Iterable[str]] = None) -> "CachingProxy":
        return cls(target, store, cache_control, methods)

    def _is_cached_method(self, name: str) -> bool:
        if self._methods is not None:
            return name in self._methods
        return not name.startswith("_")

    def __getattr__(self, name: str) -> Any:
        # object.__getattribute__ avoids recursing here on a half-built proxy.
        target = object.__getattribute__(self, "_target")
        attribute = getattr(target, name)
        if not callable(attribute) or not self._is_cached_method(name):
            return attribute

        @functools.wraps(attribute)
        def cached_call(*args: Any, **kwargs: Any) -> Any:
            return call_through(self._store, self._cache_control, target, self._type_id, name, attribute, args, kwargs)

        return cached_call

    def __setattr__(self, name: str, value: Any) -> None:
        setattr(self._target, name, value)

    def __repr__(self) -> str:
        return f"CachingProxy({self._target!r}, store={self._store!r})"


class CachedFunction:
    """Function wrapper produced by ``cached``; binds like a method on instances."""

    def __init__(self, func: Callable[..., Any], store: CacheStore, cache_control: Any):
        functools.update_wrapper(self, func)
        self._func = func
        self._store = store
        self._cache_control = as_cache_control(cache_control)

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return call_through(
            self._store, self._cache_control, None,
            self._func.__module__, self._func.__qualname__,
            self._func, args, kwargs,
        )

    def __get__(self, instance: Any, owner: Optional[type] = None) -> Any:
        if instance is None:
            return self
        bound = functools.partial(self._func, instance)
        target_type = key_codec.type_id(instance)

        @functools.wraps(self._func)
        def cached_method(*args: Any, **kwargs: Any) -> Any:
            # ``self`` identifies the target through its type, not its arguments.
            return call_through(self._store, self._cache_control, instance, target_type, self._func.__name__, bound, args, kwargs)

        return cached_method


def cached(store: CacheStore, cache_control: Any = DEFAULT_TTL_SECONDS) -> Callable[[Callable[..., Any]], CachedFunction]:
    """Decorator to cache the results of a function or method.

    Args:
        store: Cache store receiving the results.
        cache_control: Seconds, a time expression, or a TTL policy callable
            receiving the ``CallRecord``.

    Returns:
        A decorator.
    """
    control = as_cache_control(cache_control)

    def decorator(func: Callable[..., Any]) -> CachedFunction:
        return CachedFunction(func, store, control)

    return decorator
