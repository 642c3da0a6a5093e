"""Creates stores and proxies from the loaded configuration.

There is no process-wide store: every call returns a new Store, and callers
pass it on to whatever needs it.
"""

import logging
from pathlib import Path
from typing import Any, Optional, Union

from fscache.domain.interfaces.cache import CacheStore, TTLSpec
from fscache.domain.models.common import DEFAULT_TTL_SECONDS
from fscache.infrastructure.cache.proxy import CachingProxy
from fscache.infrastructure.cache.store import Store
from fscache.infrastructure.config.settings import (
    get_cache_dir,
    get_default_ttl,
    get_namespace_prefix,
    load_configuration,
)

logger = logging.getLogger(__name__)

CACHE_DIR_MODE = 0o770


def ensure_cache_dir(cache_dir: Path) -> None:
    """Creates the cache root if missing; validation is left to the store."""
    if cache_dir.exists():
        return
    try:
        cache_dir.mkdir(mode=CACHE_DIR_MODE, parents=True, exist_ok=True)
        logger.info(f"Created cache directory: {cache_dir}")
    except OSError as e:
        # FileStore reports the unusable root as a ConfigError.
        logger.warning(f"Could not create cache directory {cache_dir}: {e}")


def create_store(
    prefix: Optional[str] = None,
    default_ttl: Optional[TTLSpec] = None,
    base_path: str = "/",
    cache_dir: Optional[Union[str, Path]] = None,
) -> Store:
    """Creates a store for ``prefix`` below the configured cache directory.

    Args:
        prefix: Namespace; the configured prefix (or 'default') when empty.
        default_ttl: Store default TTL; the configured one (7200 s) when None.
        base_path: Base path for relative keys.
        cache_dir: Overrides the configured cache directory.

    Raises:
        ConfigError: If the cache directory is unusable.
    """
    load_configuration()
    root = Path(cache_dir) if cache_dir is not None else get_cache_dir()
    ensure_cache_dir(root)
    store = Store.create(
        root,
        prefix=prefix or get_namespace_prefix(),
        default_ttl=default_ttl if default_ttl is not None else get_default_ttl(),
        base_path=base_path,
    )
    logger.debug(f"Created {store!r} in {root}")
    return store


def proxy(target: Any, cache_control: Any = DEFAULT_TTL_SECONDS, store: Optional[CacheStore] = None) -> CachingProxy:
    """Wraps ``target`` in a CachingProxy, on a freshly created store if none is given."""
    return CachingProxy(target, store if store is not None else create_store(), cache_control)
