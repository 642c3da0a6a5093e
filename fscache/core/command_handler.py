"""Command Handler: Orchestrates CLI command execution.

Receives commands from the main entry point (main.py) and runs them against
the injected cache store, reporting results and failures through the user
interface. Every handler returns True on success so the entry point can set
the exit code.
"""

import json
import logging
from typing import Any, Optional

from fscache.domain.exceptions import CacheError
from fscache.domain.interfaces.cache import CacheStore
from fscache.domain.interfaces.user_interface import UserInterface

logger = logging.getLogger(__name__)


def _format_value(value: Any) -> str:
    if isinstance(value, str):
        return value
    try:
        return json.dumps(value, indent=2, ensure_ascii=False)
    except (TypeError, ValueError):
        return repr(value)


def _parse_ttl(ttl: Optional[str]) -> Any:
    """CLI TTLs arrive as text; plain integers are seconds."""
    if ttl is None:
        return None
    stripped = ttl.strip()
    return int(stripped) if stripped.lstrip("+-").isdigit() else stripped


class CommandHandler:
    """Handles incoming commands and delegates to the cache store."""

    def __init__(self, cache_store: CacheStore, ui: UserInterface):
        """Initializes the CommandHandler with the store and the UI."""
        self.cache_store = cache_store
        self.ui = ui

    def handle_get(self, key: str) -> bool:
        logger.info(f"Handling 'get' command for key: {key}")
        try:
            value, found = self.cache_store.get(key)
        except (CacheError, ValueError) as e:
            logger.error(f"Get command failed: {e}", exc_info=True)
            self.ui.display_error(f"Get failed: {e}")
            return False
        if not found:
            self.ui.display_info(f"No cached value for '{key}'.")
            return False
        self.ui.display_output(_format_value(value), title=key)
        return True

    def handle_set(self, key: str, value: str, ttl: Optional[str] = None, as_json: bool = False) -> bool:
        """Handles the 'set' command; ``as_json`` stores the decoded JSON value instead of the raw string."""
        logger.info(f"Handling 'set' command for key: {key} (ttl={ttl or 'default'})")
        try:
            payload = json.loads(value) if as_json else value
        except json.JSONDecodeError as e:
            self.ui.display_error(f"Value is not valid JSON: {e}")
            return False
        try:
            self.cache_store.set(key, payload, _parse_ttl(ttl))
        except (CacheError, ValueError) as e:
            logger.error(f"Set command failed: {e}", exc_info=True)
            self.ui.display_error(f"Set failed: {e}")
            return False
        self.ui.display_info(f"Stored '{key}'.")
        return True

    def handle_delete(self, key: str) -> bool:
        logger.info(f"Handling 'delete' command for key: {key}")
        try:
            self.cache_store.delete(key)
        except (CacheError, ValueError) as e:
            logger.error(f"Delete command failed: {e}", exc_info=True)
            self.ui.display_error(f"Delete failed: {e}")
            return False
        self.ui.display_info(f"Deleted '{key}'.")
        return True

    def handle_clear(self) -> bool:
        logger.info("Handling 'clear' command")
        try:
            removed = self.cache_store.clear()
        except CacheError as e:
            logger.error(f"Failed to clear cache: {e}", exc_info=True)
            self.ui.display_error(f"Failed to clear cache: {e}")
            return False
        self.ui.display_info(f"Cache cleared. Removed {removed} files.")
        return True

    def handle_sweep(self) -> bool:
        logger.info("Handling 'sweep' command")
        try:
            removed = self.cache_store.sweep()
        except CacheError as e:
            logger.error(f"Failed to sweep cache: {e}", exc_info=True)
            self.ui.display_error(f"Failed to sweep cache: {e}")
            return False
        self.ui.display_info(f"Sweep finished. Removed {removed} expired files.")
        return True

    def handle_stats(self) -> bool:
        logger.info("Handling 'stats' command")
        try:
            stats = self.cache_store.stats()
        except CacheError as e:
            logger.error(f"Failed to read cache stats: {e}", exc_info=True)
            self.ui.display_error(f"Failed to read cache stats: {e}")
            return False
        self.ui.display_stats(stats)
        return True
