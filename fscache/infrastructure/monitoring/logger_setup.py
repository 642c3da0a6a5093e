"""Logging configuration for the fscache command line.

The library modules only create module loggers. Handlers are installed here,
once per CLI invocation: records go to stderr so that cached values printed
on stdout stay machine-readable, and optionally to a log file as well.
"""

import logging
import sys
from typing import List, Optional, Union

DEFAULT_LOG_LEVEL = logging.WARNING
DEFAULT_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

logger = logging.getLogger(__name__)


def resolve_log_level(level: Union[int, str, None], default: int = DEFAULT_LOG_LEVEL) -> int:
    """Accepts a level number or name ('debug', 'INFO'); falls back to ``default``."""
    if isinstance(level, int):
        return level
    if not level:
        return default
    resolved = logging.getLevelName(str(level).upper())
    return resolved if isinstance(resolved, int) else default


def setup_logging(
    log_level: int = DEFAULT_LOG_LEVEL,
    log_format: str = DEFAULT_LOG_FORMAT,
    log_file: Optional[str] = None
) -> None:
    """Replaces the root logger's handlers with a stderr handler and an optional file handler.

    An unusable ``log_file`` is reported on stderr; it does not stop the command.
    """
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    file_error = None
    if log_file:
        try:
            handlers.append(logging.FileHandler(log_file, encoding='utf-8'))
        except OSError as e:
            file_error = e

    logging.basicConfig(level=log_level, format=log_format, handlers=handlers, force=True)

    if file_error is not None:
        logger.error(f"Cannot log to file {log_file}: {file_error}")
    logger.debug(f"Logging configured: level={logging.getLevelName(log_level)}, file={log_file or '-'}")
