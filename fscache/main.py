"""Main entry point for the fscache command line.

Sets up the Typer CLI application, performs dependency injection (Composition
Root), defines the maintenance commands, and delegates execution to the
CommandHandler.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import typer
from typing_extensions import Annotated

from fscache.core.command_handler import CommandHandler
from fscache.domain.exceptions import ConfigError
from fscache.infrastructure.cache.factory import create_store
from fscache.infrastructure.cli.display import ConsoleDisplay
from fscache.infrastructure.config.settings import get_config, load_configuration
from fscache.infrastructure.monitoring.logger_setup import resolve_log_level, setup_logging

logger = logging.getLogger(__name__)


# --- Dependency Injection Container (Manual) ---

def create_dependencies(
    cache_dir: Optional[Path] = None,
    prefix: Optional[str] = None,
    base_path: str = "/",
    log_level: Optional[str] = None,
) -> Dict[str, Any]:
    """Creates and wires up all dependencies for one CLI invocation.

    This acts as the Composition Root.

    Raises:
        ConfigError: If the cache directory or the configured TTL is unusable.
    """
    # 1. Load Configuration First
    load_configuration()
    level = resolve_log_level(log_level or get_config('logging.level'))
    setup_logging(
        log_level=level,
        log_file=get_config('logging.file'),
        log_format=get_config('logging.format', '%(asctime)s - %(name)s - %(levelname)s - %(message)s'),
    )
    logger.debug("Configuration and logging initialized.")

    # 2. Instantiate Infrastructure Adapters
    dependencies: Dict[str, Any] = {'ui': ConsoleDisplay()}
    dependencies['cache_store'] = create_store(prefix=prefix, base_path=base_path, cache_dir=cache_dir)

    # 3. Instantiate Command Handler
    dependencies['command_handler'] = CommandHandler(
        cache_store=dependencies['cache_store'],
        ui=dependencies['ui'],
    )
    logger.debug("All dependencies initialized successfully.")
    return dependencies


# --- Typer App Definition ---
app = typer.Typer(
    name="fscache",
    help="fscache: inspect and maintain a disk-backed TTL cache.",
    add_completion=False,
    no_args_is_help=True,
)


def _handler(ctx: typer.Context) -> CommandHandler:
    return ctx.obj['command_handler']


def _finish(succeeded: bool) -> None:
    if not succeeded:
        raise typer.Exit(code=1)


@app.callback()
def main_callback(
    ctx: typer.Context,
    cache_dir: Annotated[
        Optional[Path],
        typer.Option("--dir", "-d", help="Cache root directory. Defaults to the configured one.")
    ] = None,
    prefix: Annotated[
        Optional[str],
        typer.Option("--prefix", "-p", help="Cache namespace. Defaults to 'default'.")
    ] = None,
    base_path: Annotated[
        str,
        typer.Option("--base", "-b", help="Base path for relative keys.")
    ] = "/",
    log_level: Annotated[
        Optional[str],
        typer.Option("--log-level", help="Logging level (debug, info, warning, error).")
    ] = None,
):
    """Wires the cache store used by every command."""
    try:
        ctx.obj = create_dependencies(cache_dir=cache_dir, prefix=prefix, base_path=base_path, log_level=log_level)
    except ConfigError as e:
        logger.error(f"Fatal Error during application initialization: {e}", exc_info=True)
        ConsoleDisplay().display_error(f"Cache configuration error: {e}")
        raise typer.Exit(code=1)


@app.command()
def get(
    ctx: typer.Context,
    key: Annotated[str, typer.Argument(help="Cache key, absolute or relative to --base.")],
):
    """Show a cached value. Exits with 1 when the key is missing or expired."""
    _finish(_handler(ctx).handle_get(key))


@app.command(name="set")
def set_command(
    ctx: typer.Context,
    key: Annotated[str, typer.Argument(help="Cache key, absolute or relative to --base.")],
    value: Annotated[str, typer.Argument(help="Value to store.")],
    ttl: Annotated[
        Optional[str],
        typer.Option("--ttl", "-t", help="Seconds or a time expression such as '2 hours'.")
    ] = None,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Decode VALUE as JSON before storing it.")
    ] = False,
):
    """Store a value."""
    _finish(_handler(ctx).handle_set(key, value, ttl=ttl, as_json=as_json))


@app.command()
def delete(
    ctx: typer.Context,
    key: Annotated[str, typer.Argument(help="Cache key, absolute or relative to --base.")],
):
    """Delete a cached value. Deleting a missing key succeeds."""
    _finish(_handler(ctx).handle_delete(key))


@app.command()
def clear(ctx: typer.Context):
    """Remove every entry of the namespace."""
    _finish(_handler(ctx).handle_clear())


@app.command()
def sweep(ctx: typer.Context):
    """Remove expired entries and leftover temp files of the namespace."""
    _finish(_handler(ctx).handle_sweep())


@app.command()
def stats(ctx: typer.Context):
    """Summarize the namespace."""
    _finish(_handler(ctx).handle_stats())


# --- Main Execution Guard ---

def cli_entry_point():
    """Function to be called by the script entry point in pyproject.toml."""
    app()


if __name__ == "__main__":
    cli_entry_point()
