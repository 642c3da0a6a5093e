import logging
from typing import Any, Optional

from rich.box import HEAVY, ROUNDED, SIMPLE
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from fscache.domain.interfaces.user_interface import UserInterface
from fscache.domain.models.common import NamespaceStats

logger = logging.getLogger(__name__)


class ConsoleDisplay(UserInterface):
    """Concrete implementation of UserInterface using the rich library for console output."""

    def __init__(self, console: Optional[Console] = None):
        """Initializes the rich Console."""
        self._console = console or Console()

    @property
    def console(self) -> Console:
        """Get the Rich console instance for direct operations."""
        return self._console

    @console.setter
    def console(self, console: Console) -> None:
        self._console = console

    def display_output(self, output: str, **kwargs: Any) -> None:
        """Displays a value in a panel.

        Args:
            output: The text to display.
            **kwargs: Additional arguments including:
                - title: The panel title (default: "Value")
        """
        title = kwargs.get("title", "Value")
        logger.debug(f"display_output called: title={title}, content_length={len(output)}")
        panel = Panel(
            Text(output),
            title=f"[bold white]{escape(str(title))}[/bold white]",
            title_align="left",
            border_style="blue",
            box=ROUNDED,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message in a distinct style.

        Args:
            error_message: The error message to display.
        """
        panel = Panel(
            Text(error_message, style="white"),
            title="[bold red]Error[/bold red]",
            border_style="red",
            box=HEAVY,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_info(self, info_message: str, **kwargs: Any) -> None:
        panel = Panel(
            Text(info_message, style="white"),
            title="[bold blue]Info[/bold blue]",
            border_style="blue",
            box=SIMPLE,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_stats(self, stats: NamespaceStats, **kwargs: Any) -> None:
        """Renders namespace statistics as a two-column table."""
        table = Table(title=kwargs.get("title", "Cache namespace"), box=ROUNDED, show_header=False)
        table.add_column("Property", style="bold cyan")
        table.add_column("Value", style="white")
        table.add_row("Directory", stats.directory)
        table.add_row("Entries", str(stats.entries))
        table.add_row("Expired", str(stats.expired))
        table.add_row("Payload bytes", f"{stats.total_bytes:,}")
        table.add_row("Temp files", str(stats.temp_files))
        self.console.print(table)
