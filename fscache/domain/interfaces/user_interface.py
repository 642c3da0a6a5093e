"""Interface for reporting command results to the user.

Allows the command handler to stay independent of the console library.
"""

import abc
from typing import Any

from fscache.domain.models.common import NamespaceStats


class UserInterface(abc.ABC):
    """Abstract Base Class for user interaction."""

    @abc.abstractmethod
    def display_output(self, output: str, **kwargs: Any) -> None:
        """Displays a command result (e.g. a cached value) to the user.

        Args:
            output: The text to display.
            **kwargs: Additional arguments for formatting (e.g. title).
        """
        pass

    @abc.abstractmethod
    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message to the user."""
        pass

    @abc.abstractmethod
    def display_info(self, info_message: str, **kwargs: Any) -> None:
        """Displays an informational message to the user."""
        pass

    @abc.abstractmethod
    def display_stats(self, stats: NamespaceStats, **kwargs: Any) -> None:
        """Displays a summary of a cache namespace."""
        pass
