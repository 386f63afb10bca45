"""Pluggable notification protocol for autotest_engine.

The session reports status transitions and per-event errors through a
notifier, so it stays decoupled from how they are displayed.
"""

import logging
from typing import Protocol

from rich.console import Console
from rich.text import Text

logger = logging.getLogger(__name__)


class AutotestNotifier(Protocol):
    """Protocol for notifications - host can provide custom implementation."""

    def info(self, message: str) -> None:
        """Informational message."""
        ...

    def success(self, message: str) -> None:
        """Status line for a transition into working."""
        ...

    def failure(self, message: str) -> None:
        """Status line for a failed run."""
        ...

    def error(self, message: str) -> None:
        """Error that does not change the run status."""
        ...


class NoOpNotifier:
    """Silent notifier - default when the session is embedded."""

    def info(self, msg: str) -> None:
        """Do nothing."""
        pass

    def success(self, msg: str) -> None:
        """Do nothing."""
        pass

    def failure(self, msg: str) -> None:
        """Do nothing."""
        pass

    def error(self, msg: str) -> None:
        """Do nothing."""
        pass


class LoggingNotifier:
    """Implementation using stdlib logging - for debugging/development."""

    def info(self, msg: str) -> None:
        logger.info(msg)

    def success(self, msg: str) -> None:
        logger.info(msg)

    def failure(self, msg: str) -> None:
        logger.warning(msg)

    def error(self, msg: str) -> None:
        logger.error(msg)


class ConsoleNotifier:
    """Colorized status lines on a rich console: green success, red failure."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console(stderr=True, highlight=False)

    def _print(self, msg: str, style: str | None = None) -> None:
        self.console.log(Text(msg, style=style or ""))

    def info(self, msg: str) -> None:
        self._print(msg)

    def success(self, msg: str) -> None:
        self._print(msg, "bold green")

    def failure(self, msg: str) -> None:
        self._print(msg, "bold red")

    def error(self, msg: str) -> None:
        self._print(f"error: {msg}", "red")
