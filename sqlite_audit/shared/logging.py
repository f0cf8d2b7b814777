"""Rich-based logging helpers shared across the audit tools."""

from __future__ import annotations

from dataclasses import dataclass, replace

from rich.console import Console
from rich.theme import Theme
from rich.traceback import install

install(show_locals=False)

_THEME = Theme(
    {
        "info": "cyan",
        "warning": "yellow",
        "error": "bold red",
        "success": "bold green",
        "debug": "dim",
    }
)

# Structured payloads (reports, query results) go to stdout; progress chatter goes to stderr.
# Highlighting stays off so table and shard names never pick up stray ANSI styling.
_stdout_console = Console(theme=_THEME, highlight=False)
_stderr_console = Console(stderr=True, theme=_THEME, highlight=False)


@dataclass(frozen=True, slots=True)
class Logger:
    """Lightweight logger facade backed by Rich consoles.

    ``quiet`` loggers drop everything except errors; the engine defaults to one so that
    library callers do not get console output they did not ask for.
    """

    verbose: bool = False
    quiet: bool = False
    prefix: str = ""

    @property
    def console(self) -> Console:
        return _stdout_console

    def bind(self, label: str) -> Logger:
        """Return a logger that tags every message with ``[label]``."""
        return replace(self, prefix=f"{self.prefix}[{label}] ")

    def info(self, message: str) -> None:
        if not self.quiet:
            _stderr_console.print(self.prefix + message, style="info", markup=False)

    def success(self, message: str) -> None:
        if not self.quiet:
            _stderr_console.print(self.prefix + message, style="success", markup=False)

    def warning(self, message: str) -> None:
        if not self.quiet:
            _stderr_console.print(self.prefix + message, style="warning", markup=False)

    def error(self, message: str) -> None:
        _stderr_console.print(self.prefix + message, style="error", markup=False)

    def debug(self, message: str) -> None:
        if self.verbose and not self.quiet:
            _stderr_console.print(self.prefix + message, style="debug", markup=False)


def get_logger(verbose: bool = False) -> Logger:
    """Return a configured Logger instance."""
    return Logger(verbose=verbose)


def quiet_logger() -> Logger:
    """Return a logger that only reports errors."""
    return Logger(quiet=True)
