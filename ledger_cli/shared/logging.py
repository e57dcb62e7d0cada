"""Rich-based logging helpers shared across ledger-cli commands."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

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

# Converted payloads go to stdout; progress, errors and warnings go to stderr.
#
# Highlighting stays off so Rich never colours digits inside account codes or amounts
# such as "0000123" or "1500,00" when FORCE_COLOR is set.
_stdout_console = Console(theme=_THEME, highlight=False)
_stderr_console = Console(stderr=True, theme=_THEME, highlight=False)
_verbose_console = Console(stderr=True, theme=_THEME, highlight=False)


@dataclass(slots=True)
class Logger:
    """Lightweight logger facade backed by Rich consoles."""

    verbose: bool = False

    @property
    def console(self) -> Console:
        return _stdout_console

    def info(self, message: str) -> None:
        _stderr_console.print(message, style="info", markup=False)

    def success(self, message: str) -> None:
        _stderr_console.print(message, style="success", markup=False)

    def warning(self, message: str) -> None:
        _stderr_console.print(message, style="warning", markup=False)

    def error(self, message: str) -> None:
        _stderr_console.print(message, style="error", markup=False)

    def debug(self, message: str) -> None:
        if self.verbose:
            _verbose_console.print(message, style="debug", markup=False)

    def issues(self, title: str, messages: Iterable[str], *, limit: int | None = None) -> None:
        """Print a titled list of messages as warnings, truncated after ``limit`` items."""
        items = list(messages)
        if not items:
            return
        self.warning(f"{title} ({len(items)}):")
        shown = items if limit is None else items[:limit]
        for message in shown:
            self.warning(f"  - {message}")
        hidden = len(items) - len(shown)
        if hidden > 0:
            self.warning(f"  … {hidden} more (use --verbose to list all)")


def get_logger(verbose: bool = False) -> Logger:
    """Return a configured Logger instance."""
    return Logger(verbose=verbose)
