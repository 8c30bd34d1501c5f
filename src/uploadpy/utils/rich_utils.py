"""Rich utilities: shared console, theme and traceback setup."""

from __future__ import annotations

from rich.console import Console
from rich.theme import Theme
from rich.traceback import install as rich_traceback_install

UPLOAD_THEME = Theme(
    {
        "info": "cyan",
        "warning": "yellow",
        "error": "red",
        "success": "green",
        "muted": "grey62",
        "ok": "bold green",
        "nok": "bold red",
    }
)

_console: Console | None = None


def get_console() -> Console:
    """Return the shared Rich Console, created on first use."""
    global _console
    if _console is None:
        _console = Console(theme=UPLOAD_THEME, highlight=False, soft_wrap=True)
    return _console


def install_rich_tracebacks() -> None:
    """Enable rich tracebacks globally for nicer error output."""
    rich_traceback_install(show_locals=False, word_wrap=True, suppress=["click"])
