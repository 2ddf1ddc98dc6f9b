"""
Console output utilities for forgedeps using Rich.

This module provides user-facing output helpers for CLI commands.
For diagnostic or debug output, use :mod:`forgedeps.utils.logger`.

Guidelines:
- print_* functions: user-facing status messages
- print_report: verbatim report text (no Rich markup interpretation)
- Logging should never go through this module
"""

from __future__ import annotations

import os
import sys
import threading
from typing import Optional

from rich.theme import Theme
from rich.console import Console

# ---------------------------------------------------------------------------
# Theme configuration
# ---------------------------------------------------------------------------

FORGEDEPS_THEME = Theme(
    {
        "error": "bold red",
        "warning": "bold yellow",
    }
)

# ---------------------------------------------------------------------------
# Console lifecycle management
# ---------------------------------------------------------------------------

_console: Optional[Console] = None
_console_lock = threading.Lock()


def _should_use_color() -> bool:
    """Return True if colored output should be enabled."""
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("CI"):
        return False
    try:
        return sys.stdout.isatty()
    except (AttributeError, OSError):
        return False


def _get_console() -> Console:
    """Return a singleton Rich Console instance."""
    global _console

    if _console is None:
        with _console_lock:
            if _console is None:
                use_color = _should_use_color()
                _console = Console(
                    theme=FORGEDEPS_THEME,
                    no_color=not use_color,
                    highlight=use_color,
                )
    return _console


def reconfigure_console() -> None:
    """Reset the global console instance.

    Useful if environment variables (e.g. NO_COLOR) or the output stream
    change at runtime.
    """
    global _console
    with _console_lock:
        _console = None


# ---------------------------------------------------------------------------
# Status message helpers
# ---------------------------------------------------------------------------


def print_error(message: str, *, prefix: str = "[ERROR]") -> None:
    """Print an error message."""
    _get_console().print(f"{prefix} {message}", style="error", markup=False)


def print_warning(message: str, *, prefix: str = "[WARNING]") -> None:
    """Print a warning message."""
    _get_console().print(f"{prefix} {message}", style="warning", markup=False)


# ---------------------------------------------------------------------------
# Report output
# ---------------------------------------------------------------------------


def print_report(text: str) -> None:
    """Print report text exactly as formatted.

    Report text uses Slack-style ``*bold*`` markers and may contain square
    brackets, so Rich markup and highlighting are disabled.
    """
    _get_console().print(text, markup=False, highlight=False, end="", soft_wrap=True)
