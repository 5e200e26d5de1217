"""
batmon Console Manager

Shared Rich Console for table output and the config summary.

Usage:
    from batmon.utils.console import get_console
    get_console().print("[success]ok[/success]")
"""

from rich.console import Console
from rich.theme import Theme
from typing import Optional
import threading

_console: Optional[Console] = None
_lock = threading.Lock()

BATMON_THEME = Theme({
    "info": "cyan",
    "success": "green",
    "warning": "yellow",
    "error": "red bold",
    "heading": "bold magenta",
    "dim": "dim white",
    "node": "green",
    "changed": "bold red",
    "stable": "green",
})


def get_console(force_terminal: bool = None,
                no_color: bool = None,
                width: int = None) -> Console:
    """
    Get the singleton Console instance.

    Args:
        force_terminal: Force terminal mode (for testing)
        no_color: Disable color output
        width: Override console width
    """
    global _console

    if _console is None:
        with _lock:
            if _console is None:
                _console = Console(
                    theme=BATMON_THEME,
                    force_terminal=force_terminal,
                    no_color=no_color,
                    width=width,
                    highlight=False,
                    markup=True,
                )

    return _console


def reset_console():
    """Reset the console singleton (useful for testing)."""
    global _console
    with _lock:
        _console = None
