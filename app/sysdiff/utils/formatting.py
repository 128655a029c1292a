"""Rich console formatting utilities.

Provides consistent formatting for CLI output using Rich. Paths and diff
listings go to stdout through typer.echo; everything on these consoles is
presentation (tables, summaries, messages).
"""

import sys
from typing import TextIO

from rich.console import Console

from sysdiff.core.theme import get_theme


def _detect_color_system(stream: TextIO) -> str | None:
    """Detect the best color system for the stream a console writes to.

    Returns "truecolor" for interactive terminals to enable full hex color support,
    None otherwise to let Rich auto-detect.
    """
    if stream.isatty():
        return "truecolor"
    return None


# Shared console instances (theme loaded once at import)
console = Console(theme=get_theme(), color_system=_detect_color_system(sys.stdout))
err_console = Console(
    theme=get_theme(),
    stderr=True,
    color_system=_detect_color_system(sys.stderr),
)


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]{message}[/]")


def print_warning(message: str) -> None:
    """Print a warning message to stderr."""
    err_console.print(f"[warning]Warning:[/] {message}")


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    err_console.print(f"[error]Error:[/] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]{message}[/]")
