"""CLI package for sysdiff.

This package contains the Typer application and all subcommands.
"""

from sysdiff.cli.main import app

__all__ = ["app"]
