"""Main CLI application entry point.

Defines the Typer application, global options and logging setup.
"""

import logging
from typing import Annotated

import typer
from rich.logging import RichHandler

from sysdiff import __version__
from sysdiff.cli.commands import config, ls, status, sync
from sysdiff.utils.formatting import err_console

# Create main Typer app
app = typer.Typer(
    name="sysdiff",
    help="System level diff against the package database and a shadow repository.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"sysdiff version {__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Route log records to stderr through Rich.

    --quiet raises the threshold to ERROR, which silences the
    skip-and-log permission warnings.
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING

    handler = RichHandler(
        console=err_console,
        show_time=False,
        show_path=verbose,
        markup=False,
    )
    logging.basicConfig(level=level, format="%(message)s", handlers=[handler], force=True)


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress warnings about skipped files.",
        ),
    ] = False,
) -> None:
    """sysdiff - what differs from a fresh install of the same packages.

    Reconciles the live filesystem against the package database and a
    shadow repository of intentional local changes.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    configure_logging(verbose=verbose, quiet=quiet)


# Register commands
app.command(name="ls")(ls.ls)
app.command(name="status")(status.status)
app.command(name="sync")(sync.sync)
app.add_typer(config.app, name="config")


if __name__ == "__main__":
    app()
