"""Config command implementation.

Shows the effective configuration and writes a default config file.
"""

from pathlib import Path
from typing import Annotated

import tomli_w
import typer

from sysdiff.cli.types import ConfigOption, exit_with_error, resolve_config
from sysdiff.core.config import SysdiffConfig, config_to_dict, save_config
from sysdiff.core.errors import SysdiffError
from sysdiff.core.paths import get_config_path
from sysdiff.utils.formatting import print_error, print_info, print_success, print_warning

app = typer.Typer(
    help="Show or initialize the configuration.",
    no_args_is_help=True,
)


@app.command()
def show(config_path: ConfigOption = None) -> None:
    """Print the effective configuration as TOML."""
    config = resolve_config(config_path)
    typer.echo(tomli_w.dumps(config_to_dict(config)), nl=False)


@app.command()
def path() -> None:
    """Print the default config file location."""
    typer.echo(str(get_config_path()))


@app.command()
def init(
    config_path: ConfigOption = None,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Overwrite an existing config file."),
    ] = False,
) -> None:
    """Write a config file with the default settings."""
    target: Path = config_path or get_config_path()
    if target.exists() and not force:
        print_error(f"Config file already exists: {target}")
        print_info("Use --force to overwrite it.")
        raise typer.Exit(code=1)
    if target.exists():
        print_warning(f"Overwriting existing config file: {target}")

    try:
        saved = save_config(SysdiffConfig(), target)
    except SysdiffError as e:
        exit_with_error(e)

    print_success(f"Config written to {saved}")
