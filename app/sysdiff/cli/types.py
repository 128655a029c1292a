"""Shared types and utilities for CLI commands.

This module provides the run options every reconciling command accepts,
the config resolution that merges them over the config file, and fatal
error reporting.
"""

from enum import Enum
from pathlib import Path
from typing import Annotated, NoReturn

import typer
from rich.markup import escape

from sysdiff.core.config import SysdiffConfig, apply_overrides, load_config
from sysdiff.core.errors import SysdiffError
from sysdiff.utils.formatting import err_console, print_error


class BackendChoice(str, Enum):
    """Available package database backends."""

    AUTO = "auto"
    PACMAN = "pacman"
    DPKG = "dpkg"


class ListerChoice(str, Enum):
    """Available repository listers."""

    WALK = "walk"
    GIT = "git"


ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", "-c", help="Config file (default: ~/.config/sysdiff/config.toml)."),
]
RootOption = Annotated[
    Path | None,
    typer.Option("--root", "-r", help="Live tree root."),
]
DbPathOption = Annotated[
    Path | None,
    typer.Option("--dbpath", "-b", help="Package database location."),
]
BackendOption = Annotated[
    BackendChoice | None,
    typer.Option("--backend", help="Package database backend.", case_sensitive=False),
]
RepoOption = Annotated[
    Path | None,
    typer.Option("--repo", help="Shadow repository root."),
]
ListerOption = Annotated[
    ListerChoice | None,
    typer.Option("--repo-lister", help="How to list the repository.", case_sensitive=False),
]
IgnoreOption = Annotated[
    Path | None,
    typer.Option("--ignore", "-i", help="Ignore rule file or directory."),
]
QuickOption = Annotated[
    bool | None,
    typer.Option("--quick/--no-quick", help="Also ignore package binary and library trees."),
]
StrictOption = Annotated[
    bool | None,
    typer.Option("--strict/--no-strict", help="Abort on permission errors while walking."),
]
JobsOption = Annotated[
    int | None,
    typer.Option("--jobs", "-j", min=1, max=64, help="Hashing worker threads."),
]


def resolve_config(
    config_path: Path | None = None,
    *,
    root: Path | None = None,
    dbpath: Path | None = None,
    backend: BackendChoice | None = None,
    repo: Path | None = None,
    repo_lister: ListerChoice | None = None,
    ignore: Path | None = None,
    quick: bool | None = None,
    strict: bool | None = None,
    jobs: int | None = None,
) -> SysdiffConfig:
    """Load the config file and apply command-line overrides.

    Exits with status 1 if the configuration is invalid.
    """
    try:
        config = load_config(config_path)
        return apply_overrides(
            config,
            root=root,
            dbpath=dbpath,
            backend=backend.value if backend is not None else None,
            repo=repo,
            repo_lister=repo_lister.value if repo_lister is not None else None,
            ignore=ignore,
            quick=quick,
            strict=strict,
            jobs=jobs,
        )
    except SysdiffError as e:
        exit_with_error(e)


def error_chain(error: BaseException) -> list[str]:
    """Messages of an exception and every exception that caused it."""
    messages: list[str] = []
    current: BaseException | None = error
    seen: set[int] = set()
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        messages.append(str(current) or type(current).__name__)
        current = current.__cause__ or current.__context__
    return messages


def exit_with_error(error: BaseException) -> NoReturn:
    """Report a fatal error with its causal chain and exit non-zero."""
    first, *causes = error_chain(error)
    print_error(escape(first))
    for cause in causes:
        err_console.print(f"  [muted]caused by:[/] {escape(cause)}")
    raise typer.Exit(code=1)
