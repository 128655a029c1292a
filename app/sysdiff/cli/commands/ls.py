"""List command implementation.

Prints one named path set: a diff category or a raw inventory.
"""

import json
from enum import Enum
from typing import Annotated

import typer

from sysdiff.cli.types import (
    BackendOption,
    ConfigOption,
    DbPathOption,
    IgnoreOption,
    JobsOption,
    ListerOption,
    QuickOption,
    RepoOption,
    RootOption,
    StrictOption,
    exit_with_error,
    resolve_config,
)
from sysdiff.core.engine import DiffCategory, find_deleted_files
from sysdiff.core.errors import SysdiffError
from sysdiff.core.paths import to_live_path
from sysdiff.core.pipeline import collect, diff, prepare
from sysdiff.utils.formatting import console


class ListCategory(str, Enum):
    """Path sets that can be listed.

    The first four are the raw inventories, the rest are diff categories.
    """

    LIVE = "live"
    PACKAGED = "packaged"
    BACKUP = "backup"
    REPO = "repo"
    MODIFIED_BACKUP = "modified-backup"
    UNPACKAGED = "unpackaged"
    MISSING_IN_REPO = "missing-in-repo"
    DIVERGED_FROM_REPO = "diverged-from-repo"
    DELETED = "deleted"


def ls(
    category: Annotated[
        ListCategory,
        typer.Argument(help="Path set to print.", case_sensitive=False),
    ],
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON for scripting."),
    ] = False,
    config_path: ConfigOption = None,
    root: RootOption = None,
    dbpath: DbPathOption = None,
    backend: BackendOption = None,
    repo: RepoOption = None,
    repo_lister: ListerOption = None,
    ignore: IgnoreOption = None,
    quick: QuickOption = None,
    strict: StrictOption = None,
    jobs: JobsOption = None,
) -> None:
    """Print one path set, sorted, one absolute path per line.

    Categories:
      live, packaged, backup, repo      raw inventories
      modified-backup                   backup files changed since install
      unpackaged                        files no package owns
      missing-in-repo                   changed/unpackaged files not in the repo
      diverged-from-repo                repo files that differ from the live copy
      deleted                           package files missing from disk

    Examples:
        sysdiff ls unpackaged
        sysdiff ls modified-backup --root /mnt
        sysdiff ls repo --json
    """
    config = resolve_config(
        config_path,
        root=root,
        dbpath=dbpath,
        backend=backend,
        repo=repo,
        repo_lister=repo_lister,
        ignore=ignore,
        quick=quick,
        strict=strict,
        jobs=jobs,
    )

    try:
        ctx = prepare(config)
        inventories = collect(ctx)

        if category == ListCategory.LIVE:
            paths = tuple(sorted(inventories.live))
        elif category == ListCategory.PACKAGED:
            paths = tuple(sorted(inventories.package_owned))
        elif category == ListCategory.BACKUP:
            paths = tuple(sorted(inventories.backup))
        elif category == ListCategory.REPO:
            paths = tuple(sorted(inventories.repo))
        elif category == ListCategory.DELETED:
            paths = find_deleted_files(inventories, root=config.root, matcher=ctx.matcher)
        else:
            paths = diff(ctx, inventories).get(DiffCategory(category.value))
    except SysdiffError as e:
        exit_with_error(e)

    absolute = [to_live_path(config.root, p) for p in paths]

    if json_output:
        console.print_json(json.dumps({"category": category.value, "paths": absolute}))
        return

    for path in absolute:
        typer.echo(path)
