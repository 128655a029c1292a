"""Status command implementation.

Prints the reported diff: files missing from the repository and files
that diverged from it.
"""

import json
from typing import Annotated

import typer

from sysdiff.cli.display import print_diff_summary
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
from sysdiff.core.errors import SysdiffError
from sysdiff.core.paths import to_live_path
from sysdiff.core.pipeline import run_pipeline
from sysdiff.utils.formatting import console


def status(
    brief: Annotated[
        bool,
        typer.Option("--brief", help="Show summary counts only."),
    ] = False,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output every category as JSON."),
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
    """Show files missing from or diverged from the repository.

    Output is one absolute path per line, sorted by path, so two runs over
    the same state print identical output.

    Examples:
        sysdiff status
        sysdiff status --quick --jobs 8
        sysdiff status --json
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
        _, _, result = run_pipeline(config)
    except SysdiffError as e:
        exit_with_error(e)

    if json_output:
        console.print_json(json.dumps(result.to_dict(config.root)))
        return

    if brief:
        print_diff_summary(result)
        return

    for path in result.reported:
        typer.echo(to_live_path(config.root, path))
