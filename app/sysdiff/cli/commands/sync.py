"""Sync command implementation.

Copies files missing from the repository into it, and resolves diverged
files by overwriting the older copy with the newer one.
"""

from typing import Annotated

import typer

from sysdiff.cli.display import (
    create_plan_table,
    create_results_table,
    print_results_summary,
)
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
from sysdiff.core.pipeline import run_pipeline
from sysdiff.core.sync import SyncPlanner
from sysdiff.utils.formatting import console, print_info, print_success


def sync(
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", "-n", help="Print the copies instead of performing them."),
    ] = False,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
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
    """Propagate content between the live tree and the repository.

    Files missing from the repository are copied into it. For files that
    differ, the older copy is overwritten with the newer one. With
    --dry-run, one "cp <source> <destination>" line is printed per copy.

    Examples:
        sysdiff sync --dry-run
        sysdiff sync --yes
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
        planner = SyncPlanner(config.root, config.repo, dry_run=dry_run)
        actions = planner.plan(result)
    except SysdiffError as e:
        exit_with_error(e)

    if not actions:
        if not dry_run:
            print_success("Repository and live tree are in sync.")
        return

    if dry_run:
        for dry_result in planner.execute(actions):
            typer.echo(dry_result.action.command)
        return

    console.print(create_plan_table(actions))

    if not yes:
        confirmed = typer.confirm(f"\nProceed with {len(actions)} copy action(s)?", default=False)
        if not confirmed:
            print_info("Aborted.")
            raise typer.Exit(code=0)

    try:
        results = planner.execute(actions)
    except SysdiffError as e:
        exit_with_error(e)

    console.print(create_results_table(results))
    print_results_summary(results)

    if any(not r.success for r in results):
        raise typer.Exit(code=1)
