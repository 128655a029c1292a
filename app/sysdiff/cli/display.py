"""Shared Rich display functions for sync plans and results."""

from rich.markup import escape
from rich.table import Table

from sysdiff.core.engine import DiffResult
from sysdiff.core.sync import SyncAction, SyncDirection, SyncResult
from sysdiff.utils.formatting import console, err_console, print_success


def create_plan_table(actions: tuple[SyncAction, ...]) -> Table:
    """Create a Rich table displaying planned copies.

    Each direction gets its own style so copies onto the live tree stand
    out before confirmation.

    Args:
        actions: Planned sync actions.

    Returns:
        Rich Table configured for plan display.
    """
    table = Table(
        title="Planned Copies",
        show_header=True,
        header_style="heading",
        border_style="rule",
    )
    table.add_column("Direction", width=9, justify="center")
    table.add_column("Path", no_wrap=True)
    table.add_column("Reason")

    for action in actions:
        if action.direction == SyncDirection.TO_REPO:
            direction = "[to_repo]->repo[/to_repo]"
        else:
            direction = "[to_live]->live[/to_live]"
        table.add_row(direction, escape(action.path), f"[muted]{action.reason.value}[/muted]")

    return table


def create_results_table(results: tuple[SyncResult, ...]) -> Table:
    """Create a Rich table displaying copy results.

    Args:
        results: Results of executed actions.

    Returns:
        Rich Table configured for results display.
    """
    table = Table(
        title="Results",
        show_header=True,
        header_style="heading",
        border_style="rule",
    )
    table.add_column("Status", width=8, justify="center")
    table.add_column("Path", no_wrap=True)
    table.add_column("Message")

    for result in results:
        if result.success:
            status = "[success]OK[/success]"
            message = result.action.command
        else:
            status = "[error]FAIL[/error]"
            message = result.error or "Unknown error"
        table.add_row(status, escape(result.action.path), f"[muted]{escape(message)}[/muted]")

    return table


def print_results_summary(results: tuple[SyncResult, ...]) -> None:
    """Print a summary of copy results.

    Args:
        results: Results of executed actions.
    """
    success_count = sum(1 for r in results if r.success)
    fail_count = sum(1 for r in results if not r.success)

    if fail_count == 0:
        print_success(f"All {success_count} copy action(s) completed successfully.")
    else:
        console.print(
            f"\n[success]{success_count} succeeded[/success], [error]{fail_count} failed[/error]"
        )


def print_diff_summary(result: DiffResult) -> None:
    """Print per-category counts of a diff result to stderr."""
    if result.is_clean:
        err_console.print("[muted]No differences found.[/muted]")
        return
    err_console.print(f"[warning]Modified backups:[/warning] {len(result.modified_backup)}")
    err_console.print(f"[warning]Unpackaged:[/warning] {len(result.unpackaged)}")
    err_console.print(f"[to_repo]Missing in repo:[/to_repo] {len(result.missing_in_repo)}")
    err_console.print(f"[to_live]Diverged from repo:[/to_live] {len(result.diverged_from_repo)}")
    err_console.print(f"[muted]Total reported: {len(result.reported)}[/muted]")
