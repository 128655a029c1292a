"""Sync planning and execution between the live tree and the repository.

Files missing from the repository are copied live -> repository. For
diverged files the older copy is overwritten with the newer one, decided
by modification time. Copies keep symbolic links as links.
"""

import errno
import logging
import os
import shlex
import shutil
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from sysdiff.core.engine import DiffResult
from sysdiff.core.errors import SyncError
from sysdiff.core.paths import to_live_path

logger = logging.getLogger(__name__)


class SyncDirection(str, Enum):
    """Direction of a planned copy."""

    TO_REPO = "to-repo"
    TO_LIVE = "to-live"


class SyncReason(str, Enum):
    """Why a copy was planned.

    Attributes:
        MISSING_IN_REPO: The repository has no copy yet.
        MISSING_ON_DISK: The repository copy exists but the live copy does not.
        LIVE_NEWER: The live copy was modified more recently (or at the same time).
        REPO_NEWER: The repository copy was modified more recently.
    """

    MISSING_IN_REPO = "missing-in-repo"
    MISSING_ON_DISK = "missing-on-disk"
    LIVE_NEWER = "live-newer"
    REPO_NEWER = "repo-newer"


@dataclass(frozen=True, slots=True)
class SyncAction:
    """A single planned copy.

    Attributes:
        path: Canonical path of the file.
        source: Absolute path copied from.
        destination: Absolute path copied to.
        direction: Whether the repository or the live tree is written.
        reason: Why the copy is needed.
    """

    path: str
    source: str
    destination: str
    direction: SyncDirection
    reason: SyncReason

    @property
    def command(self) -> str:
        """Shell equivalent of this action."""
        return f"cp {shlex.quote(self.source)} {shlex.quote(self.destination)}"


@dataclass(frozen=True, slots=True)
class SyncResult:
    """Result of a single sync copy.

    Attributes:
        action: The action that was executed.
        success: Whether the copy completed (always True for dry-run).
        error: Error message if the copy failed, None otherwise.
        dry_run: Whether this was a dry-run (nothing copied).
    """

    action: SyncAction
    success: bool
    error: str | None = None
    dry_run: bool = False


def copy_preserving_links(source: str, destination: str) -> None:
    """Copy a file or symbolic link, creating parent directories.

    An existing destination is replaced. If either side is a symbolic
    link the destination is removed first, so a link is never written
    through. A real directory in place of the destination is never copied
    into.

    Raises:
        IsADirectoryError: If the destination is a directory.
        OSError: If the copy fails.
    """
    if os.path.isdir(destination) and not os.path.islink(destination):
        raise IsADirectoryError(errno.EISDIR, "Destination is a directory", destination)
    os.makedirs(os.path.dirname(destination) or "/", exist_ok=True)
    if os.path.lexists(destination) and (
        os.path.islink(destination) or os.path.islink(source)
    ):
        os.unlink(destination)
    shutil.copy2(source, destination, follow_symlinks=False)


def _mtime_ns(path: str) -> int | None:
    """Modification time of the path itself (links not followed).

    Returns:
        mtime in nanoseconds, or None if the path does not exist.

    Raises:
        OSError: Any error other than the path being absent.
    """
    try:
        return os.lstat(path).st_mtime_ns
    except (FileNotFoundError, NotADirectoryError):
        return None


class SyncPlanner:
    """Plans and performs copies between the live tree and the repository.

    The copy direction is fixed: the repository never overrides a file it
    does not have, and between two copies the newer one wins. Dry-run is
    the only global override.

    Args:
        root: Live root.
        repo: Repository root.
        dry_run: If True, report the planned copies without performing them.
    """

    def __init__(self, root: Path, repo: Path, dry_run: bool = False) -> None:
        self.root = root
        self.repo = repo
        self._dry_run = dry_run

    @property
    def dry_run(self) -> bool:
        """Whether execute() only reports."""
        return self._dry_run

    def plan(self, diff: DiffResult) -> tuple[SyncAction, ...]:
        """Turn a diff into path-sorted copy actions.

        Args:
            diff: Reconciliation result.

        Returns:
            One action per MissingInRepo or DivergedFromRepo path that
            needs a copy.
        """
        actions: dict[str, SyncAction] = {}

        for path in diff.missing_in_repo:
            actions[path] = self._action(path, SyncDirection.TO_REPO, SyncReason.MISSING_IN_REPO)

        for path in diff.diverged_from_repo:
            if path in actions:
                continue
            action = self._plan_diverged(path)
            if action is not None:
                actions[path] = action

        return tuple(actions[p] for p in sorted(actions))

    def execute(self, actions: tuple[SyncAction, ...] | list[SyncAction]) -> tuple[SyncResult, ...]:
        """Perform (or simulate) the planned copies.

        Permission errors and a directory in the way of the destination
        fail the single copy and the run continues.

        Raises:
            SyncError: On any other I/O error.
        """
        return tuple(self._execute_single(action) for action in actions)

    def _action(self, path: str, direction: SyncDirection, reason: SyncReason) -> SyncAction:
        live = to_live_path(self.root, path)
        repo = to_live_path(self.repo, path)
        if direction == SyncDirection.TO_REPO:
            return SyncAction(path, live, repo, direction, reason)
        return SyncAction(path, repo, live, direction, reason)

    def _plan_diverged(self, path: str) -> SyncAction | None:
        """Pick the direction for a diverged file by modification time."""
        live = to_live_path(self.root, path)
        repo = to_live_path(self.repo, path)
        try:
            live_mtime = _mtime_ns(live)
            repo_mtime = _mtime_ns(repo)
        except PermissionError:
            logger.warning("Skipping sync of %s: permission denied", path)
            return None
        except OSError as e:
            msg = f"Cannot stat {path}: {e}"
            raise SyncError(msg) from e

        if live_mtime is None and repo_mtime is None:
            logger.debug("Skipping sync of %s: absent on both sides", path)
            return None
        if repo_mtime is None:
            return self._action(path, SyncDirection.TO_REPO, SyncReason.MISSING_IN_REPO)
        if live_mtime is None:
            return self._action(path, SyncDirection.TO_LIVE, SyncReason.MISSING_ON_DISK)
        if repo_mtime > live_mtime:
            return self._action(path, SyncDirection.TO_LIVE, SyncReason.REPO_NEWER)
        return self._action(path, SyncDirection.TO_REPO, SyncReason.LIVE_NEWER)

    def _execute_single(self, action: SyncAction) -> SyncResult:
        if self._dry_run:
            logger.info("Dry-run: %s", action.command)
            return SyncResult(action=action, success=True, dry_run=True)

        try:
            copy_preserving_links(action.source, action.destination)
        except (PermissionError, IsADirectoryError) as e:
            logger.warning("Cannot copy %s: %s", action.source, e)
            return SyncResult(action=action, success=False, error=str(e))
        except OSError as e:
            msg = f"Failed to copy {action.source} to {action.destination}: {e}"
            raise SyncError(msg) from e

        logger.debug("Copied %s -> %s", action.source, action.destination)
        return SyncResult(action=action, success=True)
