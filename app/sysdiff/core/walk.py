"""Filesystem tree walking.

Shared by the live inventory and the filesystem repository lister. Paths
are yielded in canonical form (relative to the walked root), while the
ignore matcher is consulted with the full path inside the walked tree. Symbolic links
are reported as files and never followed.
"""

import logging
import os
from collections.abc import Iterator
from pathlib import Path
from typing import TYPE_CHECKING

from sysdiff.core.errors import WalkError
from sysdiff.core.paths import to_canonical, to_live_path

if TYPE_CHECKING:
    from sysdiff.core.ignore import IgnoreMatcher

logger = logging.getLogger(__name__)


def _handle_error(path: str, error: OSError, strict: bool) -> None:
    """Resolve a walk error: skip-and-log or abort.

    Permission errors are skipped unless strict; a node that vanished
    mid-walk is always skipped; everything else is fatal.
    """
    if isinstance(error, PermissionError):
        if strict:
            raise WalkError(f"Permission denied while walking {path}") from error
        logger.warning("Skipping %s: permission denied", path)
        return
    if isinstance(error, FileNotFoundError):
        logger.debug("Skipping %s: vanished during walk", path)
        return
    raise WalkError(f"Cannot walk {path}: {error}") from error


def walk_tree(
    root: Path | str,
    matcher: "IgnoreMatcher | None" = None,
    *,
    strict: bool = False,
) -> Iterator[str]:
    """Yield the canonical path of every non-directory entry below root.

    Directories matched by the matcher are pruned (never listed), matched
    files are skipped. The matcher sees the path joined onto root, so
    rules are written against the tree as it is mounted.

    Args:
        root: Directory to walk.
        matcher: Optional ignore matcher.
        strict: Abort on permission errors instead of skipping.

    Yields:
        Canonical paths such as "/etc/fstab".

    Raises:
        WalkError: If root is not a directory, on a permission error in
            strict mode, or on any other I/O error.
    """
    root_str = str(root)
    if not os.path.isdir(root_str):
        raise WalkError(f"Not a directory: {root_str}")

    stack = [root_str]
    while stack:
        directory = stack.pop()
        try:
            with os.scandir(directory) as it:
                entries = list(it)
        except OSError as e:
            _handle_error(directory, e, strict)
            continue

        for entry in entries:
            canonical = to_canonical(root_str, entry.path)
            if matcher is not None and matcher.matches(to_live_path(root_str, canonical)):
                continue
            try:
                is_dir = entry.is_dir(follow_symlinks=False)
            except OSError as e:
                _handle_error(entry.path, e, strict)
                continue
            if is_dir:
                stack.append(entry.path)
            else:
                yield canonical
