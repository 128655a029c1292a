"""Reconciliation engine.

Combines the four inventories into the diff categories:

- ModifiedBackup: backup files whose live hash differs from the pristine hash.
- Unpackaged: live files no package owns.
- MissingInRepo: ModifiedBackup or Unpackaged paths the repository lacks.
- DivergedFromRepo: repository files whose live copy differs.

Every category is a path-sorted tuple so output is identical across runs
over the same state, regardless of walk order or hashing concurrency.
"""

import logging
import os
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TypeVar

from sysdiff.core.errors import ContentReadError
from sysdiff.core.hasher import ContentHasher
from sysdiff.core.ignore import IgnoreMatcher
from sysdiff.core.inventory import Inventories
from sysdiff.core.paths import to_live_path

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class DiffCategory(str, Enum):
    """Named diff categories.

    Attributes:
        MODIFIED_BACKUP: Backup file changed from its packaged pristine state.
        UNPACKAGED: File on disk owned by no package.
        MISSING_IN_REPO: Modified backup or unpackaged file the repository lacks.
        DIVERGED_FROM_REPO: Repository file whose live copy differs.
    """

    MODIFIED_BACKUP = "modified-backup"
    UNPACKAGED = "unpackaged"
    MISSING_IN_REPO = "missing-in-repo"
    DIVERGED_FROM_REPO = "diverged-from-repo"


class HashState(Enum):
    """Outcome of a hash attempt that produced no digest."""

    MISSING = "missing"
    DENIED = "denied"


@dataclass(frozen=True, slots=True)
class DiffResult:
    """Result of reconciling the live tree against packages and repository.

    All tuples hold canonical paths sorted ascending.

    Attributes:
        modified_backup: Backup files changed from their pristine hash.
        unpackaged: Live files owned by no package.
        missing_in_repo: Modified or unpackaged files absent from the repository.
        diverged_from_repo: Repository files that differ from the live copy.
    """

    modified_backup: tuple[str, ...]
    unpackaged: tuple[str, ...]
    missing_in_repo: tuple[str, ...]
    diverged_from_repo: tuple[str, ...]

    @property
    def reported(self) -> tuple[str, ...]:
        """Sorted, de-duplicated union of MissingInRepo and DivergedFromRepo."""
        return tuple(sorted(set(self.missing_in_repo) | set(self.diverged_from_repo)))

    @property
    def is_clean(self) -> bool:
        """Check if there is nothing to report.

        Returns:
            True if the reported diff is empty.
        """
        return not (self.missing_in_repo or self.diverged_from_repo)

    def get(self, category: DiffCategory) -> tuple[str, ...]:
        """Return the paths of one category."""
        if category == DiffCategory.MODIFIED_BACKUP:
            return self.modified_backup
        if category == DiffCategory.UNPACKAGED:
            return self.unpackaged
        if category == DiffCategory.MISSING_IN_REPO:
            return self.missing_in_repo
        return self.diverged_from_repo

    def to_dict(self, root: Path | str = "/") -> dict[str, object]:
        """Convert to dictionary for JSON serialization.

        Args:
            root: Live root used to turn canonical paths into absolute ones.

        Returns:
            Dictionary representation of the diff result.
        """
        return {
            "clean": self.is_clean,
            "summary": {category.value: len(self.get(category)) for category in DiffCategory},
            **{
                category.value: [to_live_path(root, p) for p in self.get(category)]
                for category in DiffCategory
            },
            "reported": [to_live_path(root, p) for p in self.reported],
        }


def hash_or_state(hasher: ContentHasher, path: str) -> str | HashState:
    """Hash a file, resolving the non-fatal error classes.

    Args:
        hasher: Content hasher.
        path: Absolute path to hash.

    Returns:
        The digest, HashState.MISSING if the path does not exist, or
        HashState.DENIED if it cannot be read (logged).

    Raises:
        ContentReadError: For any other I/O error.
    """
    try:
        return hasher.hash(path)
    except (FileNotFoundError, NotADirectoryError):
        return HashState.MISSING
    except PermissionError:
        logger.warning("Skipping %s: permission denied", path)
        return HashState.DENIED
    except OSError as e:
        msg = f"Cannot read {path}: {e}"
        raise ContentReadError(msg) from e


def _map_ordered(fn: Callable[[T], R], items: Sequence[T], jobs: int) -> list[R]:
    """Apply fn to items, optionally on a thread pool, keeping input order."""
    if jobs <= 1 or len(items) < 2:
        return [fn(item) for item in items]
    with ThreadPoolExecutor(max_workers=jobs) as executor:
        return list(executor.map(fn, items))


def find_unpackaged(live: Iterable[str], package_owned: frozenset[str]) -> tuple[str, ...]:
    """Live files absent from the package-owned set."""
    return tuple(sorted(p for p in live if p not in package_owned))


def find_modified_backups(
    inventories: Inventories,
    *,
    root: Path,
    matcher: IgnoreMatcher,
    hasher: ContentHasher,
    jobs: int = 1,
) -> tuple[str, ...]:
    """Backup files whose live hash no longer matches the pristine hash.

    Ignored paths are dropped before hashing. A backup file missing from
    disk is not modified; an unreadable one is skipped.
    """
    candidates = sorted(
        p for p in inventories.backup if not matcher.matches(to_live_path(root, p))
    )

    def is_modified(path: str) -> bool:
        actual = hash_or_state(hasher, to_live_path(root, path))
        if isinstance(actual, HashState):
            return False
        return actual != inventories.backup[path].lower()

    flags = _map_ordered(is_modified, candidates, jobs)
    return tuple(p for p, modified in zip(candidates, flags, strict=True) if modified)


def find_diverged(
    inventories: Inventories,
    *,
    root: Path,
    repo: Path,
    matcher: IgnoreMatcher,
    hasher: ContentHasher,
    jobs: int = 1,
) -> tuple[str, ...]:
    """Repository files whose live copy differs.

    A copy missing on either side counts as a divergence. A copy that
    cannot be read on either side makes the comparison inconclusive and
    the path is skipped.
    """
    candidates = sorted(
        p for p in inventories.repo if not matcher.matches(to_live_path(root, p))
    )

    def is_diverged(path: str) -> bool:
        live_hash = hash_or_state(hasher, to_live_path(root, path))
        if live_hash is HashState.DENIED:
            return False
        repo_hash = hash_or_state(hasher, to_live_path(repo, path))
        if repo_hash is HashState.DENIED:
            return False
        return live_hash != repo_hash

    flags = _map_ordered(is_diverged, candidates, jobs)
    return tuple(p for p, diverged in zip(candidates, flags, strict=True) if diverged)


def reconcile(
    inventories: Inventories,
    *,
    root: Path,
    repo: Path,
    matcher: IgnoreMatcher,
    hasher: ContentHasher,
    jobs: int = 1,
) -> DiffResult:
    """Compute all diff categories from a set of inventories.

    Args:
        inventories: Snapshot of the four inventories.
        root: Live root.
        repo: Repository root.
        matcher: Ignore matcher, consulted with live paths before any hash.
        hasher: Content hasher.
        jobs: Hashing worker count (1 = sequential).

    Returns:
        Immutable DiffResult.

    Raises:
        ContentReadError: On a fatal read error while hashing.
    """
    unpackaged = find_unpackaged(inventories.live, inventories.package_owned)
    modified = find_modified_backups(
        inventories, root=root, matcher=matcher, hasher=hasher, jobs=jobs
    )
    diverged = find_diverged(
        inventories, root=root, repo=repo, matcher=matcher, hasher=hasher, jobs=jobs
    )
    missing = tuple(sorted((set(modified) | set(unpackaged)) - inventories.repo))

    logger.debug(
        "Reconciled: %d modified, %d unpackaged, %d missing in repo, %d diverged",
        len(modified),
        len(unpackaged),
        len(missing),
        len(diverged),
    )
    return DiffResult(
        modified_backup=modified,
        unpackaged=unpackaged,
        missing_in_repo=missing,
        diverged_from_repo=diverged,
    )


def find_deleted_files(
    inventories: Inventories,
    *,
    root: Path,
    matcher: IgnoreMatcher,
) -> tuple[str, ...]:
    """Package-owned paths that no longer exist on disk.

    Ignored paths are skipped. Only existence is checked (lstat), nothing
    is hashed.
    """
    deleted: list[str] = []
    for path in sorted(inventories.package_owned):
        live_path = to_live_path(root, path)
        if matcher.matches(live_path):
            continue
        try:
            os.lstat(live_path)
        except (FileNotFoundError, NotADirectoryError):
            deleted.append(path)
        except PermissionError:
            logger.warning("Skipping %s: permission denied", live_path)
        except OSError as e:
            msg = f"Cannot stat {live_path}: {e}"
            raise ContentReadError(msg) from e
    return tuple(deleted)
