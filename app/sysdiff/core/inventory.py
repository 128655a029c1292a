"""Inventory builders.

Each builder turns one external source into an immutable path set or
map. The four inventories share the canonical path form, so a path found
in two of them is the same entity.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING

from sysdiff.core.ignore import IgnoreMatcher
from sysdiff.core.walk import walk_tree

if TYPE_CHECKING:
    from sysdiff.database.base import PackageDatabase
    from sysdiff.repo.base import RepoLister

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Inventories:
    """Snapshot of the four inventories for one run.

    Attributes:
        package_owned: Paths owned by any installed package.
        backup: Backup file path -> pristine md5.
        live: Non-ignored files found under the live root.
        repo: Files tracked by the shadow repository.
    """

    package_owned: frozenset[str]
    backup: Mapping[str, str]
    live: frozenset[str]
    repo: frozenset[str]


def build_package_owned_files(database: "PackageDatabase") -> frozenset[str]:
    """Union the file lists of every installed package.

    No ignore filtering is applied: ownership is ground truth.
    """
    owned: set[str] = set()
    count = 0
    for package in database.packages():
        owned.update(package.files)
        count += 1
    logger.debug("%s: %d packages own %d paths", database.name, count, len(owned))
    return frozenset(owned)


def build_backup_records(database: "PackageDatabase") -> Mapping[str, str]:
    """Collect every backup file and its pristine hash."""
    records: dict[str, str] = {}
    for package in database.packages():
        for backup in package.backup_files:
            records[backup.path] = backup.md5
    logger.debug("%s: %d backup files", database.name, len(records))
    return MappingProxyType(records)


def build_live_files(
    root: Path,
    matcher: IgnoreMatcher,
    *,
    strict: bool = False,
) -> frozenset[str]:
    """Walk the live root, pruning ignored directories.

    Raises:
        WalkError: On a fatal walk error (see walk_tree).
    """
    files = frozenset(walk_tree(root, matcher, strict=strict))
    logger.debug("Live tree %s: %d files", root, len(files))
    return files


def build_repo_files(lister: "RepoLister") -> frozenset[str]:
    """List the shadow repository, without ignore filtering."""
    files = lister.list_files()
    logger.debug("Repository %s (%s): %d files", lister.root, lister.name, len(files))
    return files


def build_inventories(
    *,
    database: "PackageDatabase",
    lister: "RepoLister",
    root: Path,
    matcher: IgnoreMatcher,
    strict: bool = False,
) -> Inventories:
    """Run all four builders and return the snapshot.

    The package database is read twice (owned files, backup records) to
    keep each builder independent; both reads see the same on-disk state.
    """
    return Inventories(
        package_owned=build_package_owned_files(database),
        backup=build_backup_records(database),
        live=build_live_files(root, matcher, strict=strict),
        repo=build_repo_files(lister),
    )
