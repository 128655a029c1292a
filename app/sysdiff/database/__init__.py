"""Package database readers.

This module exports the database classes and backend selection helpers.
"""

from pathlib import Path

from sysdiff.core.errors import PackageDatabaseUnavailableError
from sysdiff.database.base import BackupFile, InstalledPackage, PackageDatabase
from sysdiff.database.dpkg import DpkgDatabase
from sysdiff.database.pacman import PacmanDatabase

# Backends tried in order when the backend is "auto"
BACKENDS: dict[str, type[PackageDatabase]] = {
    "pacman": PacmanDatabase,
    "dpkg": DpkgDatabase,
}


def get_database(backend: str = "auto", dbpath: Path | None = None) -> PackageDatabase:
    """Get a package database instance for the selected backend.

    With "auto", the first backend whose database is available wins. An
    explicit dbpath is handed to every candidate.

    Args:
        backend: "auto", "pacman" or "dpkg".
        dbpath: Database location; None uses the backend default.

    Returns:
        An available PackageDatabase.

    Raises:
        PackageDatabaseUnavailableError: If no matching database is available.
    """
    if backend != "auto":
        try:
            db = BACKENDS[backend](dbpath)
        except KeyError as e:
            msg = f"Unknown package database backend: {backend}"
            raise PackageDatabaseUnavailableError(msg) from e
        if not db.is_available():
            msg = f"{backend} database is not available at {db.dbpath}"
            raise PackageDatabaseUnavailableError(msg)
        return db

    tried: list[str] = []
    for cls in BACKENDS.values():
        db = cls(dbpath)
        if db.is_available():
            return db
        tried.append(f"{db.name} ({db.dbpath})")

    msg = f"No package database found, tried: {', '.join(tried)}"
    raise PackageDatabaseUnavailableError(msg)


__all__ = [
    "BACKENDS",
    "BackupFile",
    "DpkgDatabase",
    "InstalledPackage",
    "PackageDatabase",
    "PacmanDatabase",
    "get_database",
]
