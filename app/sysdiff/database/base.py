"""Abstract base class for package databases.

A package database is a read-only collaborator that enumerates installed
packages together with the files they own and the pristine hashes of
their backup (configuration) files.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True, slots=True)
class BackupFile:
    """A backup file recorded by the package manager.

    Attributes:
        path: Canonical path ("/etc/pacman.conf").
        md5: Pristine md5 hex digest recorded at install time.
    """

    path: str
    md5: str


@dataclass(frozen=True, slots=True)
class InstalledPackage:
    """Represents one installed package as seen by the package database.

    Attributes:
        name: Package name (e.g., 'pacman', 'openssh-server').
        version: Installed version string.
        files: Canonical paths owned by the package.
        backup_files: Backup files with their pristine hashes.
    """

    name: str
    version: str
    files: tuple[str, ...] = field(default=())
    backup_files: tuple[BackupFile, ...] = field(default=())

    def __post_init__(self) -> None:
        """Validate package data after initialization."""
        if not self.name:
            msg = "Package name cannot be empty"
            raise ValueError(msg)


class PackageDatabase(ABC):
    """Abstract base class for all package databases.

    Example:
        >>> db = PacmanDatabase()
        >>> if db.is_available():
        ...     for pkg in db.packages():
        ...         print(pkg.name, len(pkg.files))
    """

    #: Default database location for this backend.
    default_dbpath: Path

    def __init__(self, dbpath: Path | None = None) -> None:
        self.dbpath = dbpath if dbpath is not None else self.default_dbpath

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the backend name ("pacman", "dpkg")."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the database exists at dbpath.

        Returns:
            True if the database can be read, False otherwise.
        """

    @abstractmethod
    def packages(self) -> Iterator[InstalledPackage]:
        """Yield every installed package.

        Raises:
            PackageDatabaseUnavailableError: If the database cannot be read.
        """


def canonical_package_path(name: str) -> str:
    """Normalize a path recorded by a package manager.

    pacman stores "etc/pacman.conf", dpkg stores "/etc/dpkg/dpkg.cfg";
    both become "/etc/...".
    """
    name = name.strip()
    if not name.startswith("/"):
        name = "/" + name
    if len(name) > 1:
        name = name.rstrip("/")
    return name
