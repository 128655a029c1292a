"""pacman local database reader.

Reads the libalpm local database directly: every installed package has a
directory ``<dbpath>/local/<name>-<version>/`` holding a ``desc`` file
(``%NAME%``, ``%VERSION%``, ...) and a ``files`` file with the
``%FILES%`` and ``%BACKUP%`` sections. Backup lines are
``<path>\\t<md5>``.
"""

import logging
from collections.abc import Iterator
from pathlib import Path

from sysdiff.core.errors import PackageDatabaseUnavailableError
from sysdiff.database.base import (
    BackupFile,
    InstalledPackage,
    PackageDatabase,
    canonical_package_path,
)

logger = logging.getLogger(__name__)


def parse_sections(text: str) -> dict[str, list[str]]:
    """Parse an alpm database file into its %SECTION% blocks.

    Args:
        text: Contents of a desc or files entry.

    Returns:
        Mapping of section name (without the % markers) to its value lines.
    """
    sections: dict[str, list[str]] = {}
    current: list[str] | None = None
    for line in text.splitlines():
        if len(line) > 2 and line.startswith("%") and line.endswith("%"):
            current = sections.setdefault(line[1:-1], [])
            continue
        if not line:
            current = None
            continue
        if current is not None:
            current.append(line)
    return sections


class PacmanDatabase(PackageDatabase):
    """Package database backed by pacman's local db directory."""

    default_dbpath = Path("/var/lib/pacman")

    @property
    def name(self) -> str:
        """Return pacman as the backend name."""
        return "pacman"

    @property
    def local_dir(self) -> Path:
        """Directory holding one entry per installed package."""
        return self.dbpath / "local"

    def is_available(self) -> bool:
        """Check if the local database directory exists."""
        return self.local_dir.is_dir()

    def packages(self) -> Iterator[InstalledPackage]:
        """Yield all installed pacman packages.

        Yields:
            InstalledPackage for each entry in the local database.

        Raises:
            PackageDatabaseUnavailableError: If the local database is missing
                or an entry cannot be read.
        """
        if not self.is_available():
            msg = f"pacman database not found: {self.local_dir}"
            raise PackageDatabaseUnavailableError(msg)

        try:
            entries = sorted(p for p in self.local_dir.iterdir() if p.is_dir())
        except OSError as e:
            msg = f"Cannot read pacman database {self.local_dir}: {e}"
            raise PackageDatabaseUnavailableError(msg) from e

        for entry in entries:
            package = self._read_entry(entry)
            if package is not None:
                yield package

    def _read_entry(self, entry: Path) -> InstalledPackage | None:
        """Read one package directory.

        Args:
            entry: Package directory inside local/.

        Returns:
            InstalledPackage, or None if the directory has no desc file.

        Raises:
            PackageDatabaseUnavailableError: If a database file cannot be read.
        """
        desc_path = entry / "desc"
        files_path = entry / "files"
        if not desc_path.is_file():
            logger.debug("Skipping local db entry without desc: %s", entry)
            return None

        try:
            desc = parse_sections(desc_path.read_text(encoding="utf-8", errors="surrogateescape"))
            files = (
                parse_sections(files_path.read_text(encoding="utf-8", errors="surrogateescape"))
                if files_path.exists()
                else {}
            )
        except OSError as e:
            msg = f"Cannot read pacman database entry {entry}: {e}"
            raise PackageDatabaseUnavailableError(msg) from e

        name = desc.get("NAME", [entry.name])[0]
        version = desc.get("VERSION", [""])[0]

        owned = tuple(
            canonical_package_path(f) for f in files.get("FILES", []) if not f.endswith("/")
        )

        backups: list[BackupFile] = []
        for line in files.get("BACKUP", []):
            path, sep, md5 = line.partition("\t")
            if not sep:
                logger.debug("Skipping malformed backup line in %s: %r", entry, line)
                continue
            backups.append(BackupFile(path=canonical_package_path(path), md5=md5.strip()))

        return InstalledPackage(
            name=name,
            version=version,
            files=owned,
            backup_files=tuple(backups),
        )
