"""dpkg database reader.

Installed packages and their conffiles come from ``<dbpath>/status``;
owned files come from ``<dbpath>/info/<package>.list`` (or
``<package>:<arch>.list`` for Multi-Arch: same packages).
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


def parse_status(text: str) -> Iterator[dict[str, str]]:
    """Split a dpkg status file into stanzas.

    Continuation lines are folded into their field with newlines, so
    multi-line fields such as Conffiles keep one entry per line.

    Args:
        text: Contents of the status file.

    Yields:
        Mapping of field name to value for each stanza.
    """
    stanza: dict[str, str] = {}
    key: str | None = None
    for line in text.splitlines():
        if not line.strip():
            if stanza:
                yield stanza
            stanza = {}
            key = None
            continue
        if line[0] in " \t":
            if key is not None:
                value = line.strip()
                stanza[key] = f"{stanza[key]}\n{value}" if stanza[key] else value
            continue
        key, _, value = line.partition(":")
        key = key.strip()
        stanza[key] = value.strip()
    if stanza:
        yield stanza


def parse_conffiles(value: str) -> list[BackupFile]:
    """Parse the Conffiles field of a stanza.

    Each line is ``<path> <md5> [obsolete|remove-on-upgrade]``.
    """
    backups: list[BackupFile] = []
    for line in value.splitlines():
        parts = line.split()
        if len(parts) < 2:
            continue
        backups.append(BackupFile(path=canonical_package_path(parts[0]), md5=parts[1]))
    return backups


class DpkgDatabase(PackageDatabase):
    """Package database backed by dpkg's status file and info directory."""

    default_dbpath = Path("/var/lib/dpkg")

    @property
    def name(self) -> str:
        """Return dpkg as the backend name."""
        return "dpkg"

    @property
    def status_path(self) -> Path:
        """Path of the dpkg status file."""
        return self.dbpath / "status"

    @property
    def info_dir(self) -> Path:
        """Directory holding per-package .list files."""
        return self.dbpath / "info"

    def is_available(self) -> bool:
        """Check if the dpkg status file exists."""
        return self.status_path.is_file()

    def packages(self) -> Iterator[InstalledPackage]:
        """Yield all installed dpkg packages.

        Only stanzas whose Status ends in "installed" are reported.

        Raises:
            PackageDatabaseUnavailableError: If the status file or a list
                file cannot be read.
        """
        if not self.is_available():
            msg = f"dpkg status file not found: {self.status_path}"
            raise PackageDatabaseUnavailableError(msg)

        try:
            text = self.status_path.read_text(encoding="utf-8", errors="surrogateescape")
        except OSError as e:
            msg = f"Cannot read dpkg status file {self.status_path}: {e}"
            raise PackageDatabaseUnavailableError(msg) from e

        for stanza in parse_status(text):
            name = stanza.get("Package", "")
            if not name:
                continue
            status = stanza.get("Status", "").split()
            if not status or status[-1] != "installed":
                continue

            yield InstalledPackage(
                name=name,
                version=stanza.get("Version", ""),
                files=tuple(self._read_list(name, stanza.get("Architecture", ""))),
                backup_files=tuple(parse_conffiles(stanza.get("Conffiles", ""))),
            )

    def _read_list(self, name: str, arch: str) -> list[str]:
        """Read the owned-file list of one package.

        Args:
            name: Package name.
            arch: Package architecture, used for multi-arch list names.

        Returns:
            Canonical paths listed for the package (empty if no list file).

        Raises:
            PackageDatabaseUnavailableError: If the list file cannot be read.
        """
        candidates = [self.info_dir / f"{name}:{arch}.list"] if arch else []
        candidates.append(self.info_dir / f"{name}.list")

        for candidate in candidates:
            if not candidate.is_file():
                continue
            try:
                lines = candidate.read_text(encoding="utf-8", errors="surrogateescape").splitlines()
            except OSError as e:
                msg = f"Cannot read dpkg file list {candidate}: {e}"
                raise PackageDatabaseUnavailableError(msg) from e
            # "/." is the package root marker, not a file
            return [
                canonical_package_path(line) for line in lines if line.strip() not in ("", "/.")
            ]

        logger.debug("No file list for dpkg package %s", name)
        return []
