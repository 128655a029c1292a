"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules. The
fake_system fixture lays out a live root, a shadow repository and a
pacman database side by side under tmp_path.
"""

import hashlib
import os
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

import pytest
from sysdiff.core.config import SysdiffConfig


def md5_hex(content: str | bytes) -> str:
    """md5 digest of file content as recorded by a package manager."""
    data = content.encode() if isinstance(content, str) else content
    return hashlib.md5(data).hexdigest()


def write_tree_file(root: Path, path: str, content: str = "", mtime: int | None = None) -> Path:
    """Create a file at a canonical path below root."""
    target = root / path.lstrip("/")
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content)
    if mtime is not None:
        os.utime(target, (mtime, mtime))
    return target


@dataclass
class FakeSystem:
    """A live root, a repository and a pacman database in a temp directory."""

    root: Path
    repo: Path
    dbpath: Path
    ignore: Path

    def live(self, path: str, content: str = "", mtime: int | None = None) -> Path:
        """Create a file in the live tree."""
        return write_tree_file(self.root, path, content, mtime)

    def in_repo(self, path: str, content: str = "", mtime: int | None = None) -> Path:
        """Create a file in the repository."""
        return write_tree_file(self.repo, path, content, mtime)

    def package(
        self,
        name: str,
        files: list[str],
        backup: dict[str, str] | None = None,
        version: str = "1.0-1",
    ) -> Path:
        """Register an installed package in the pacman local database.

        Args:
            name: Package name.
            files: Canonical paths owned by the package.
            backup: Backup path -> pristine content (hashed here).
            version: Package version.
        """
        entry = self.dbpath / "local" / f"{name}-{version}"
        entry.mkdir(parents=True, exist_ok=True)
        (entry / "desc").write_text(f"%NAME%\n{name}\n\n%VERSION%\n{version}\n\n")

        lines = ["%FILES%", *(p.lstrip("/") for p in files), ""]
        if backup:
            lines.append("%BACKUP%")
            lines.extend(f"{p.lstrip('/')}\t{md5_hex(c)}" for p, c in backup.items())
            lines.append("")
        (entry / "files").write_text("\n".join(lines) + "\n")
        return entry

    def config(self, **overrides: object) -> SysdiffConfig:
        """Config pointing at this system with no bundled ignore rules."""
        values: dict[str, object] = {
            "root": self.root,
            "repo": self.repo,
            "dbpath": self.dbpath,
            "backend": "pacman",
            "ignore": self.ignore,
            "use_default_ignores": False,
        }
        values.update(overrides)
        return SysdiffConfig.model_validate(values)

    def cli_args(self) -> list[str]:
        """Command-line options pointing at this system."""
        return [
            "--root",
            str(self.root),
            "--repo",
            str(self.repo),
            "--dbpath",
            str(self.dbpath),
            "--backend",
            "pacman",
            "--ignore",
            str(self.ignore),
        ]


@pytest.fixture(autouse=True)
def isolated_config_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """Point XDG_CONFIG_HOME at a temp dir so no real user config is read."""
    config_home = tmp_path / "xdg-config"
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    yield config_home


@pytest.fixture
def fake_system(tmp_path: Path) -> FakeSystem:
    """Empty live root, empty repository and empty pacman database."""
    root = tmp_path / "live"
    repo = tmp_path / "repo"
    dbpath = tmp_path / "pacman"
    root.mkdir()
    repo.mkdir()
    (dbpath / "local").mkdir(parents=True)
    ignore = tmp_path / "sysdiff.ignore"
    ignore.write_text("# no local rules\n")
    return FakeSystem(root=root, repo=repo, dbpath=dbpath, ignore=ignore)


@pytest.fixture
def sample_status() -> str:
    """Sample dpkg status file with one removed and two installed packages."""
    return """Package: base-files
Status: install ok installed
Priority: required
Architecture: amd64
Version: 12.4
Conffiles:
 /etc/debian_version 8b5e5b1a8b0e2a3b1d3b6bf6d9e9b1c1
 /etc/host.conf 4eb63731c9f5e30903ac4fc07a7fe3d6
Description: Debian base system miscellaneous files
 This package contains the basic filesystem hierarchy.

Package: old-tool
Status: deinstall ok config-files
Architecture: amd64
Version: 0.1
Conffiles:
 /etc/old-tool.conf 00000000000000000000000000000000

Package: libfoo1
Status: install ok installed
Architecture: amd64
Multi-Arch: same
Version: 2.0
Description: foo library
"""
