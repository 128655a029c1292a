"""Unit tests for the reconciliation engine."""

import hashlib
import logging
from pathlib import Path
from types import MappingProxyType
from unittest.mock import patch

import pytest
from sysdiff.core.engine import (
    DiffCategory,
    DiffResult,
    HashState,
    find_deleted_files,
    find_unpackaged,
    hash_or_state,
    reconcile,
)
from sysdiff.core.errors import ContentReadError
from sysdiff.core.hasher import ContentHasher
from sysdiff.core.ignore import IgnoreMatcher
from sysdiff.core.inventory import Inventories, build_live_files


class RecordingHasher(ContentHasher):
    """ContentHasher that remembers every path it was asked to hash."""

    def __init__(self) -> None:
        super().__init__()
        self.calls: list[str] = []

    def hash(self, path: str) -> str:
        self.calls.append(path)
        return super().hash(path)


class DenyingHasher(ContentHasher):
    """ContentHasher that cannot read anything below one directory."""

    def __init__(self, denied: Path) -> None:
        super().__init__()
        self.denied = f"{denied}/"

    def hash(self, path: str) -> str:
        if path.startswith(self.denied):
            raise PermissionError(13, "Permission denied", path)
        return super().hash(path)


def _md5(content: str) -> str:
    return hashlib.md5(content.encode()).hexdigest()


def _write(root: Path, path: str, content: str) -> None:
    target = root / path.lstrip("/")
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content)


def _inventories(
    *,
    owned: set[str] | None = None,
    backup: dict[str, str] | None = None,
    live: set[str] | None = None,
    repo: set[str] | None = None,
) -> Inventories:
    return Inventories(
        package_owned=frozenset(owned or ()),
        backup=MappingProxyType(dict(backup or {})),
        live=frozenset(live or ()),
        repo=frozenset(repo or ()),
    )


@pytest.fixture
def trees(tmp_path: Path) -> tuple[Path, Path]:
    root = tmp_path / "live"
    repo = tmp_path / "repo"
    root.mkdir()
    repo.mkdir()
    return root, repo


class TestScenarios:
    """End-to-end reconciliation of small hand-built states."""

    def test_modified_backup_missing_from_repo(self, trees: tuple[Path, Path]) -> None:
        """A changed backup file the repo lacks is modified and missing."""
        root, repo = trees
        _write(root, "/etc/a.conf", "edited")
        inv = _inventories(
            owned={"/etc/a.conf"},
            backup={"/etc/a.conf": _md5("pristine")},
            live={"/etc/a.conf"},
        )

        result = reconcile(
            inv, root=root, repo=repo, matcher=IgnoreMatcher(), hasher=ContentHasher()
        )

        assert result.modified_backup == ("/etc/a.conf",)
        assert result.missing_in_repo == ("/etc/a.conf",)
        assert result.unpackaged == ()

    def test_identical_repo_copy_not_diverged(self, trees: tuple[Path, Path]) -> None:
        """A repo file identical to the live copy is not reported."""
        root, repo = trees
        _write(root, "/etc/b.conf", "same")
        _write(repo, "/etc/b.conf", "same")
        inv = _inventories(owned={"/etc/b.conf"}, live={"/etc/b.conf"}, repo={"/etc/b.conf"})

        result = reconcile(
            inv, root=root, repo=repo, matcher=IgnoreMatcher(), hasher=ContentHasher()
        )

        assert result.diverged_from_repo == ()
        assert result.is_clean is True

    def test_ignored_unowned_file_not_unpackaged(self, trees: tuple[Path, Path]) -> None:
        """Files under an ignored tree never reach Unpackaged."""
        root, repo = trees
        _write(root, "/var/log/x.log", "log")
        matcher = IgnoreMatcher.from_lines([f"{root}/var/log/*"])
        live = build_live_files(root, matcher)
        inv = _inventories(live=set(live))

        result = reconcile(inv, root=root, repo=repo, matcher=matcher, hasher=ContentHasher())

        assert "/var/log/x.log" not in live
        assert result.unpackaged == ()

    def test_unowned_file_unpackaged_and_missing(self, trees: tuple[Path, Path]) -> None:
        """An unowned, unignored file the repo lacks is reported."""
        root, repo = trees
        _write(root, "/opt/tool", "bin")
        inv = _inventories(live={"/opt/tool"})

        result = reconcile(
            inv, root=root, repo=repo, matcher=IgnoreMatcher(), hasher=ContentHasher()
        )

        assert result.unpackaged == ("/opt/tool",)
        assert result.missing_in_repo == ("/opt/tool",)
        assert result.reported == ("/opt/tool",)


class TestModifiedBackup:
    """Tests for backup file comparison."""

    def test_unchanged_backup_excluded(self, trees: tuple[Path, Path]) -> None:
        """A backup file with its pristine content is not modified."""
        root, repo = trees
        _write(root, "/etc/c.conf", "pristine")
        inv = _inventories(backup={"/etc/c.conf": _md5("pristine")}, live={"/etc/c.conf"})

        result = reconcile(
            inv, root=root, repo=repo, matcher=IgnoreMatcher(), hasher=ContentHasher()
        )

        assert result.modified_backup == ()

    def test_recorded_hash_case_insensitive(self, trees: tuple[Path, Path]) -> None:
        """Upper-case recorded digests compare equal."""
        root, repo = trees
        _write(root, "/etc/c.conf", "pristine")
        inv = _inventories(backup={"/etc/c.conf": _md5("pristine").upper()})

        result = reconcile(
            inv, root=root, repo=repo, matcher=IgnoreMatcher(), hasher=ContentHasher()
        )

        assert result.modified_backup == ()

    def test_missing_backup_excluded(self, trees: tuple[Path, Path]) -> None:
        """A backup file deleted from disk is not modified."""
        root, repo = trees
        inv = _inventories(backup={"/etc/gone.conf": _md5("x")})

        result = reconcile(
            inv, root=root, repo=repo, matcher=IgnoreMatcher(), hasher=ContentHasher()
        )

        assert result.modified_backup == ()
        assert result.missing_in_repo == ()

    def test_ignored_backup_never_hashed(self, trees: tuple[Path, Path]) -> None:
        """Ignored backup paths are dropped before any hash is computed."""
        root, repo = trees
        _write(root, "/etc/shadow", "secret")
        _write(root, "/etc/keep.conf", "edited")
        inv = _inventories(
            backup={"/etc/shadow": _md5("orig"), "/etc/keep.conf": _md5("orig")},
        )
        hasher = RecordingHasher()

        result = reconcile(
            inv,
            root=root,
            repo=repo,
            matcher=IgnoreMatcher.from_lines([f"{root}/etc/shadow"]),
            hasher=hasher,
        )

        assert result.modified_backup == ("/etc/keep.conf",)
        assert not any(call.endswith("/etc/shadow") for call in hasher.calls)

    def test_unreadable_backup_skipped(
        self, trees: tuple[Path, Path], caplog: pytest.LogCaptureFixture
    ) -> None:
        """A permission error skips the file and logs it."""
        caplog.set_level(logging.WARNING)
        root, repo = trees
        inv = _inventories(backup={"/etc/locked.conf": _md5("x")})

        with patch.object(ContentHasher, "hash", side_effect=PermissionError(13, "denied")):
            result = reconcile(
                inv, root=root, repo=repo, matcher=IgnoreMatcher(), hasher=ContentHasher()
            )

        assert result.modified_backup == ()
        assert "permission denied" in caplog.text


class TestDiverged:
    """Tests for repository comparison."""

    def test_different_content_diverges(self, trees: tuple[Path, Path]) -> None:
        """A repo copy with different content is diverged."""
        root, repo = trees
        _write(root, "/etc/x.conf", "live")
        _write(repo, "/etc/x.conf", "repo")
        inv = _inventories(live={"/etc/x.conf"}, repo={"/etc/x.conf"})

        result = reconcile(
            inv, root=root, repo=repo, matcher=IgnoreMatcher(), hasher=ContentHasher()
        )

        assert result.diverged_from_repo == ("/etc/x.conf",)

    def test_missing_live_copy_diverges(self, trees: tuple[Path, Path]) -> None:
        """A repo file with no live counterpart counts as diverged."""
        root, repo = trees
        _write(repo, "/etc/only-in-repo.conf", "repo")
        inv = _inventories(repo={"/etc/only-in-repo.conf"})

        result = reconcile(
            inv, root=root, repo=repo, matcher=IgnoreMatcher(), hasher=ContentHasher()
        )

        assert result.diverged_from_repo == ("/etc/only-in-repo.conf",)

    def test_missing_repo_copy_diverges(self, trees: tuple[Path, Path]) -> None:
        """A listed repo file absent from the repo tree counts as diverged."""
        root, repo = trees
        _write(root, "/etc/listed.conf", "live")
        inv = _inventories(live={"/etc/listed.conf"}, repo={"/etc/listed.conf"})

        result = reconcile(
            inv, root=root, repo=repo, matcher=IgnoreMatcher(), hasher=ContentHasher()
        )

        assert result.diverged_from_repo == ("/etc/listed.conf",)

    def test_unreadable_live_copy_skipped(
        self, trees: tuple[Path, Path], caplog: pytest.LogCaptureFixture
    ) -> None:
        """A permission error on the live side excludes the path."""
        caplog.set_level(logging.WARNING)
        root, repo = trees
        _write(root, "/etc/locked.conf", "live")
        _write(repo, "/etc/locked.conf", "repo")
        inv = _inventories(live={"/etc/locked.conf"}, repo={"/etc/locked.conf"})

        result = reconcile(
            inv, root=root, repo=repo, matcher=IgnoreMatcher(), hasher=DenyingHasher(root)
        )

        assert result.diverged_from_repo == ()
        assert "permission denied" in caplog.text

    def test_unreadable_repo_copy_skipped(
        self, trees: tuple[Path, Path], caplog: pytest.LogCaptureFixture
    ) -> None:
        """A permission error on the repository side excludes the path."""
        caplog.set_level(logging.WARNING)
        root, repo = trees
        _write(root, "/etc/locked.conf", "live")
        _write(repo, "/etc/locked.conf", "repo")
        inv = _inventories(live={"/etc/locked.conf"}, repo={"/etc/locked.conf"})

        result = reconcile(
            inv, root=root, repo=repo, matcher=IgnoreMatcher(), hasher=DenyingHasher(repo)
        )

        assert result.diverged_from_repo == ()
        assert "permission denied" in caplog.text

    def test_ignored_repo_path_not_compared(self, trees: tuple[Path, Path]) -> None:
        """Ignored repository paths are never hashed."""
        root, repo = trees
        _write(repo, "/var/log/old.log", "repo")
        hasher = RecordingHasher()
        inv = _inventories(repo={"/var/log/old.log"})

        result = reconcile(
            inv,
            root=root,
            repo=repo,
            matcher=IgnoreMatcher.from_lines([f"{root}/var/log"]),
            hasher=hasher,
        )

        assert result.diverged_from_repo == ()
        assert hasher.calls == []

    def test_repo_file_present_not_missing(self, trees: tuple[Path, Path]) -> None:
        """A modified file the repo already has is not MissingInRepo."""
        root, repo = trees
        _write(root, "/etc/a.conf", "edited")
        _write(repo, "/etc/a.conf", "edited")
        inv = _inventories(
            backup={"/etc/a.conf": _md5("pristine")},
            live={"/etc/a.conf"},
            owned={"/etc/a.conf"},
            repo={"/etc/a.conf"},
        )

        result = reconcile(
            inv, root=root, repo=repo, matcher=IgnoreMatcher(), hasher=ContentHasher()
        )

        assert result.modified_backup == ("/etc/a.conf",)
        assert result.missing_in_repo == ()
        assert result.diverged_from_repo == ()


class TestDeterminism:
    """Output ordering and idempotence."""

    def test_categories_sorted(self, trees: tuple[Path, Path]) -> None:
        """Every category is sorted by path."""
        root, repo = trees
        names = ["/z", "/a", "/m/n", "/b"]
        for name in names:
            _write(root, name, name)
        inv = _inventories(live=set(names))

        result = reconcile(
            inv, root=root, repo=repo, matcher=IgnoreMatcher(), hasher=ContentHasher()
        )

        assert list(result.unpackaged) == sorted(names)
        assert list(result.missing_in_repo) == sorted(names)

    def test_parallel_matches_sequential(self, trees: tuple[Path, Path]) -> None:
        """Hashing on a thread pool yields the same result."""
        root, repo = trees
        backup = {}
        for i in range(20):
            path = f"/etc/f{i:02d}.conf"
            _write(root, path, "edited" if i % 3 else "pristine")
            _write(repo, path, "repo" if i % 2 else ("edited" if i % 3 else "pristine"))
            backup[path] = _md5("pristine")
        inv = _inventories(backup=backup, live=set(backup), owned=set(backup), repo=set(backup))

        sequential = reconcile(
            inv, root=root, repo=repo, matcher=IgnoreMatcher(), hasher=ContentHasher(), jobs=1
        )
        parallel = reconcile(
            inv, root=root, repo=repo, matcher=IgnoreMatcher(), hasher=ContentHasher(), jobs=8
        )

        assert sequential == parallel
        assert sequential.modified_backup
        assert sequential.diverged_from_repo

    def test_reconcile_is_idempotent(self, trees: tuple[Path, Path]) -> None:
        """Two runs over the same state agree."""
        root, repo = trees
        _write(root, "/opt/tool", "x")
        inv = _inventories(live={"/opt/tool"})
        kwargs = {"root": root, "repo": repo, "matcher": IgnoreMatcher()}

        first = reconcile(inv, hasher=ContentHasher(), **kwargs)  # type: ignore[arg-type]
        second = reconcile(inv, hasher=ContentHasher(), **kwargs)  # type: ignore[arg-type]

        assert first == second


class TestDiffResult:
    """Tests for DiffResult helpers."""

    def test_reported_is_sorted_union(self) -> None:
        """reported merges and de-duplicates the two reported categories."""
        result = DiffResult(
            modified_backup=(),
            unpackaged=(),
            missing_in_repo=("/b", "/c"),
            diverged_from_repo=("/a", "/c"),
        )

        assert result.reported == ("/a", "/b", "/c")

    def test_get_by_category(self) -> None:
        """get() returns the tuple of the named category."""
        result = DiffResult(("/m",), ("/u",), ("/x",), ("/d",))

        assert result.get(DiffCategory.MODIFIED_BACKUP) == ("/m",)
        assert result.get(DiffCategory.UNPACKAGED) == ("/u",)
        assert result.get(DiffCategory.MISSING_IN_REPO) == ("/x",)
        assert result.get(DiffCategory.DIVERGED_FROM_REPO) == ("/d",)

    def test_to_dict_uses_live_paths(self) -> None:
        """to_dict joins paths onto the root and reports counts."""
        result = DiffResult((), ("/opt/tool",), ("/opt/tool",), ())

        data = result.to_dict("/mnt")

        assert data["clean"] is False
        assert data["unpackaged"] == ["/mnt/opt/tool"]
        assert data["reported"] == ["/mnt/opt/tool"]
        assert data["summary"] == {
            "modified-backup": 0,
            "unpackaged": 1,
            "missing-in-repo": 1,
            "diverged-from-repo": 0,
        }


class TestHashOrState:
    """Tests for hash_or_state function."""

    def test_missing(self, tmp_path: Path) -> None:
        """A missing file maps to HashState.MISSING."""
        assert hash_or_state(ContentHasher(), str(tmp_path / "absent")) is HashState.MISSING

    def test_other_error_is_fatal(self) -> None:
        """Unexpected I/O errors raise ContentReadError."""
        with (
            patch.object(ContentHasher, "hash", side_effect=OSError(5, "I/O error")),
            pytest.raises(ContentReadError, match="Cannot read"),
        ):
            hash_or_state(ContentHasher(), "/etc/fstab")


class TestFindUnpackaged:
    """Tests for find_unpackaged function."""

    def test_subtracts_owned(self) -> None:
        """Owned paths are removed, the rest sorted."""
        assert find_unpackaged({"/b", "/a", "/c"}, frozenset({"/b"})) == ("/a", "/c")


class TestFindDeletedFiles:
    """Tests for find_deleted_files function."""

    def test_lists_owned_files_missing_on_disk(self, tmp_path: Path) -> None:
        """Package files that no longer exist are reported."""
        _write(tmp_path, "/usr/bin/present", "")
        inv = _inventories(owned={"/usr/bin/present", "/usr/bin/gone", "/usr/share/doc/x"})

        deleted = find_deleted_files(
            inv, root=tmp_path, matcher=IgnoreMatcher.from_lines([f"{tmp_path}/usr/share/doc"])
        )

        assert deleted == ("/usr/bin/gone",)

    def test_dangling_symlink_is_not_deleted(self, tmp_path: Path) -> None:
        """A dangling package-owned link still exists."""
        (tmp_path / "link").symlink_to(tmp_path / "nowhere")
        inv = _inventories(owned={"/link"})

        assert find_deleted_files(inv, root=tmp_path, matcher=IgnoreMatcher()) == ()
