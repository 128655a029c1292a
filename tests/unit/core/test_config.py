"""Unit tests for configuration loading and saving."""

import tomllib
from pathlib import Path

import pytest
from pydantic import ValidationError
from sysdiff.core.config import (
    SysdiffConfig,
    apply_overrides,
    config_to_dict,
    load_config,
    save_config,
)
from sysdiff.core.errors import ConfigError, ConfigParseError
from sysdiff.core.paths import DEFAULT_IGNORE, DEFAULT_REPO, DEFAULT_ROOT


class TestSysdiffConfig:
    """Tests for SysdiffConfig model."""

    def test_defaults(self) -> None:
        """Defaults target the running system."""
        config = SysdiffConfig()

        assert config.root == DEFAULT_ROOT
        assert config.repo == DEFAULT_REPO
        assert config.ignore == DEFAULT_IGNORE
        assert config.backend == "auto"
        assert config.repo_lister == "walk"
        assert config.dbpath is None
        assert config.jobs == 1
        assert config.use_default_ignores is True

    def test_unknown_field_rejected(self) -> None:
        """Typos in the config are errors, not silently ignored."""
        with pytest.raises(ValidationError):
            SysdiffConfig.model_validate({"roots": "/"})

    def test_jobs_bounds(self) -> None:
        """jobs must be between 1 and 64."""
        with pytest.raises(ValidationError):
            SysdiffConfig(jobs=0)
        with pytest.raises(ValidationError):
            SysdiffConfig(jobs=65)

    def test_roots_made_absolute(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Relative roots are resolved against the working directory."""
        monkeypatch.chdir(tmp_path)

        config = SysdiffConfig(root=Path("live"), repo=Path("repo/"))

        assert config.root == Path.cwd() / "live"
        assert config.repo == Path.cwd() / "repo"

    def test_backend_choices(self) -> None:
        """Only known backends are accepted."""
        with pytest.raises(ValidationError):
            SysdiffConfig.model_validate({"backend": "rpm"})


class TestLoadConfig:
    """Tests for load_config function."""

    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        """No config file means default settings."""
        assert load_config(tmp_path / "config.toml") == SysdiffConfig()

    def test_reads_values(self, tmp_path: Path) -> None:
        """Values from the file override the defaults."""
        path = tmp_path / "config.toml"
        path.write_text('root = "/mnt"\nbackend = "dpkg"\njobs = 4\nquick = true\n')

        config = load_config(path)

        assert config.root == Path("/mnt")
        assert config.backend == "dpkg"
        assert config.jobs == 4
        assert config.quick is True

    def test_invalid_toml(self, tmp_path: Path) -> None:
        """Broken TOML raises ConfigParseError."""
        path = tmp_path / "config.toml"
        path.write_text("root = [")

        with pytest.raises(ConfigParseError, match="Invalid TOML"):
            load_config(path)

    def test_invalid_content(self, tmp_path: Path) -> None:
        """Schema violations raise ConfigError."""
        path = tmp_path / "config.toml"
        path.write_text("jobs = 1000\n")

        with pytest.raises(ConfigError, match="Invalid config content"):
            load_config(path)


class TestApplyOverrides:
    """Tests for apply_overrides function."""

    def test_none_values_ignored(self) -> None:
        """Options that were not given keep the file value."""
        base = SysdiffConfig(jobs=4)

        assert apply_overrides(base, jobs=None, root=None) is base

    def test_values_applied(self) -> None:
        """Given options replace config values."""
        config = apply_overrides(SysdiffConfig(), root=Path("/mnt"), strict=True)

        assert config.root == Path("/mnt")
        assert config.strict is True

    def test_false_is_an_override(self) -> None:
        """An explicit False still overrides."""
        config = apply_overrides(SysdiffConfig(quick=True), quick=False)

        assert config.quick is False

    def test_invalid_value(self) -> None:
        """Invalid overrides raise ConfigError."""
        with pytest.raises(ConfigError, match="Invalid option value"):
            apply_overrides(SysdiffConfig(), backend="rpm")


class TestSaveConfig:
    """Tests for save_config function."""

    def test_round_trip(self, tmp_path: Path) -> None:
        """A saved config loads back equal."""
        path = tmp_path / "nested" / "config.toml"
        config = SysdiffConfig(root=Path("/mnt"), jobs=8, repo_lister="git")

        saved = save_config(config, path)

        assert saved == path
        assert load_config(path) == config

    def test_none_values_omitted(self, tmp_path: Path) -> None:
        """dbpath=None is left out of the TOML file."""
        path = tmp_path / "config.toml"

        save_config(SysdiffConfig(), path)

        with open(path, "rb") as f:
            data = tomllib.load(f)
        assert "dbpath" not in data
        assert data["root"] == "/"

    def test_no_temp_files_left(self, tmp_path: Path) -> None:
        """The atomic write leaves only the config file."""
        save_config(SysdiffConfig(), tmp_path / "config.toml")

        assert [p.name for p in tmp_path.iterdir()] == ["config.toml"]

    def test_config_to_dict_is_json_safe(self) -> None:
        """Paths are serialized as strings."""
        data = config_to_dict(SysdiffConfig(dbpath=Path("/var/lib/pacman")))

        assert data["dbpath"] == "/var/lib/pacman"
        assert isinstance(data["root"], str)
