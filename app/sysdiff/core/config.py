"""Configuration model and file I/O.

Configuration is stored in ~/.config/sysdiff/config.toml. Every field is
optional in the file; command-line options override file values.
"""

import logging
import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated, Any, Literal

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from sysdiff.core.errors import ConfigError, ConfigParseError
from sysdiff.core.paths import DEFAULT_IGNORE, DEFAULT_REPO, DEFAULT_ROOT, get_config_path

logger = logging.getLogger(__name__)

BackendName = Literal["auto", "pacman", "dpkg"]
ListerName = Literal["walk", "git"]


class SysdiffConfig(BaseModel):
    """Settings for one sysdiff run.

    Attributes:
        root: Live tree root.
        dbpath: Package database location (None = backend default).
        backend: Package database backend, or "auto" to detect.
        repo: Shadow repository root.
        repo_lister: How the repository is listed ("walk" or "git").
        ignore: Ignore rule file or directory.
        use_default_ignores: Also apply the bundled default rules.
        quick: Also apply the bundled quick preset.
        strict: Abort on permission errors while walking.
        jobs: Hashing worker count.
    """

    model_config = ConfigDict(extra="forbid")

    root: Annotated[Path, Field(description="Live tree root")] = DEFAULT_ROOT
    dbpath: Annotated[
        Path | None,
        Field(description="Package database location (None = backend default)"),
    ] = None
    backend: Annotated[BackendName, Field(description="Package database backend")] = "auto"
    repo: Annotated[Path, Field(description="Shadow repository root")] = DEFAULT_REPO
    repo_lister: Annotated[ListerName, Field(description="Repository lister")] = "walk"
    ignore: Annotated[Path, Field(description="Ignore file or directory")] = DEFAULT_IGNORE
    use_default_ignores: bool = True
    quick: bool = False
    strict: bool = False
    jobs: Annotated[int, Field(ge=1, le=64, description="Hashing workers (1-64)")] = 1

    @field_validator("root", "repo")
    @classmethod
    def make_absolute(cls, v: Path) -> Path:
        """Anchor tree roots so ignore rules can be matched against live paths."""
        return Path(os.path.abspath(v))


def load_config(path: Path | None = None) -> SysdiffConfig:
    """Load configuration from a TOML file.

    A missing file yields the defaults.

    Args:
        path: Path to the config file. If None, uses the default path.

    Returns:
        Validated SysdiffConfig.

    Raises:
        ConfigParseError: If the TOML syntax is invalid.
        ConfigError: If the file cannot be read or the content is invalid.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        logger.debug("No config file at %s, using defaults", config_path)
        return SysdiffConfig()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax in {config_path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config {config_path}: {e}") from e

    try:
        return SysdiffConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config content in {config_path}: {e}") from e


def apply_overrides(config: SysdiffConfig, **overrides: Any) -> SysdiffConfig:
    """Return a new config with the non-None overrides applied.

    Raises:
        ConfigError: If an override value is invalid.
    """
    updates = {key: value for key, value in overrides.items() if value is not None}
    if not updates:
        return config
    try:
        return SysdiffConfig.model_validate({**config.model_dump(), **updates})
    except ValidationError as e:
        raise ConfigError(f"Invalid option value: {e}") from e


def config_to_dict(config: SysdiffConfig) -> dict[str, object]:
    """Convert a config to a TOML-serializable dictionary.

    None values are dropped, TOML has no null.
    """
    return config.model_dump(mode="json", exclude_none=True)


def save_config(config: SysdiffConfig, path: Path | None = None) -> Path:
    """Save configuration to a TOML file.

    The file is written atomically by first writing to a temporary file
    and then using os.replace() for atomic rename.

    Args:
        config: The config to save.
        path: Path to save the config. If None, uses the default path.

    Returns:
        Path where the config was saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    config_path = path or get_config_path()

    tmp_path: Path | None = None
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with NamedTemporaryFile(
            mode="wb",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(config_to_dict(config), f)
        os.replace(str(tmp_path), str(config_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ConfigError(f"Failed to write config {config_path}: {e}") from e

    return config_path
