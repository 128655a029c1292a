"""XDG-compliant path management for sysdiff.

This module provides standardized paths following the XDG Base Directory
Specification for user configuration, plus the system-wide defaults used
when no configuration overrides them.

XDG defaults:
- Config: ~/.config/sysdiff/
"""

import os
from pathlib import Path

# Application identifier for directory naming
APP_NAME = "sysdiff"

# System-wide defaults
DEFAULT_ROOT = Path("/")
DEFAULT_REPO = Path("/usr/share/sysdiff")
DEFAULT_IGNORE = Path("/etc/sysdiff/ignore")


def _get_xdg_dir(env_var: str, default_subdir: str) -> Path:
    """Get XDG directory respecting environment variable override.

    Args:
        env_var: XDG environment variable name (e.g., "XDG_CONFIG_HOME").
        default_subdir: Default subdirectory under home (e.g., ".config").

    Returns:
        Path to the application-specific directory.
    """
    base = os.environ.get(env_var)
    if base:
        return Path(base) / APP_NAME
    return Path.home() / default_subdir / APP_NAME


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Returns:
        Path to ~/.config/sysdiff/ (or XDG_CONFIG_HOME/sysdiff/).
    """
    return _get_xdg_dir("XDG_CONFIG_HOME", ".config")


def get_config_path() -> Path:
    """Get the default configuration file path.

    Returns:
        Path to ~/.config/sysdiff/config.toml.
    """
    return get_config_dir() / "config.toml"


def get_theme_path() -> Path:
    """Get the user theme override path.

    Returns:
        Path to ~/.config/sysdiff/theme.toml.
    """
    return get_config_dir() / "theme.toml"


def to_live_path(root: Path | str, path: str) -> str:
    """Join a canonical path onto a tree root.

    Canonical paths are absolute and relative to the tree root, so the
    root "/" leaves them unchanged.

    Args:
        root: Root of the tree (live root or repository root).
        path: Canonical path such as "/etc/pacman.conf".

    Returns:
        Absolute path of the entry inside the tree.
    """
    base = str(root).rstrip("/")
    return f"{base}{path}"


def to_canonical(root: Path | str, path: str) -> str:
    """Strip a tree root from an absolute path.

    Args:
        root: Root of the tree the path lives in.
        path: Absolute path inside that tree.

    Returns:
        Canonical "/"-prefixed path relative to root.
    """
    base = str(root).rstrip("/")
    rel = path[len(base) :] if base and path.startswith(base) else path
    if not rel.startswith("/"):
        rel = "/" + rel
    return rel
