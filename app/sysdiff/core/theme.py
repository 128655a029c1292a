"""Console color theme.

The bundled data/theme.toml holds the default palette. A partial
~/.config/sysdiff/theme.toml overrides single entries. Every palette entry
becomes a rich style of the same name.
"""

import functools
import logging
import re
import tomllib
from importlib import resources
from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError, ValidationInfo, field_validator
from rich.theme import Theme

from sysdiff.core.paths import get_theme_path

logger = logging.getLogger(__name__)

_HEX_COLOR = re.compile(r"#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})")

# Styles rendered bold on top of their palette color
_BOLD = frozenset({"heading", "error"})


class ThemeColors(BaseModel):
    """Palette of the sysdiff console, one #RGB or #RRGGBB color per style.

    Attributes:
        muted: Secondary text (reasons, counts, hints).
        heading: Table headers.
        rule: Table borders.
        info: Informational messages.
        success: Completed copies and clean results.
        warning: Warnings and backup or unpackaged counts.
        error: Errors and failed copies.
        to_repo: Copies into the repository, missing-in-repo counts.
        to_live: Copies into the live tree, diverged counts.
    """

    model_config = ConfigDict(extra="forbid")

    muted: str = "#b2bec3"
    heading: str = "#69B9A1"
    rule: str = "#29526d"
    info: str = "#0ec1c8"
    success: str = "#03b971"
    warning: str = "#f5b332"
    error: str = "#f53263"
    to_repo: str = "#c1ff62"
    to_live: str = "#0e8ac8"

    @field_validator("*", mode="before")
    @classmethod
    def check_hex(cls, v: object, info: ValidationInfo) -> str:
        """Accept only hex color codes."""
        if not isinstance(v, str):
            raise ValueError(f"{info.field_name}: color must be a string")
        color = v.strip()
        if not color.startswith("#"):
            raise ValueError(f"{info.field_name}: color must start with '#'")
        if _HEX_COLOR.fullmatch(color) is None:
            raise ValueError(f"{info.field_name}: invalid hex color '{color}'")
        return color

    def styles(self) -> dict[str, str]:
        """Rich style definition for every palette entry."""
        return {
            name: f"bold {color}" if name in _BOLD else color
            for name, color in self.model_dump().items()
        }


def parse_palette(text: str, origin: str) -> dict[str, str]:
    """Read the [colors] table of a theme file.

    Unparseable files and non-string entries are logged and dropped, so a
    broken user theme never keeps the CLI from starting.

    Args:
        text: TOML document.
        origin: Where the text came from, for log messages.

    Returns:
        Style name -> color, possibly empty.
    """
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        logger.warning("Ignoring theme %s: %s", origin, e)
        return {}

    colors = data.get("colors", {})
    if not isinstance(colors, dict):
        logger.warning("Ignoring theme %s: 'colors' is not a table", origin)
        return {}
    return {name: value for name, value in colors.items() if isinstance(value, str)}


def bundled_palette() -> dict[str, str]:
    """Palette shipped in sysdiff.data."""
    text = resources.files("sysdiff.data").joinpath("theme.toml").read_text(encoding="utf-8")
    return parse_palette(text, "<bundled theme.toml>")


def user_palette(path: Path | None = None) -> dict[str, str]:
    """Palette overrides from the user theme file (empty if there is none)."""
    theme_path = path or get_theme_path()
    try:
        text = theme_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError as e:
        logger.warning("Cannot read theme %s: %s", theme_path, e)
        return {}
    logger.debug("Loaded theme overrides from %s", theme_path)
    return parse_palette(text, str(theme_path))


def load_theme() -> ThemeColors:
    """Merge the user overrides onto the bundled palette.

    An invalid merged palette falls back to the model defaults.
    """
    merged = {**bundled_palette(), **user_palette()}
    try:
        return ThemeColors.model_validate(merged)
    except ValidationError as e:
        logger.warning("Invalid theme colors, using defaults: %s", e)
        return ThemeColors()


@functools.cache
def get_theme() -> Theme:
    """Rich theme for the shared consoles, built once per process."""
    return Theme(load_theme().styles())
