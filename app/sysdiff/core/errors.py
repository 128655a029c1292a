"""Exception hierarchy for sysdiff.

Every fatal condition derives from SysdiffError so the CLI can report the
full causal chain and exit non-zero. Non-fatal conditions (a missing file,
a permission denied while walking or hashing) never surface as exceptions
above the layer that resolves them.
"""

from pathlib import Path


class SysdiffError(Exception):
    """Base exception for all fatal sysdiff errors."""


class ConfigError(SysdiffError):
    """Raised when the configuration cannot be loaded or saved."""


class ConfigParseError(ConfigError):
    """Raised when the configuration file is not valid TOML."""


class MalformedIgnoreRuleError(SysdiffError):
    """Raised when an ignore rule cannot be compiled.

    Attributes:
        rule: The offending rule text.
        source: File the rule was read from, if any.
        lineno: 1-based line number within source, if any.
    """

    def __init__(
        self,
        rule: str,
        reason: str,
        source: Path | None = None,
        lineno: int | None = None,
    ) -> None:
        self.rule = rule
        self.source = source
        self.lineno = lineno
        location = f"{source}:{lineno}: " if source is not None and lineno is not None else ""
        super().__init__(f"{location}invalid ignore rule {rule!r}: {reason}")


class PackageDatabaseUnavailableError(SysdiffError):
    """Raised when the package database cannot be opened or read."""


class ContentReadError(SysdiffError):
    """Raised when file content cannot be read for a reason other than
    the file being missing or unreadable due to permissions."""


class WalkError(SysdiffError):
    """Raised when a tree walk fails in strict mode or on an I/O error."""


class RepoListingError(SysdiffError):
    """Raised when the shadow repository cannot be listed."""


class SyncError(SysdiffError):
    """Raised when a sync copy fails with an error other than permission denied."""
