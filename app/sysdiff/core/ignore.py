"""Ignore rules and the compiled ignore matcher.

Rules are read from plain-text sources, one rule per line. Blank lines and
lines starting with ``#`` are skipped. A line containing any of ``*?[`` is a
glob rule, anything else is a prefix rule.

Prefix rules match the path itself and everything nested under it on a
``/`` boundary, so ``/etc/foo`` matches ``/etc/foo/bar`` but not
``/etc/foobar``. Glob rules use shell wildcards where ``*`` also crosses
``/``, so ``/var/log/*`` matches ``/var/log/x.log`` and
``/var/log/journal/abc``.

Rules are matched against absolute live paths, so with a live root of
``/mnt`` the rule ``/mnt/etc/foo`` hides the canonical path ``/etc/foo``.
The bundled rule files are written for ``/`` and are anchored onto the live
root with anchor_rules().
"""

import fnmatch
import logging
import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path

from sysdiff.core.errors import MalformedIgnoreRuleError
from sysdiff.core.paths import to_live_path

logger = logging.getLogger(__name__)

_WILDCARD_CHARS = frozenset("*?[")


@dataclass(frozen=True, slots=True)
class PrefixRule:
    """Literal path rule matching the path and anything below it."""

    prefix: str


@dataclass(frozen=True, slots=True)
class GlobRule:
    """Wildcard rule, compiled once at construction."""

    pattern: str
    regex: re.Pattern[str] = field(compare=False, repr=False)


# Closed set of rule kinds
IgnoreRule = PrefixRule | GlobRule


@dataclass(frozen=True, slots=True)
class RuleLine:
    """A single rule line together with where it came from.

    Attributes:
        text: Rule text with surrounding whitespace stripped.
        source: File the line was read from (None for built-in rules).
        lineno: 1-based line number within source.
    """

    text: str
    source: Path | None = None
    lineno: int | None = None


def rule_matches(rule: IgnoreRule, path: str) -> bool:
    """Check whether a single rule matches an absolute path."""
    if isinstance(rule, PrefixRule):
        if rule.prefix == "/":
            return path.startswith("/")
        if path == rule.prefix:
            return True
        return path.startswith(rule.prefix + "/")
    return rule.regex.match(path) is not None


def _check_brackets(pattern: str) -> str | None:
    """Return a reason if the pattern has an unterminated character class."""
    i = 0
    n = len(pattern)
    while i < n:
        if pattern[i] != "[":
            i += 1
            continue
        j = i + 1
        if j < n and pattern[j] == "!":
            j += 1
        # A ']' right after the opening bracket is a literal member
        if j < n and pattern[j] == "]":
            j += 1
        while j < n and pattern[j] != "]":
            j += 1
        if j >= n:
            return f"unterminated character class at offset {i}"
        i = j + 1
    return None


def compile_rule(line: RuleLine) -> IgnoreRule:
    """Compile one rule line into a PrefixRule or GlobRule.

    Args:
        line: Rule text and its origin.

    Returns:
        The compiled rule.

    Raises:
        MalformedIgnoreRuleError: If a glob rule cannot be compiled.
    """
    text = line.text
    if not _WILDCARD_CHARS.intersection(text):
        # Trailing separators would never match a canonical path
        prefix = text.rstrip("/") or "/"
        return PrefixRule(prefix=prefix)

    reason = _check_brackets(text)
    if reason is not None:
        raise MalformedIgnoreRuleError(text, reason, line.source, line.lineno)
    try:
        regex = re.compile(fnmatch.translate(text))
    except re.error as e:
        raise MalformedIgnoreRuleError(text, str(e), line.source, line.lineno) from e
    return GlobRule(pattern=text, regex=regex)


class IgnoreMatcher:
    """Compiled, ordered set of ignore rules.

    Rules are compiled eagerly so a malformed rule aborts the run before
    any inventory is built. Evaluation is first-match-wins in rule order.

    Example:
        >>> matcher = IgnoreMatcher.from_lines(["/proc", "*.pyc"])
        >>> matcher.matches("/proc/1/status")
        True
        >>> matcher.matches("/etc/fstab")
        False
    """

    def __init__(self, rules: Iterable[IgnoreRule] = ()) -> None:
        self._rules: tuple[IgnoreRule, ...] = tuple(rules)

    @classmethod
    def from_lines(cls, lines: Iterable[str | RuleLine]) -> "IgnoreMatcher":
        """Build a matcher from raw rule lines.

        Comment and blank lines are skipped, so the output of a rule file
        can be passed in unchanged.

        Raises:
            MalformedIgnoreRuleError: If any rule cannot be compiled.
        """
        rules: list[IgnoreRule] = []
        for raw in lines:
            line = raw if isinstance(raw, RuleLine) else RuleLine(text=raw.strip())
            if not line.text or line.text.startswith("#"):
                continue
            rules.append(compile_rule(line))
        return cls(rules)

    @property
    def rules(self) -> tuple[IgnoreRule, ...]:
        """Compiled rules in evaluation order."""
        return self._rules

    def matches(self, path: str) -> bool:
        """Check whether any rule matches an absolute path."""
        for rule in self._rules:
            if rule_matches(rule, path):
                return True
        return False

    def __len__(self) -> int:
        return len(self._rules)


def read_rule_file(path: Path) -> Iterator[RuleLine]:
    """Yield the rule lines of a single ignore file.

    Raises:
        OSError: If the file cannot be read.
    """
    with open(path, encoding="utf-8", errors="surrogateescape") as f:
        for lineno, raw in enumerate(f, start=1):
            text = raw.strip()
            if not text or text.startswith("#"):
                continue
            yield RuleLine(text=text, source=path, lineno=lineno)


def load_ignore_rules(source: Path) -> list[RuleLine]:
    """Load rule lines from a file or a directory of files.

    Directories are read recursively in sorted order so the resulting rule
    order is stable. A missing source contributes no rules.

    Args:
        source: Ignore file or directory of ignore files.

    Returns:
        Rule lines in file order.
    """
    if not source.exists():
        logger.warning("Ignore source does not exist, no rules loaded: %s", source)
        return []

    if source.is_file():
        return list(read_rule_file(source))

    lines: list[RuleLine] = []
    for path in sorted(p for p in source.rglob("*") if p.is_file()):
        lines.extend(read_rule_file(path))
    logger.debug("Loaded %d ignore rules from %s", len(lines), source)
    return lines


def load_bundled_rules(name: str) -> list[RuleLine]:
    """Load one of the rule files shipped in sysdiff.data.ignore.

    Args:
        name: File stem, e.g. "default" or "quick".
    """
    resource = resources.files("sysdiff.data").joinpath("ignore", f"{name}.ignore")
    text = resource.read_text(encoding="utf-8")
    lines: list[RuleLine] = []
    origin = Path(f"<{name}.ignore>")
    for lineno, raw in enumerate(text.splitlines(), start=1):
        stripped = raw.strip()
        if stripped and not stripped.startswith("#"):
            lines.append(RuleLine(text=stripped, source=origin, lineno=lineno))
    return lines


def anchor_rules(lines: Iterable[RuleLine], root: Path | str) -> list[RuleLine]:
    """Re-root rule lines written for "/" onto another live root.

    Rules starting with "/" get the root prepended; unanchored globs such
    as ``*.pyc`` already match at any depth and are kept as they are.
    """
    if str(root).rstrip("/") == "":
        return list(lines)
    return [
        RuleLine(text=to_live_path(root, line.text), source=line.source, lineno=line.lineno)
        if line.text.startswith("/")
        else line
        for line in lines
    ]
