"""Pipeline assembly.

Wires a SysdiffConfig into the pipeline stages. Each stage runs once and
returns an immutable snapshot:

1. prepare(): ignore matcher, hasher, package database, repository lister
2. collect(): the four inventories
3. diff(): the reconciliation result
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from sysdiff.core.config import SysdiffConfig
from sysdiff.core.engine import DiffResult, reconcile
from sysdiff.core.errors import ConfigError
from sysdiff.core.hasher import ContentHasher
from sysdiff.core.ignore import (
    IgnoreMatcher,
    RuleLine,
    anchor_rules,
    load_bundled_rules,
    load_ignore_rules,
)
from sysdiff.core.inventory import Inventories, build_inventories
from sysdiff.database import PackageDatabase, get_database
from sysdiff.repo import RepoLister, get_repo_lister

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RunContext:
    """Collaborators for one run, built from the configuration.

    Attributes:
        config: Effective configuration.
        matcher: Compiled ignore matcher.
        hasher: Content hasher.
        database: Package database.
        lister: Repository lister.
    """

    config: SysdiffConfig
    matcher: IgnoreMatcher
    hasher: ContentHasher
    database: PackageDatabase
    lister: RepoLister


def repo_rule(root: Path, repo: Path) -> RuleLine | None:
    """Ignore rule hiding the repository when it lives inside the live root."""
    root_abs = os.path.abspath(root)
    repo_abs = os.path.abspath(repo)
    if root_abs == "/" or repo_abs == root_abs or repo_abs.startswith(root_abs + "/"):
        return RuleLine(text=repo_abs)
    return None


def build_matcher(config: SysdiffConfig) -> IgnoreMatcher:
    """Compile every configured ignore source into one matcher.

    Order: bundled defaults, quick preset, user rules, repository rule.
    Bundled rules are anchored onto the live root; user rules are taken
    as written, as absolute live paths.

    Raises:
        MalformedIgnoreRuleError: If a rule cannot be compiled.
        ConfigError: If an ignore file cannot be read.
    """
    lines: list[RuleLine] = []
    if config.use_default_ignores:
        lines.extend(anchor_rules(load_bundled_rules("default"), config.root))
    if config.quick:
        lines.extend(anchor_rules(load_bundled_rules("quick"), config.root))
    try:
        lines.extend(load_ignore_rules(config.ignore))
    except OSError as e:
        raise ConfigError(f"Cannot read ignore rules from {config.ignore}: {e}") from e

    rule = repo_rule(config.root, config.repo)
    if rule is not None:
        lines.append(rule)

    matcher = IgnoreMatcher.from_lines(lines)
    logger.debug("Compiled %d ignore rules", len(matcher))
    return matcher


def prepare(config: SysdiffConfig) -> RunContext:
    """Build the run collaborators.

    Ignore rules are compiled first so a malformed rule aborts before the
    package database is opened.

    Raises:
        MalformedIgnoreRuleError: If a rule cannot be compiled.
        PackageDatabaseUnavailableError: If no package database can be opened.
    """
    matcher = build_matcher(config)
    database = get_database(config.backend, config.dbpath)
    logger.debug("Using %s database at %s", database.name, database.dbpath)
    return RunContext(
        config=config,
        matcher=matcher,
        hasher=ContentHasher(),
        database=database,
        lister=get_repo_lister(config.repo_lister, config.repo),
    )


def collect(ctx: RunContext) -> Inventories:
    """Build the four inventories."""
    return build_inventories(
        database=ctx.database,
        lister=ctx.lister,
        root=ctx.config.root,
        matcher=ctx.matcher,
        strict=ctx.config.strict,
    )


def diff(ctx: RunContext, inventories: Inventories) -> DiffResult:
    """Reconcile the inventories."""
    return reconcile(
        inventories,
        root=ctx.config.root,
        repo=ctx.config.repo,
        matcher=ctx.matcher,
        hasher=ctx.hasher,
        jobs=ctx.config.jobs,
    )


def run_pipeline(config: SysdiffConfig) -> tuple[RunContext, Inventories, DiffResult]:
    """Run all stages for a configuration."""
    ctx = prepare(config)
    inventories = collect(ctx)
    return ctx, inventories, diff(ctx, inventories)
