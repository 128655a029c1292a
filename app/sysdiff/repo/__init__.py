"""Shadow repository listers.

This module exports the lister classes and the lister factory.
"""

from pathlib import Path

from sysdiff.repo.base import RepoLister
from sysdiff.repo.git import GitRepoLister
from sysdiff.repo.walk import WalkRepoLister

LISTERS: dict[str, type[RepoLister]] = {
    "walk": WalkRepoLister,
    "git": GitRepoLister,
}


def get_repo_lister(kind: str, root: Path) -> RepoLister:
    """Get a repository lister instance by name.

    Args:
        kind: "walk" or "git".
        root: Repository root.

    Raises:
        ValueError: If the kind is unknown.
    """
    try:
        return LISTERS[kind](root)
    except KeyError:
        msg = f"Unknown repository lister: {kind}"
        raise ValueError(msg) from None


__all__ = ["LISTERS", "GitRepoLister", "RepoLister", "WalkRepoLister", "get_repo_lister"]
