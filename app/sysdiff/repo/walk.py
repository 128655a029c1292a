"""Repository lister backed by a plain filesystem walk."""

import logging

from sysdiff.core.errors import RepoListingError, WalkError
from sysdiff.core.ignore import IgnoreMatcher, PrefixRule
from sysdiff.core.paths import to_live_path
from sysdiff.core.walk import walk_tree
from sysdiff.repo.base import RepoLister

logger = logging.getLogger(__name__)

# Version-control metadata at the repository root is never tracked content
_VCS_METADATA = ("/.git", "/.hg", "/.svn")


class WalkRepoLister(RepoLister):
    """Lists every file below the repository root.

    A repository root that does not exist yet is an empty repository.
    """

    @property
    def name(self) -> str:
        """Return walk as the lister name."""
        return "walk"

    def _metadata_matcher(self) -> IgnoreMatcher:
        return IgnoreMatcher(PrefixRule(to_live_path(self.root, p)) for p in _VCS_METADATA)

    def list_files(self) -> frozenset[str]:
        """Walk the repository and return its canonical paths.

        Raises:
            RepoListingError: If the walk fails.
        """
        if not self.root.exists():
            logger.warning("Repository does not exist, treating it as empty: %s", self.root)
            return frozenset()

        try:
            return frozenset(walk_tree(self.root, self._metadata_matcher()))
        except WalkError as e:
            msg = f"Cannot list repository {self.root}: {e}"
            raise RepoListingError(msg) from e
