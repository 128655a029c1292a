"""Repository lister backed by the git index.

Only files tracked by git are part of the repository, which lets the
repository hold untracked scratch files without them being reported.
"""

import logging
import subprocess

from sysdiff.core.errors import RepoListingError
from sysdiff.repo.base import RepoLister
from sysdiff.utils.shell import command_exists, run_command

logger = logging.getLogger(__name__)


class GitRepoLister(RepoLister):
    """Lists the files in the git index of the repository."""

    @property
    def name(self) -> str:
        """Return git as the lister name."""
        return "git"

    def list_files(self) -> frozenset[str]:
        """Run ``git ls-files -z`` in the repository root.

        Raises:
            RepoListingError: If git is missing or the command fails.
        """
        if not command_exists("git"):
            msg = "git is not available on this system"
            raise RepoListingError(msg)

        try:
            result = run_command(["git", "ls-files", "-z"], cwd=str(self.root))
        except (OSError, subprocess.SubprocessError) as e:
            msg = f"Cannot run git ls-files in {self.root}: {e}"
            raise RepoListingError(msg) from e

        if not result.success:
            msg = f"git ls-files failed in {self.root}: {result.stderr.strip() or 'unknown error'}"
            raise RepoListingError(msg)

        paths = frozenset("/" + name for name in result.stdout.split("\0") if name)
        logger.debug("git index of %s lists %d files", self.root, len(paths))
        return paths
