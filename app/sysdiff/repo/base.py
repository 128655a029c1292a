"""Abstract base class for shadow repository listers.

A lister returns the canonical paths the repository tracks, relative to
the repository root, so they compare directly with live-tree paths.
"""

from abc import ABC, abstractmethod
from pathlib import Path


class RepoLister(ABC):
    """Abstract base class for all repository listers.

    Implementations are interchangeable: a plain filesystem walk and a
    version-control index listing must produce the same kind of result.

    Args:
        root: Root directory of the shadow repository.
    """

    def __init__(self, root: Path) -> None:
        self.root = root

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the lister name ("walk", "git")."""

    @abstractmethod
    def list_files(self) -> frozenset[str]:
        """Return the canonical paths tracked by the repository.

        Raises:
            RepoListingError: If the repository cannot be listed.
        """
