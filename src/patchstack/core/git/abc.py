"""Read-only git history interface.

This module provides the abstraction patchstack uses to look at commit
history, making the engine testable against an in-memory commit graph.

Architecture:
- Git: Abstract base class defining the interface
- RealGit: Production implementation using the git CLI

The engine only ever reads history. Writing stack state is the job of
patchstack.core.stack, never of this interface.
"""

from abc import ABC, abstractmethod
from pathlib import Path


def short_id(commit_id: str) -> str:
    """Abbreviate a commit id for log and error output."""
    return commit_id[:12]


# ============================================================================
# Abstract Interface
# ============================================================================


class Git(ABC):
    """Abstract interface for reading git history.

    All implementations (real and fake) must implement this interface.
    This interface contains ONLY runtime operations - no test setup methods.
    """

    @abstractmethod
    def get_repository_root(self, cwd: Path) -> Path | None:
        """Get the top-level directory of the repository containing cwd.

        Returns:
            Repository root, or None if cwd is not inside a git repository
        """
        ...

    @abstractmethod
    def get_current_branch(self, repo_root: Path) -> str | None:
        """Get the currently checked-out branch.

        Returns:
            Short branch name, or None if HEAD is detached
        """
        ...

    @abstractmethod
    def ref_head(self, repo_root: Path) -> str:
        """Get the commit id HEAD currently points at."""
        ...

    @abstractmethod
    def commit_parents(self, repo_root: Path, commit_id: str) -> list[str]:
        """Get the ordered parent ids of a commit (first parent first)."""
        ...

    @abstractmethod
    def commit_message(self, repo_root: Path, commit_id: str) -> str:
        """Get the full message of a commit."""
        ...

    @abstractmethod
    def resolve_commit(self, repo_root: Path, revision: str) -> str | None:
        """Resolve a revision expression (e.g. 'HEAD^', a branch, an abbreviated id).

        Returns:
            Full commit id, or None if the revision does not name a commit
        """
        ...
