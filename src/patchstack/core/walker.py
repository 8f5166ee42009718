"""First-parent traversal of commit history.

The walker yields commits newest first, starting at a given commit and
following the only parent of each one. A commit is only yielded after it has
been checked to have exactly one parent, because every uncommitted patch needs
a single commit to sit on. The check happens lazily, so a caller that stops
early never triggers an error for commits it did not ask for.
"""

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path

from patchstack.core.errors import InsufficientHistoryError, NonLinearHistoryError
from patchstack.core.git.abc import Git, short_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LinearCommit:
    """A commit on a linear stretch of history, with its single parent."""

    commit_id: str
    parent_id: str


def walk_linear_history(
    git: Git,
    repo_root: Path,
    start: str,
    *,
    stop_at: str | None = None,
    include_stop: bool = True,
    tracked: Mapping[str, str] | None = None,
) -> Iterator[LinearCommit]:
    """Yield commits from start toward the root through their only parent.

    Args:
        git: History reader
        repo_root: Repository to read from
        start: Commit id the walk begins at (yielded first)
        stop_at: Commit id that ends the walk, if any
        include_stop: Whether stop_at itself is yielded. When False the walk
            ends on reaching it without inspecting its parents.
        tracked: Commits that patches already point at, mapped to the patch
            name. The walk never yields them.

    Raises:
        NonLinearHistoryError: A commit to be yielded has more than one parent
        InsufficientHistoryError: A commit to be yielded is a root commit or
            already a patch
    """
    tracked = tracked or {}
    commit_id = start
    depth = 0
    while True:
        if commit_id == stop_at and not include_stop:
            logger.debug("Walk stopped before %s after %d commits", short_id(commit_id), depth)
            return

        if commit_id in tracked:
            raise InsufficientHistoryError(commit_id, patch=tracked[commit_id])

        parents = git.commit_parents(repo_root, commit_id)
        if len(parents) > 1:
            raise NonLinearHistoryError(commit_id, len(parents))
        if not parents:
            raise InsufficientHistoryError(commit_id)

        yield LinearCommit(commit_id=commit_id, parent_id=parents[0])
        depth += 1

        if commit_id == stop_at:
            logger.debug("Walk stopped at %s after %d commits", short_id(commit_id), depth)
            return
        commit_id = parents[0]
