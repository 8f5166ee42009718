"""Turning an uncommit request into concrete commits and names.

Three selection modes exist, and exactly one applies to a request:

- count: the N newest commits, walking down from where the walk starts
- target: every commit from where the walk starts down to a target commit.
  The target itself is included; with ``exclusive`` it is left out, so only
  commits strictly newer than the target are taken
- names: one commit per name, the k newest commits

With no mode given, a single commit is taken. A count together with a single
name P numbers the patches P1..PN, oldest first.

Where the walk starts depends on the branch head as git reports it, never on
the stack's top:

- Head is not a patch commit: the walk starts at Head and the selected
  commits go above the top. It may not reach a commit that a patch already
  points at; that commit is the floor of the walk.
- Head is a patch commit (normally Head equals top): the walk starts at the
  stack base, the commit below the bottom applied patch, and the selected
  commits go below the bottom applied patch.

Results are ordered oldest first (stack order).
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from patchstack.core.errors import (
    CommitAlreadyTrackedError,
    InsufficientHistoryError,
    NonLinearHistoryError,
    NonPositiveCountError,
    UnknownRevisionError,
    UsageConflictError,
)
from patchstack.core.git.abc import Git, short_id
from patchstack.core.naming import expand_prefix, validate_patch_name
from patchstack.core.stack.types import Series
from patchstack.core.walker import LinearCommit, walk_linear_history

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UncommitRequest:
    """Which commits to turn into patches, and what to call them.

    Attributes:
        count: Number of commits to take (--number)
        target: Revision of the oldest commit to take (--to)
        names: Patch names, oldest commit first
        exclusive: Leave the target commit itself out (only with target)
    """

    count: int | None = None
    target: str | None = None
    names: tuple[str, ...] = ()
    exclusive: bool = False


@dataclass(frozen=True)
class WalkStart:
    """Where a selection walk begins.

    Attributes:
        commit_id: First commit the walk may select
        below_stack: True when the walk starts at the stack base, so the
            selected commits belong below the bottom applied patch
    """

    commit_id: str
    below_stack: bool


@dataclass(frozen=True)
class ResolvedSelection:
    """Commits to convert, oldest first, with the names proposed for them.

    A name of None means the name is derived from the commit message.
    """

    commits: tuple[LinearCommit, ...]
    names: tuple[str | None, ...]
    below_stack: bool = False


def validate_request(request: UncommitRequest) -> None:
    """Reject malformed requests before any history is read.

    Raises:
        UsageConflictError: If selection modes are combined illegally
        NonPositiveCountError: If count is zero or negative
        InvalidPatchNameError: If a supplied name is not a valid patch name
    """
    if request.count is not None and request.target is not None:
        raise UsageConflictError("Cannot give both --to and --number")
    if request.target is not None and request.names:
        raise UsageConflictError("Cannot specify patch name with --to")
    if request.exclusive and request.target is None:
        raise UsageConflictError("--exclusive can only be used with --to")
    if request.count is not None and request.count <= 0:
        raise NonPositiveCountError(request.count)
    if request.count is not None and len(request.names) > 1:
        raise UsageConflictError("When using --number, specify at most one patch name")
    for name in request.names:
        validate_patch_name(name)


def tracked_commits(series: Series | None) -> dict[str, str]:
    """Map every commit a patch points at to that patch's name."""
    if series is None:
        return {}
    return {commit_id: name for name, commit_id in series.patches.items()}


def stack_base(git: Git, repo_root: Path, series: Series) -> str:
    """Commit directly below the bottom applied patch.

    With nothing applied the recorded head is the base.

    Raises:
        InsufficientHistoryError: If the bottom applied patch is a root commit
        NonLinearHistoryError: If the bottom applied patch is a merge
    """
    if not series.applied:
        return series.head
    bottom = series.patches[series.applied[0]]
    parents = git.commit_parents(repo_root, bottom)
    if not parents:
        raise InsufficientHistoryError(bottom)
    if len(parents) > 1:
        raise NonLinearHistoryError(bottom, len(parents))
    return parents[0]


def find_walk_start(
    git: Git, repo_root: Path, head: str, series: Series | None
) -> WalkStart:
    """Decide where the selection walk begins for the given head."""
    if series is None or head not in tracked_commits(series):
        return WalkStart(commit_id=head, below_stack=False)
    base = stack_base(git, repo_root, series)
    logger.debug("Head %s is a patch commit, walking from base %s", short_id(head), short_id(base))
    return WalkStart(commit_id=base, below_stack=True)


def resolve_selection(
    git: Git,
    repo_root: Path,
    request: UncommitRequest,
    series: Series | None = None,
) -> ResolvedSelection:
    """Materialize the commits a request selects.

    Args:
        git: History reader
        repo_root: Repository root
        request: Selection of commits and optional names
        series: Current series of the branch. Commits its patches point at
            are never selected. None behaves like an empty series.

    Raises:
        UsageConflictError, NonPositiveCountError, InvalidPatchNameError:
            See validate_request
        UnknownRevisionError: If the target revision does not name a commit
        CommitAlreadyTrackedError: If the target commit is already a patch
        NonLinearHistoryError: If a selected commit has several parents
        InsufficientHistoryError: If history runs out, or reaches a patch
            commit, before the selection is complete, or the target is not on
            the first-parent chain below the walk start
    """
    validate_request(request)
    head = git.ref_head(repo_root)
    tracked = tracked_commits(series)

    target: str | None = None
    if request.target is not None:
        target = git.resolve_commit(repo_root, request.target)
        if target is None:
            raise UnknownRevisionError(request.target)
        if target in tracked:
            if not request.exclusive:
                raise CommitAlreadyTrackedError(target, tracked[target])
            if head in tracked:
                # Every commit below the base is older than a patch commit
                logger.debug("Target %s is a patch commit, nothing to select", short_id(target))
                return ResolvedSelection(commits=(), names=(), below_stack=True)

    start = find_walk_start(git, repo_root, head, series)

    if target is not None:
        newest_first = _collect_to_target(
            git, repo_root, start.commit_id, target, request.exclusive, tracked
        )
        names: list[str | None] = [None] * len(newest_first)
    else:
        count = request.count
        if count is None:
            count = len(request.names) if request.names else 1
        newest_first = _collect_count(git, repo_root, start.commit_id, count, tracked)

        if request.count is not None and len(request.names) == 1 and count > 1:
            names = list(expand_prefix(request.names[0], count))
        elif request.names:
            names = list(request.names)
        else:
            names = [None] * count

    commits = tuple(reversed(newest_first))
    logger.debug(
        "Resolved %d commit(s) from %s %s: %s",
        len(commits),
        "base" if start.below_stack else "head",
        short_id(start.commit_id),
        ", ".join(short_id(commit.commit_id) for commit in commits),
    )
    return ResolvedSelection(commits=commits, names=tuple(names), below_stack=start.below_stack)


def _collect_count(
    git: Git, repo_root: Path, start: str, count: int, tracked: Mapping[str, str]
) -> list[LinearCommit]:
    commits: list[LinearCommit] = []
    try:
        for commit in walk_linear_history(git, repo_root, start, tracked=tracked):
            commits.append(commit)
            if len(commits) == count:
                break
    except InsufficientHistoryError as e:
        raise InsufficientHistoryError(
            e.commit_id, requested=count, available=len(commits), patch=e.patch
        ) from e
    return commits


def _collect_to_target(
    git: Git,
    repo_root: Path,
    start: str,
    target: str,
    exclusive: bool,
    tracked: Mapping[str, str],
) -> list[LinearCommit]:
    try:
        return list(
            walk_linear_history(
                git,
                repo_root,
                start,
                stop_at=target,
                include_stop=not exclusive,
                tracked=tracked,
            )
        )
    except InsufficientHistoryError as e:
        # Hitting a root or a patch commit means target was never on the walk,
        # unless the target is that root commit itself
        if e.commit_id == target:
            raise
        raise InsufficientHistoryError(e.commit_id, target=target, patch=e.patch) from e
