"""Fold applied patches back into plain history.

Committing removes patches from the bottom of the stack. The commits they
point at are already part of the branch, so only the stack state changes.
"""

import logging
from dataclasses import dataclass

from patchstack.core.errors import (
    NoAppliedPatchesError,
    NonPositiveCountError,
    PatchOrderError,
    UnknownPatchError,
    UsageConflictError,
)
from patchstack.core.global_config import DEFAULT_TRANSACTION_ATTEMPTS
from patchstack.core.stack.abc import StackStore
from patchstack.core.stack.transaction import with_series_transaction
from patchstack.core.stack.types import Series

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommitRequest:
    """Which applied patches to commit.

    With nothing set, the bottommost applied patch is committed.
    """

    count: int | None = None
    names: tuple[str, ...] = ()
    all_applied: bool = False


def validate_commit_request(request: CommitRequest) -> None:
    modes = sum([request.count is not None, bool(request.names), request.all_applied])
    if modes > 1:
        raise UsageConflictError("Specify at most one of patch names, --number and --all")
    if request.count is not None and request.count <= 0:
        raise NonPositiveCountError(request.count)


def count_patches_to_commit(series: Series, request: CommitRequest) -> int:
    """Number of bottom applied patches the request selects.

    Raises:
        UnknownPatchError: If a named patch does not exist
        PatchOrderError: If the named patches are not the bottom applied
            patches, or count exceeds the applied patches
        NoAppliedPatchesError: If nothing is applied
    """
    if request.names:
        for name in request.names:
            if not series.has_patch(name):
                raise UnknownPatchError(name)
            if not series.is_applied(name):
                raise PatchOrderError(f"Patch `{name}` is not applied")
        selected = set(request.names)
        bottom = series.applied[: len(selected)]
        if set(bottom) != selected:
            raise PatchOrderError(
                "Only the bottommost applied patches can be committed; "
                f"expected {', '.join(bottom)}"
            )
        return len(selected)

    if not series.applied:
        raise NoAppliedPatchesError()
    if request.all_applied:
        return len(series.applied)

    count = request.count if request.count is not None else 1
    if count > len(series.applied):
        raise PatchOrderError(
            f"Cannot commit {count} patches: only {len(series.applied)} applied"
        )
    return count


def commit_patches(
    store: StackStore,
    request: CommitRequest,
    *,
    max_attempts: int = DEFAULT_TRANSACTION_ATTEMPTS,
) -> list[str]:
    """Remove the selected bottom patches from the stack.

    Returns:
        Names of the committed patches, bottom to top
    """
    validate_commit_request(request)

    committed: list[str] = []

    def transform(series: Series) -> Series:
        count = count_patches_to_commit(series, request)
        committed[:] = series.applied[:count]
        return series.drop_bottom_applied(count)

    with_series_transaction(store, transform, message="commit", max_attempts=max_attempts)
    logger.debug("Committed %s", ", ".join(committed))
    return list(committed)
