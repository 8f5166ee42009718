"""Promote existing commits into named patches.

uncommit never writes a commit and never moves the branch: the selected
commits are reused as they are, and only the stack state changes. The
selection is resolved against a snapshot of the series before the transaction
opens, because commits that patches already point at are never selected
again. The transform only names and inserts patches, so a failure anywhere
leaves the stored series untouched. Should another writer change the patches
in between, the selection is resolved again against the series it changed to.
"""

import logging
from pathlib import Path

from patchstack.core.git.abc import Git
from patchstack.core.global_config import DEFAULT_NAME_LENGTH_LIMIT, DEFAULT_TRANSACTION_ATTEMPTS
from patchstack.core.naming import assign_patch_names
from patchstack.core.selection import (
    ResolvedSelection,
    UncommitRequest,
    resolve_selection,
    validate_request,
)
from patchstack.core.stack.abc import StackStore
from patchstack.core.stack.transaction import with_series_transaction
from patchstack.core.stack.types import Patch, Series

logger = logging.getLogger(__name__)


def _plan(
    git: Git, repo_root: Path, request: UncommitRequest, series: Series
) -> tuple[ResolvedSelection, list[str | None]]:
    selection = resolve_selection(git, repo_root, request, series)
    messages = [
        git.commit_message(repo_root, commit.commit_id) if name is None else None
        for commit, name in zip(selection.commits, selection.names, strict=True)
    ]
    return selection, messages


def _layout(series: Series) -> tuple[str, tuple[str, ...], dict[str, str]]:
    return series.head, series.applied, series.patches


def uncommit(
    git: Git,
    store: StackStore,
    repo_root: Path,
    request: UncommitRequest,
    *,
    length_limit: int = DEFAULT_NAME_LENGTH_LIMIT,
    lowercase: bool = True,
    max_attempts: int = DEFAULT_TRANSACTION_ATTEMPTS,
) -> list[str]:
    """Turn the commits selected by request into applied patches.

    When the branch head is above the stack the new patches go above the
    top. When it is a patch commit (normally the top), the commits below the
    stack base are taken and the new patches go below the bottom applied
    patch.

    Args:
        git: History reader
        store: Stack state store of the current branch
        repo_root: Repository root
        request: Selection of commits and optional names
        length_limit: Maximum length of derived names
        lowercase: Whether derived names are lower-cased
        max_attempts: Transaction attempts on concurrent modification

    Returns:
        Names of the new patches, bottom to top. Empty when the selection
        contains no commits (an exclusive target equal to head).

    Raises:
        PatchstackError subclasses for every rejected request; see
        resolve_selection, assign_patch_names and with_series_transaction.
    """
    validate_request(request)
    snapshot = store.read()
    planned_layout = _layout(snapshot.series)
    selection, messages = _plan(git, repo_root, request, snapshot.series)
    if not selection.commits:
        logger.debug("Selection is empty, stack left unchanged")
        return []

    created: list[str] = []

    def transform(series: Series) -> Series:
        current, current_messages = selection, messages
        if _layout(series) != planned_layout:
            logger.debug("Series changed since the selection was resolved, resolving again")
            current, current_messages = _plan(git, repo_root, request, series)

        names = assign_patch_names(
            current.names,
            current_messages,
            series.all_names(),
            length_limit=length_limit,
            lowercase=lowercase,
        )
        created[:] = names
        new_patches = [
            Patch(name=name, commit_id=commit.commit_id)
            for name, commit in zip(names, current.commits, strict=True)
        ]
        if current.below_stack:
            return series.insert_applied_bottom(new_patches)
        return series.push_applied(new_patches)

    with_series_transaction(
        store,
        transform,
        message=f"uncommit: {len(selection.commits)} commit(s)",
        max_attempts=max_attempts,
    )
    logger.debug("Uncommitted %s", ", ".join(created))
    return list(created)
