"""Dry-run StackStore wrapper.

Delegates read-only operations to the wrapped store and reports writes
instead of performing them.
"""

import click

from patchstack.cli.output import user_output
from patchstack.core.errors import StackAlreadyInitializedError
from patchstack.core.git.abc import short_id
from patchstack.core.stack.abc import StackStore
from patchstack.core.stack.types import Series, StackSnapshot

# ============================================================================
# No-op Wrapper
# ============================================================================


class DryRunStackStore(StackStore):
    """Wrapper that prevents stack state from being written.

    Usage:
        real_store = RealGitStackStore(repo_root, "main")
        dry_run_store = DryRunStackStore(real_store)

        # Prints the intended change, leaves refs/stacks/main untouched
        with_series_transaction(dry_run_store, fn, message="uncommit: foo")
    """

    def __init__(self, wrapped: StackStore) -> None:
        """Create a dry-run wrapper around a StackStore implementation.

        Args:
            wrapped: The StackStore implementation to wrap (usually RealGitStackStore)
        """
        self._wrapped = wrapped

    @property
    def branch(self) -> str:
        return self._wrapped.branch

    # Read-only operations: delegate to wrapped implementation

    def exists(self) -> bool:
        return self._wrapped.exists()

    def read(self) -> StackSnapshot:
        return self._wrapped.read()

    # Write operations: report only

    def write(self, series: Series, *, expected: str, message: str) -> str:
        applied = " ".join(series.applied) or "(none)"
        user_output(click.style("[DRY RUN] ", fg="yellow") + f"Would record stack state: {message}")
        user_output(click.style("[DRY RUN] ", fg="yellow") + f"Applied patches: {applied}")
        return expected

    def initialize(self, head: str) -> str:
        if self._wrapped.exists():
            raise StackAlreadyInitializedError(self.branch)
        user_output(
            click.style("[DRY RUN] ", fg="yellow")
            + f"Would initialize stack for branch {self.branch} at {short_id(head)}"
        )
        return head
