"""CLI error handling utilities with styled output.

This module provides the Ensure class for asserting invariants in CLI commands
with consistent, user-friendly error messages. All errors use red "Error:" prefix
for visual consistency.

Engine errors (PatchstackError) are rendered here as well: usage problems
become click usage errors (exit code 2), everything else exits with code 1.
"""

import logging
from collections.abc import Callable
from typing import TypeVar

import click

from patchstack.cli.output import user_output
from patchstack.core.context import PatchstackContext, RepoContext
from patchstack.core.errors import (
    HeadDetachedError,
    NonPositiveCountError,
    PatchstackError,
    UsageConflictError,
)
from patchstack.core.stack.abc import StackStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Ensure:
    """Helper class for asserting invariants with consistent error handling."""

    @staticmethod
    def invariant(condition: bool, error_message: str) -> None:
        """Ensure condition is true, otherwise output styled error and exit.

        Raises:
            SystemExit: If condition is false (with exit code 1)
        """
        if not condition:
            user_output(click.style("Error: ", fg="red") + error_message)
            raise SystemExit(1)

    @staticmethod
    def not_none(value: T | None, error_message: str) -> T:
        """Ensure value is not None, otherwise output styled error and exit.

        This method provides type narrowing: it takes `T | None` and returns `T`.

        Raises:
            SystemExit: If value is None (with exit code 1)
        """
        if value is None:
            user_output(click.style("Error: ", fg="red") + error_message)
            raise SystemExit(1)
        return value

    @staticmethod
    def in_repo(ctx: PatchstackContext) -> RepoContext:
        """Ensure the command runs inside a git repository."""
        if not isinstance(ctx.repo, RepoContext):
            user_output(click.style("Error: ", fg="red") + ctx.repo.message)
            raise SystemExit(1)
        return ctx.repo

    @staticmethod
    def stack_store(ctx: PatchstackContext) -> StackStore:
        """Ensure a stack store exists for the checked-out branch."""
        repo = Ensure.in_repo(ctx)
        if repo.branch is None or ctx.stack_store is None:
            user_output(click.style("Error: ", fg="red") + str(HeadDetachedError()))
            raise SystemExit(1)
        return ctx.stack_store

    @staticmethod
    def head_commit(ctx: PatchstackContext, repo: RepoContext) -> str:
        """Ensure the checked-out branch has a commit to point at."""
        try:
            return ctx.git.ref_head(repo.root)
        except RuntimeError as e:
            logger.debug("Cannot resolve HEAD", exc_info=True)
            branch = repo.branch if repo.branch is not None else "HEAD"
            user_output(click.style("Error: ", fg="red") + f"Branch `{branch}` has no commits yet")
            raise SystemExit(1) from e

    @staticmethod
    def context_created(factory: Callable[[], PatchstackContext]) -> PatchstackContext:
        """Build the CLI context, rendering configuration problems for the user.

        Raises:
            SystemExit: If the configuration file cannot be loaded (with exit code 1)
        """
        try:
            return factory()
        except ValueError as e:
            user_output(click.style("Error: ", fg="red") + f"Invalid configuration: {e}")
            raise SystemExit(1) from e

    @staticmethod
    def succeeds(operation: Callable[[], T]) -> T:
        """Run an engine operation, rendering PatchstackError for the user.

        Returns:
            The operation's result

        Raises:
            click.UsageError: For conflicting options and non-positive counts
            SystemExit: For every other engine error (with exit code 1)
        """
        try:
            return operation()
        except (UsageConflictError, NonPositiveCountError) as e:
            raise click.UsageError(str(e)) from e
        except PatchstackError as e:
            logger.debug("Engine error: %s", type(e).__name__, exc_info=True)
            user_output(click.style("Error: ", fg="red") + str(e))
            raise SystemExit(1) from e
