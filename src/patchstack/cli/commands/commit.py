"""Commit command implementation - fold patches into history."""

import click

from patchstack.cli.ensure import Ensure
from patchstack.cli.output import machine_output, user_output
from patchstack.core.commit import CommitRequest, commit_patches
from patchstack.core.context import PatchstackContext
from patchstack.core.stack.dry_run import DryRunStackStore


@click.command("commit")
@click.argument("patchnames", nargs=-1)
@click.option(
    "-n",
    "--number",
    type=click.IntRange(min=1),
    default=None,
    help="Commit the specified number of patches.",
)
@click.option("-a", "--all", "all_applied", is_flag=True, help="Commit all applied patches.")
@click.option("--dry-run", is_flag=True, help="Show what would change without writing.")
@click.pass_obj
def commit_cmd(
    ctx: PatchstackContext,
    patchnames: tuple[str, ...],
    number: int | None,
    all_applied: bool,
    dry_run: bool,
) -> None:
    """Permanently store the applied patches in the stack base.

    Merge one or more patches into the base of the current stack and
    remove them from the series. This is the opposite of
    'patchstack uncommit'. Only the bottommost applied patches can be
    committed; by default, just the bottommost one.
    """
    store = Ensure.stack_store(ctx)
    if dry_run:
        store = DryRunStackStore(store)

    request = CommitRequest(count=number, names=patchnames, all_applied=all_applied)
    committed = Ensure.succeeds(
        lambda: commit_patches(
            store, request, max_attempts=ctx.global_config.transaction_attempts
        )
    )

    user_output(f"Committed {len(committed)} patch(es)")
    for name in committed:
        machine_output(name)
