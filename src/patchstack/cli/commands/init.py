"""Init command implementation - start a stack on the current branch."""

import click

from patchstack.cli.ensure import Ensure
from patchstack.cli.output import user_output
from patchstack.core.context import PatchstackContext


@click.command("init")
@click.pass_obj
def init_cmd(ctx: PatchstackContext) -> None:
    """Initialize a patch stack for the current branch."""
    repo = Ensure.in_repo(ctx)
    store = Ensure.stack_store(ctx)

    head = Ensure.head_commit(ctx, repo)
    Ensure.succeeds(lambda: store.initialize(head))
    user_output(f"Initialized patch stack for branch {store.branch}")
