"""Uncommit command implementation - turn commits into patches."""

import click

from patchstack.cli.ensure import Ensure
from patchstack.cli.output import machine_output, user_output
from patchstack.core.context import PatchstackContext
from patchstack.core.selection import UncommitRequest
from patchstack.core.stack.dry_run import DryRunStackStore
from patchstack.core.uncommit import uncommit


@click.command("uncommit")
@click.argument("patchnames", nargs=-1)
@click.option(
    "-n",
    "--number",
    type=click.IntRange(min=1),
    default=None,
    help="Uncommit the specified number of commits.",
)
@click.option(
    "-t",
    "--to",
    "to",
    metavar="COMMITISH",
    default=None,
    help="Uncommit to the specified commit.",
)
@click.option(
    "-x",
    "--exclusive",
    is_flag=True,
    help="Exclude the commit specified by --to.",
)
@click.option("--dry-run", is_flag=True, help="Show what would change without writing.")
@click.pass_obj
def uncommit_cmd(
    ctx: PatchstackContext,
    patchnames: tuple[str, ...],
    number: int | None,
    to: str | None,
    exclusive: bool,
    dry_run: bool,
) -> None:
    """Convert regular git commits into patches.

    Take one or more git commits and turn them into applied patches. When
    HEAD is above the stack, commits are taken walking down from HEAD and
    the new patches go on top of the stack. When HEAD is a patch, commits
    are taken from below the stack and the new patches go below the bottom
    applied patch. Commits that already are patches are never taken again.
    No commit is rewritten and the branch does not move. This is the
    opposite of 'patchstack commit'.

    By default, one commit is uncommitted. With PATCHNAMES, one commit
    is uncommitted per name, the first name going to the oldest commit.
    With --number N, N commits are uncommitted; a single PATCHNAME is then
    used as a prefix and numbered (PREFIX1 .. PREFIXN). With --to, every
    commit down to and including COMMITISH is uncommitted (excluding it with
    --exclusive).

    Names not given are generated from the commit messages.

    Examples:

      $ patchstack uncommit bar foo

      $ patchstack uncommit --number=2 foobar

      $ patchstack uncommit --to HEAD~3 --exclusive
    """
    repo = Ensure.in_repo(ctx)
    store = Ensure.stack_store(ctx)
    if dry_run:
        store = DryRunStackStore(store)

    request = UncommitRequest(count=number, target=to, names=patchnames, exclusive=exclusive)
    config = ctx.global_config
    created = Ensure.succeeds(
        lambda: uncommit(
            ctx.git,
            store,
            repo.root,
            request,
            length_limit=config.name_length_limit,
            lowercase=config.lowercase_names,
            max_attempts=config.transaction_attempts,
        )
    )

    if not created:
        user_output("Nothing to uncommit")
        return

    user_output(f"Uncommitted {len(created)} patch(es)")
    for name in created:
        machine_output(name)
