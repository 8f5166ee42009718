"""Series command implementation - list the patches of the stack."""

import click

from patchstack.cli.ensure import Ensure
from patchstack.cli.output import machine_output
from patchstack.core.context import PatchstackContext
from patchstack.core.stack.types import Series


def format_series_lines(
    series: Series,
    *,
    applied: bool,
    unapplied: bool,
    hidden: bool,
    noprefix: bool,
) -> list[str]:
    """Render series entries, one per line, bottom of the stack first.

    Prefixes: '+' applied, '>' top, '-' unapplied, '!' hidden.
    With no filter flag set, applied and unapplied patches are listed.
    """
    if not (applied or unapplied or hidden):
        applied = unapplied = True

    entries: list[tuple[str, str]] = []
    if applied:
        for name in series.applied:
            entries.append((">" if name == series.top_name else "+", name))
    if unapplied:
        entries.extend(("-", name) for name in series.unapplied)
    if hidden:
        entries.extend(("!", name) for name in series.hidden)

    if noprefix:
        return [name for _prefix, name in entries]
    return [f"{prefix} {name}" for prefix, name in entries]


@click.command("series")
@click.option("-a", "--applied", is_flag=True, help="Show the applied patches only.")
@click.option("-u", "--unapplied", is_flag=True, help="Show the unapplied patches only.")
@click.option("--hidden", is_flag=True, help="Show the hidden patches.")
@click.option("--noprefix", is_flag=True, help="Do not show the patch status prefix.")
@click.pass_obj
def series_cmd(
    ctx: PatchstackContext, applied: bool, unapplied: bool, hidden: bool, noprefix: bool
) -> None:
    """Print the patch series."""
    store = Ensure.stack_store(ctx)
    snapshot = Ensure.succeeds(store.read)

    for line in format_series_lines(
        snapshot.series, applied=applied, unapplied=unapplied, hidden=hidden, noprefix=noprefix
    ):
        if noprefix:
            machine_output(line)
        elif line.startswith(">"):
            machine_output(click.style(line, bold=True))
        elif line.startswith(("-", "!")):
            machine_output(click.style(line, fg="bright_black"))
        else:
            machine_output(line)
