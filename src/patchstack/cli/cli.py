import logging
import os

import click

from patchstack.cli.commands.commit import commit_cmd
from patchstack.cli.commands.config import config_group
from patchstack.cli.commands.init import init_cmd
from patchstack.cli.commands.series import series_cmd
from patchstack.cli.commands.uncommit import uncommit_cmd
from patchstack.cli.ensure import Ensure
from patchstack.core.context import create_context

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])  # terse help flags


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="patchstack")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Manage a stack of named patches on top of git history."""
    # Only create context if not already provided (e.g., by tests)
    if ctx.obj is None:
        ctx.obj = Ensure.context_created(lambda: create_context(dry_run=False))


cli.add_command(commit_cmd)
cli.add_command(config_group)
cli.add_command(init_cmd)
cli.add_command(series_cmd)
cli.add_command(uncommit_cmd)


def main() -> None:
    """CLI entry point used by the `patchstack` console script."""
    # Enable debug logging if PATCHSTACK_DEBUG environment variable is set
    if os.getenv("PATCHSTACK_DEBUG") == "1":
        logging.basicConfig(level=logging.DEBUG, format="[DEBUG %(name)s:%(lineno)d] %(message)s")
    cli()
