"""Output utilities for CLI commands with clear intent.

user_output goes to stderr so stdout stays reserved for data a script might
consume (patch names, series listings). machine_output goes to stdout.
"""

from typing import Any

import click


def user_output(message: Any = "", nl: bool = True) -> None:
    """Output informational message for human users (stderr)."""
    click.echo(message, nl=nl, err=True)


def machine_output(message: Any = "", nl: bool = True) -> None:
    """Output structured data for scripts (stdout)."""
    click.echo(message, nl=nl)
