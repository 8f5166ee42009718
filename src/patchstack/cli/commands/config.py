import click

from patchstack.core.context import PatchstackContext
from patchstack.core.global_config import CONFIG_KEYS, GlobalConfig, update_config_field


def _format_value(config: GlobalConfig, key: str) -> str:
    value = getattr(config, key)
    if isinstance(value, bool):
        return str(value).lower()
    return str(value)


@click.group("config")
def config_group() -> None:
    """Manage patchstack configuration."""


@config_group.command("list")
@click.pass_obj
def config_list(ctx: PatchstackContext) -> None:
    """Print a list of configuration keys and values."""
    click.echo(click.style("Global configuration:", bold=True))
    if not ctx.config_ops.exists():
        click.echo(f"  (using defaults - {ctx.config_ops.path()} not found)")
    for key in CONFIG_KEYS:
        click.echo(f"  {key}={_format_value(ctx.global_config, key)}")


@config_group.command("get")
@click.argument("key", metavar="KEY")
@click.pass_obj
def config_get(ctx: PatchstackContext, key: str) -> None:
    """Print the value of a given configuration key."""
    if key not in CONFIG_KEYS:
        click.echo(f"Invalid key: {key}", err=True)
        raise SystemExit(1)
    click.echo(_format_value(ctx.global_config, key))


@config_group.command("set")
@click.argument("key", metavar="KEY")
@click.argument("value", metavar="VALUE")
@click.pass_obj
def config_set(ctx: PatchstackContext, key: str, value: str) -> None:
    """Update configuration with a value for the given key."""
    if key not in CONFIG_KEYS:
        click.echo(f"Invalid key: {key}", err=True)
        raise SystemExit(1)

    try:
        new_config = update_config_field(ctx.global_config, key, value)
    except ValueError as e:
        click.echo(str(e), err=True)
        raise SystemExit(1) from e

    ctx.config_ops.save(new_config)
    click.echo(f"Set {key}={_format_value(new_config, key)}")
