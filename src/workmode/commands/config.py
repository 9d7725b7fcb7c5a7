"""Config command for workmode.

Shows or changes settings in .workmode/config.json.
"""

import click
import orjson

from workmode.core.config import DEFAULTS, get_option, set_option
from workmode.core.workspace import Workspace


def _parse_value(raw: str):
    """Parse a command-line value as JSON, falling back to a plain string."""
    try:
        return orjson.loads(raw)
    except orjson.JSONDecodeError:
        return raw


@click.command()
@click.argument("key", required=False)
@click.argument("value", required=False)
@click.pass_context
def config(ctx: click.Context, key: str | None, value: str | None) -> None:
    """Show or change workmode settings.

    Without arguments, prints every option. With KEY, prints one.
    With KEY and VALUE, stores VALUE (parsed as JSON).

    \b
    Options:
      enableMinimalUI      hide TUI header and footer during sessions
      backup.intervalSec   seconds between backups (minimum 10)
      backup.maxItems      archives kept per workspace
      backup.excludes      patterns like "build/**", "**/tmp", "*.log"

    Examples:

        workmode config backup.intervalSec 30

        workmode config backup.excludes '["*.log", "build/**"]'
    """
    workspace: Workspace = ctx.obj["workspace"]

    if key is None:
        for name in DEFAULTS:
            click.echo(f"{name} = {orjson.dumps(get_option(workspace, name)).decode()}")
        return

    if key not in DEFAULTS:
        click.echo(f"Unknown option: {key}", err=True)
        raise SystemExit(1)

    if value is None:
        click.echo(orjson.dumps(get_option(workspace, key)).decode())
        return

    try:
        set_option(workspace, key, _parse_value(value))
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)
    click.echo(f"{key} updated")
