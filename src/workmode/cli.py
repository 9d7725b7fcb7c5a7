"""CLI entry point for workmode.

Usage:
    workmode                  # Launch TUI
    workmode start            # Launch TUI with a session running
    workmode start --headless # Run a session without the TUI until Ctrl-C
    workmode logs             # Open session and backup logs
    workmode backups          # Reveal the backups folder
    workmode config KEY VALUE # Change a setting
"""

import logging
from pathlib import Path

import click

from workmode.commands.backups import backups
from workmode.commands.config import config
from workmode.commands.logs import logs
from workmode.commands.start import start
from workmode.commands.top import top
from workmode.core.workspace import WorkspaceError, open_workspace


@click.group(invoke_without_command=True)
@click.option(
    "-w",
    "--workspace",
    type=click.Path(path_type=Path),
    envvar="WORKMODE_WORKSPACE",
    help="Project folder (defaults to the git root or current directory)",
)
@click.option("-v", "--verbose", is_flag=True, help="Log debug output to stderr")
@click.version_option(package_name="workmode")
@click.pass_context
def main(ctx: click.Context, workspace: Path | None, verbose: bool) -> None:
    """Workmode - focus sessions with incremental backups.

    Times your work session and snapshots changed files, unsaved
    buffers included, into .workmode/backups/ while you work.

    Running 'workmode' without a subcommand launches the TUI.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    try:
        ws = open_workspace(workspace)
    except WorkspaceError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    ctx.ensure_object(dict)
    ctx.obj["workspace"] = ws

    if ctx.invoked_subcommand is None:
        ctx.invoke(top)


# Register commands
main.add_command(top)
main.add_command(start)
main.add_command(logs)
main.add_command(backups)
main.add_command(config)
