"""Backups command for workmode."""

import click

from workmode.core.launch import open_backups_folder
from workmode.core.retention import list_archives
from workmode.core.workspace import Workspace


@click.command()
@click.option("--list", "list_", is_flag=True, help="List archives, oldest first")
@click.pass_context
def backups(ctx: click.Context, list_: bool) -> None:
    """Open the backups folder in the file browser.

    Examples:

        workmode backups

        workmode backups --list
    """
    workspace: Workspace = ctx.obj["workspace"]

    if list_:
        archives = list_archives(workspace.backups_dir)
        if not archives:
            click.echo("No backups yet")
            return
        for archive in archives:
            click.echo(archive.name)
        return

    open_backups_folder(workspace)
