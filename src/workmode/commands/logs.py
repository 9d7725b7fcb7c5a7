"""Logs command for workmode.

Opens or prints sessions.jsonl and backups.jsonl.
"""

import click

from workmode.core.launch import NO_WORKSPACE_MESSAGE, show_logs
from workmode.core.workspace import Workspace


@click.command()
@click.option("--print", "print_", is_flag=True, help="Print the logs instead of opening them")
@click.pass_context
def logs(ctx: click.Context, print_: bool) -> None:
    """Show the session and backup logs.

    Examples:

        workmode logs

        workmode logs --print
    """
    workspace: Workspace | None = ctx.obj.get("workspace")

    if not print_:
        if not show_logs(workspace):
            click.echo(NO_WORKSPACE_MESSAGE)
        return

    if workspace is None:
        click.echo(NO_WORKSPACE_MESSAGE)
        return

    for log_file in (workspace.sessions_log, workspace.backups_log):
        click.echo(f"# {log_file.name}")
        if log_file.exists():
            click.echo(log_file.read_text(encoding="utf-8"), nl=False)
