"""Start command for workmode.

Starts a session right away, either inside the TUI or headless.
"""

import asyncio

import click

from workmode.core.backup import BackupResult
from workmode.core.controller import SessionController
from workmode.core.session import format_elapsed
from workmode.core.workspace import Workspace


async def run_headless(controller: SessionController) -> None:
    """Run a session until cancelled, then stop it with a final backup."""
    await controller.start()
    try:
        await asyncio.Event().wait()
    finally:
        await controller.stop()


def _echo_backup(result: BackupResult) -> None:
    click.echo(f"Backup saved: {result.name} ({result.files} files)")


@click.command()
@click.option("--headless", is_flag=True, help="Run without the TUI until Ctrl-C")
@click.pass_context
def start(ctx: click.Context, headless: bool) -> None:
    """Start a work session.

    Changed files and unsaved buffers are archived to .workmode/backups/
    every backup.intervalSec seconds and once more when the session stops.

    Examples:

        workmode start

        workmode start --headless
    """
    workspace: Workspace = ctx.obj["workspace"]

    if not headless:
        from workmode.tui.app import WorkModeApp

        WorkModeApp(workspace, autostart=True).run()
        return

    controller = SessionController(workspace, on_backup=_echo_backup)
    click.echo(f"Work Mode: started in {workspace.root} (Ctrl-C to stop)")
    try:
        asyncio.run(run_headless(controller))
    except KeyboardInterrupt:
        pass
    click.echo(f"Work Mode: stopped · {format_elapsed(controller.last_duration_ms)}")
