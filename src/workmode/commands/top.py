"""Top command - launch the workmode TUI."""

import click


@click.command()
@click.pass_context
def top(ctx: click.Context) -> None:
    """Launch the workmode TUI.

    Press s to start a session, p to pause, x to stop.
    """
    from workmode.tui.app import WorkModeApp

    app = WorkModeApp(ctx.obj["workspace"])
    app.run()
