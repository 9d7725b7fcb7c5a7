"""Open workmode logs and backups with the system's default applications."""

import click

from workmode.core.workspace import Workspace

NO_WORKSPACE_MESSAGE = "Open a project folder to view the log"


def show_logs(workspace: Workspace | None) -> bool:
    """Open sessions.jsonl and backups.jsonl.

    Returns:
        False if there is no workspace to show logs for.
    """
    if workspace is None:
        return False
    click.launch(str(workspace.sessions_log))
    try:
        click.launch(str(workspace.backups_log))
    except OSError:
        pass  # No backups yet
    return True


def open_backups_folder(workspace: Workspace | None) -> bool:
    """Reveal the backups directory in the file browser.

    Returns:
        False if there is no workspace.
    """
    if workspace is None:
        return False
    workspace.backups_dir.mkdir(parents=True, exist_ok=True)
    click.launch(str(workspace.backups_dir), locate=True)
    return True
