"""Main Textual app for the workmode TUI."""

from textual.app import App, ComposeResult
from textual.widgets import Footer, Header, Static, TextArea

from workmode.core.backup import BackupResult
from workmode.core.controller import SessionController
from workmode.core.documents import Document, DocumentRegistry
from workmode.core.jsonl import read_lines
from workmode.core.launch import NO_WORKSPACE_MESSAGE, open_backups_folder, show_logs
from workmode.core.session import format_elapsed
from workmode.core.workspace import Workspace
from workmode.tui.widgets.backup_table import BackupTable

SCRATCH_NAME = "scratch.md"
IDLE_TEXT = "Not running - press s to start"


class WorkModeApp(App):
    """Workmode TUI application.

    Shows the session stopwatch, a scratch pad and recent backups. The
    scratch pad is an untitled document, so its text is backed up under
    UNSAVED/ while it is not empty.
    """

    TITLE = "workmode"
    BINDINGS = [
        ("s", "start", "Start"),
        ("x", "stop", "Stop"),
        ("t", "toggle", "Toggle"),
        ("p", "pause_resume", "Pause"),
        ("l", "show_logs", "Logs"),
        ("b", "open_backups", "Backups"),
        ("escape", "blur", "Leave pad"),
        ("q", "quit", "Quit"),
    ]
    CSS = """
    #clock {
        height: 3;
        content-align: center middle;
        text-style: bold;
    }

    #scratch {
        height: 1fr;
    }

    BackupTable {
        height: 1fr;
    }
    """

    def __init__(
        self,
        workspace: Workspace | None,
        autostart: bool = False,
        change_source=None,
    ) -> None:
        super().__init__()
        self.workspace = workspace
        self._autostart = autostart
        self.registry = DocumentRegistry()
        self.scratch = Document.untitled(SCRATCH_NAME)
        self.controller = SessionController(
            workspace,
            registry=self.registry,
            chrome=self,
            on_backup=self._on_backup,
            change_source=change_source,
        )

    def compose(self) -> ComposeResult:
        """Compose the app layout."""
        yield Header()
        yield Static(IDLE_TEXT, id="clock")
        yield TextArea(id="scratch")
        yield BackupTable()
        yield Footer()

    async def on_mount(self) -> None:
        """Called when the app is mounted."""
        if self.workspace is not None:
            self.sub_title = str(self.workspace.root)
        self.refresh_backups()
        self.set_interval(1, self.refresh_clock)
        self.query_one(BackupTable).focus()
        if self._autostart:
            await self.action_start()

    def refresh_clock(self) -> None:
        """Redraw the stopwatch."""
        clock = self.query_one("#clock", Static)
        if self.controller.running:
            clock.update(self.controller.status_text())
        else:
            clock.update(IDLE_TEXT)

    def refresh_backups(self) -> None:
        """Reload recent backups from the log."""
        records = read_lines(self.workspace.backups_log) if self.workspace else []
        self.query_one(BackupTable).update_backups(records)

    async def enable_minimal(self) -> None:
        self.query_one(Header).display = False
        self.query_one(Footer).display = False

    async def disable_minimal(self) -> None:
        self.query_one(Header).display = True
        self.query_one(Footer).display = True

    def on_text_area_changed(self, event: TextArea.Changed) -> None:
        """Keep the scratch document in sync with the pad."""
        text = event.text_area.text
        if text:
            self.registry.open(self.scratch)
            self.registry.edit(self.scratch, text)
        else:
            self.registry.close(self.scratch)

    def _on_backup(self, result: BackupResult) -> None:
        self.notify(f"Backup saved ({result.files} files)")
        self.refresh_backups()

    async def action_start(self) -> None:
        if self.controller.running:
            return
        await self.controller.start()
        self.refresh_clock()
        self.notify("Work Mode: started")

    async def action_stop(self) -> None:
        duration = await self.controller.stop()
        if duration is None:
            return
        self.refresh_clock()
        self.refresh_backups()
        self.notify(f"Work Mode: stopped · {format_elapsed(duration)}")

    async def action_toggle(self) -> None:
        if self.controller.running:
            await self.action_stop()
        else:
            await self.action_start()

    def action_pause_resume(self) -> None:
        self.controller.pause_resume()
        self.refresh_clock()

    def action_show_logs(self) -> None:
        if not show_logs(self.workspace):
            self.notify(NO_WORKSPACE_MESSAGE)

    def action_open_backups(self) -> None:
        open_backups_folder(self.workspace)

    def action_blur(self) -> None:
        self.query_one(BackupTable).focus()

    async def action_quit(self) -> None:
        """Stop a running session (with its final backup) and exit."""
        await self.controller.stop()
        self.exit()
