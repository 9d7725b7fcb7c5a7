"""Recent backups widget for the workmode TUI."""

from textual.widgets import DataTable

DEFAULT_LIMIT = 20


def _recent(records: list[dict], limit: int) -> list[dict]:
    """Return the newest records first, at most limit of them."""
    usable = [r for r in records if isinstance(r.get("zip"), str)]
    return list(reversed(usable))[:limit]


def _format_time(at: str) -> str:
    # "2025-11-10T17:30:45+03:00" -> "2025-11-10 17:30:45"
    return at[:19].replace("T", " ") if at else "-"


class BackupTable(DataTable):
    """DataTable listing the latest archives from backups.jsonl.

    Columns: Time, Archive, Files
    """

    def __init__(self, *args, limit: int = DEFAULT_LIMIT, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._limit = limit

    def on_mount(self) -> None:
        """Set up the table columns on mount."""
        self.add_columns("Time", "Archive", "Files")
        self.cursor_type = "row"

    def update_backups(self, records: list[dict]) -> None:
        """Replace the table contents with the given backup records."""
        self.clear()
        for record in _recent(records, self._limit):
            self.add_row(
                _format_time(str(record.get("at", ""))),
                record["zip"],
                str(record.get("files", "-")),
            )
