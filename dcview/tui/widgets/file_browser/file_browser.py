"""
File Browser Widget - Browse a container or snapshot filesystem.

Contains:
- Status display
- Path breadcrumb
- Filesystem DataTable
"""

from rich.text import Text
from textual.app import ComposeResult
from textual.widgets import DataTable, Static

from dcview.modules.finders import FileEntry


class FileBrowser(Static):
    """Filesystem browser widget: one directory listing at a time."""

    def compose(self) -> ComposeResult:
        yield Static("Loading...", id="fb-status")
        yield Static("Path: /", id="fb-breadcrumb")
        yield DataTable(id="fb-table", cursor_type="row")

    def setup_table(self) -> None:
        """Configure the filesystem table columns. Call from app on_mount."""
        fb_table = self.query_one("#fb-table", DataTable)
        fb_table.zebra_stripes = True
        fb_table.add_column("MODE", width=12)
        fb_table.add_column("SIZE", width=10)
        fb_table.add_column("NAME", width=60)

    def set_status(self, message: str) -> None:
        self.query_one("#fb-status", Static).update(Text(message))

    def show_entries(self, path: str, entries: list[FileEntry]) -> None:
        """Replace the table contents; each row is keyed by the entry name."""
        self.query_one("#fb-breadcrumb", Static).update(Text(f"Path: {path}"))
        fb_table = self.query_one("#fb-table", DataTable)
        fb_table.clear()

        if path != "/" and not any(entry.name == ".." for entry in entries):
            fb_table.add_row("", "", "..", key="..")

        for entry in entries:
            if entry.name == ".":
                continue
            fb_table.add_row(
                entry.permissions,
                entry.size_string,
                Text(entry.display_name),
                key=entry.name,
            )
