"""
dcview TUI

A file browser over one browse target (live container or snapshot):
- Header (docked top)
- File browser: status line, breadcrumb, MODE/SIZE/NAME table
- Footer (docked bottom)

Listing and reading run in thread workers, so a slow docker exec or a
helper injection never blocks the UI. Errors replace the status line
and leave the current listing in place for re-navigation.
"""

from textual import work
from textual.app import App, ComposeResult
from textual.widgets import DataTable, Footer, Header
from textual.worker import get_current_worker

from dcview.modules.access import BrowseTarget
from dcview.modules.errors import DcviewError
from dcview.modules.finders import FileEntry
from dcview.tui.modals import TextViewerModal
from dcview.tui.utils import is_binary_content, join_path, parent_path
from dcview.tui.widgets import FileBrowser


class DcviewApp(App):
    """dcview - browse a container filesystem."""

    CSS_PATH = "styles.tcss"
    TITLE = "dcview"

    BINDINGS = [
        ("backspace", "go_up", "Up"),
        ("r", "refresh", "Refresh"),
        ("q", "quit", "Quit"),
    ]

    def __init__(self, target: BrowseTarget, initial_path: str = "/"):
        super().__init__()
        self.target = target
        self.current_path = initial_path
        self.entries: dict[str, FileEntry] = {}
        self._loading = False

    def compose(self) -> ComposeResult:
        """Compose the UI layout."""
        yield Header(show_clock=True)
        yield FileBrowser(id="file-browser")
        yield Footer()

    def on_mount(self) -> None:
        self.theme = "flexoki"
        self.sub_title = self.target.title

        browser = self.query_one("#file-browser", FileBrowser)
        browser.setup_table()
        self.load_directory(self.current_path)

    # -------------------------------------------------------------------------
    # Navigation
    # -------------------------------------------------------------------------

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        """Descend into directories, go up on '..', open files in the viewer."""
        if self._loading or event.row_key is None:
            return

        name = event.row_key.value
        if name == "..":
            self.action_go_up()
            return

        entry = self.entries.get(name)
        if entry is None:
            return

        path = join_path(self.current_path, entry.name)
        if entry.is_dir:
            self.load_directory(path)
        else:
            self.view_file(path)

    def action_go_up(self) -> None:
        if self.current_path != "/":
            self.load_directory(parent_path(self.current_path))

    def action_refresh(self) -> None:
        self.load_directory(self.current_path)

    # -------------------------------------------------------------------------
    # Workers
    # -------------------------------------------------------------------------

    @work(thread=True, exclusive=True, group="browse")
    def load_directory(self, path: str) -> None:
        """Worker to list one directory."""
        self._loading = True
        self.call_from_thread(self._set_status, f"Listing {path}...")
        try:
            entries = self.target.list_files(path)
        except DcviewError as e:
            self.call_from_thread(self._set_status, f"Error: {e}")
            self.call_from_thread(self.notify, str(e).splitlines()[0], severity="error")
            return
        finally:
            self._loading = False

        if get_current_worker().is_cancelled:
            return
        self.call_from_thread(self._show_listing, path, entries)

    def _show_listing(self, path: str, entries: list[FileEntry]) -> None:
        browser = self.query_one("#file-browser", FileBrowser)
        self.current_path = path
        self.entries = {entry.name: entry for entry in entries}
        browser.show_entries(path, entries)
        browser.set_status(f"{len(entries)} entries")

    @work(thread=True, exclusive=True, group="read")
    def view_file(self, path: str) -> None:
        """Worker to fetch a file and show it as text."""
        self.call_from_thread(self._set_status, f"Reading {path}...")
        try:
            content = self.target.read_file(path)
        except DcviewError as e:
            self.call_from_thread(self._set_status, f"Error: {e}")
            self.call_from_thread(self.notify, str(e).splitlines()[0], severity="error")
            return

        if is_binary_content(content):
            self.call_from_thread(self._set_status, f"Cannot display binary file: {path}")
            self.call_from_thread(
                self.notify,
                f"'{path}' appears to be a binary file.",
                severity="warning",
                title="Binary File Detected",
            )
            return

        self.call_from_thread(self.push_screen, TextViewerModal(path, content))
        self.call_from_thread(self._set_status, f"Viewing: {path}")

    def _set_status(self, message: str) -> None:
        self.query_one("#file-browser", FileBrowser).set_status(message)
