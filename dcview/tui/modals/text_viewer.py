"""
Text Viewer Modal - Show a container file as scrollable text.
"""

from textual.app import ComposeResult
from textual.containers import Vertical, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Button, Label, Static
from rich.text import Text

from dcview.modules.formatters import size_string


class TextViewerModal(ModalScreen):
    """Modal to display raw file bytes decoded as UTF-8."""

    BINDINGS = [
        ("escape", "close", "Close"),
        ("q", "close", "Close"),
        ("w", "toggle_wrap", "Wrap"),
    ]

    def __init__(self, path: str, content: bytes):
        super().__init__()
        self.file_path = path
        self.content_text = content.decode("utf-8", errors="replace")
        self.summary = f"{path}  ({size_string(len(content))}B, {len(self.content_text.splitlines())} lines)"
        self.wrap = True

    def compose(self) -> ComposeResult:
        with Vertical(id="text-viewer-dialog"):
            yield Label(Text(self.summary), id="text-viewer-title")
            with VerticalScroll(id="text-viewer-scroll"):
                # Text() keeps file content from being parsed as markup
                yield Static(Text(self.content_text), id="text-viewer-content")
            yield Button("Close", id="btn-close-viewer")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "btn-close-viewer":
            self.dismiss()

    def action_toggle_wrap(self) -> None:
        self.wrap = not self.wrap
        content = self.query_one("#text-viewer-content", Static)
        content.update(Text(self.content_text, no_wrap=not self.wrap))
        content.styles.width = "auto" if not self.wrap else "100%"

    def action_close(self) -> None:
        self.dismiss()
