"""
TUI widgets.
"""

from .file_browser import FileBrowser

__all__ = ["FileBrowser"]
