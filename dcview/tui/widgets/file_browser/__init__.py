"""
File Browser Widget.

Exports the FileBrowser widget for filesystem browsing.
"""

from .file_browser import FileBrowser

__all__ = ["FileBrowser"]
