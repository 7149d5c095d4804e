"""
dcview TUI Package.

A Textual-based terminal file browser for container filesystems.
"""

from .app import DcviewApp

__all__ = ["DcviewApp"]
