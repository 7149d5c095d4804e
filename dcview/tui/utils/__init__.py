"""
TUI utility functions.

Exports formatting and path helpers used across the TUI.
"""

from .formatters import (
    is_binary_content,
    join_path,
    parent_path,
)

__all__ = [
    "is_binary_content",
    "join_path",
    "parent_path",
]
