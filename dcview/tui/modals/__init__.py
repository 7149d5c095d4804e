"""
TUI Modal screens.
"""

from .text_viewer import TextViewerModal

__all__ = ["TextViewerModal"]
