from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from dcview.modules.formatters import format_mtime, size_string

# =============================================================================
# FileEntry - one filesystem object, as listed by ls, the helper, or a snapshot
# =============================================================================

@dataclass(frozen=True)
class FileEntry:
    """A single file, directory, or link inside a container filesystem."""
    name: str
    size: int                           # Bytes, 0 for directories
    permissions: str                    # 10-char rwx form, e.g. "drwxr-xr-x"
    is_dir: bool
    modified_at: Optional[datetime] = None
    link_target: Optional[str] = None   # Set only for symbolic links

    @property
    def is_symlink(self) -> bool:
        return self.link_target is not None

    @property
    def display_name(self) -> str:
        """Name with indicators: 'dir/' or 'link -> target'."""
        if self.is_symlink:
            return f"{self.name} -> {self.link_target}"
        if self.is_dir:
            return self.name + "/"
        return self.name

    @property
    def size_string(self) -> str:
        return size_string(self.size, self.is_dir)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "size": self.size,
            "permissions": self.permissions,
            "is_dir": self.is_dir,
            "is_symlink": self.is_symlink,
            "modified_at": self.modified_at.isoformat() if self.modified_at else None,
            "link_target": self.link_target,
            "display_name": self.display_name,
        }


#----- ls -la style entry line
def format_entry_line(entry: FileEntry, show_permissions: bool = True) -> str:
    """
    Format a FileEntry for display, similar to ls -la output.

    Args:
        entry: FileEntry to render
        show_permissions: Whether to show full ls -la style output

    Returns:
        Formatted string for display
    """
    if show_permissions:
        # Full ls -la style: drwxr-xr-x        -  2024-01-15 10:30  dirname/
        size_str = entry.size_string.rjust(8)
        return f"  {entry.permissions}  {size_str}  {format_mtime(entry.modified_at)}  {entry.display_name}"
    else:
        if entry.is_symlink:
            return f"  [LINK] {entry.name} -> {entry.link_target}"
        elif entry.is_dir:
            return f"  [DIR]  {entry.name}/"
        else:
            return f"  [FILE] {entry.name} ({entry.size_string})"
