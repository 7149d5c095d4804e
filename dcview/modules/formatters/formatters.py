import shlex
from datetime import datetime
from typing import Sequence


#========= FORMATTER
def mode_to_string(mode: int, type_char: str = "-") -> str:
    """
    Convert octal permission bits to an ls-style permission string.

    Examples:
        0o755, 'd' -> 'drwxr-xr-x'
        0o644, '-' -> '-rw-r--r--'
        0o777, 'l' -> 'lrwxrwxrwx'
    """
    perms = ''
    for shift in [6, 3, 0]:  # owner, group, other
        bits = (mode >> shift) & 0o7
        perms += 'r' if bits & 4 else '-'
        perms += 'w' if bits & 2 else '-'
        perms += 'x' if bits & 1 else '-'

    return type_char + perms

#========= FORMATTER
def format_mtime(modified_at: datetime | None) -> str:
    """Format a modification time as 'YYYY-MM-DD HH:MM'."""
    if modified_at is None:
        return "----.--.-- --:--"
    try:
        return modified_at.strftime("%Y-%m-%d %H:%M")
    except (OSError, ValueError, OverflowError):
        return "----.--.-- --:--"


def human_readable_size(size):
    for unit in ["B", "KB", "MB", "GB"]:
        if size < 1024.0:
            return f"{size:.1f} {unit}"
        size /= 1024.0
    return f"{size:.1f} TB"


def size_string(size: int, is_dir: bool = False) -> str:
    """
    Compact size column used by the file browser.

    Directories show '-', sizes under 1024 are plain bytes, larger sizes
    get one decimal and a K/M/G suffix.
    """
    if is_dir:
        return "-"
    if size < 1024:
        return str(size)
    unit = 1024
    if size < unit * unit:
        return f"{size / unit:.1f}K"
    if size < unit * unit * unit:
        return f"{size / (unit * unit):.1f}M"
    return f"{size / (unit * unit * unit):.1f}G"


def format_command(args: Sequence[str]) -> str:
    """
    Render an argument list as a single shell-safe string.

    Argument lists are handed to the runtime as argv and never re-split,
    so this is only used for logs and diagnostics. Keeping the quoting
    here means a path with spaces shows up the way it was actually passed.
    """
    return shlex.join(str(a) for a in args)
