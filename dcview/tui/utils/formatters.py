"""
Utility functions for the file browser.

Contains:
- Binary content detection
- Container path helpers
"""

import posixpath


def is_binary_content(content: str | bytes) -> bool:
    """Detect if content appears to be binary data.

    Checks for:
    1. Null bytes (\\x00) - definitive binary indicator
    2. High ratio of non-printable characters (>10%)

    Args:
        content: File content, raw or decoded

    Returns:
        True if content appears to be binary data
    """
    if isinstance(content, (bytes, bytearray)):
        if b'\x00' in content:
            return True
        content = bytes(content[:4000]).decode("utf-8", errors="replace")

    if '\x00' in content:
        return True

    # Sample first 1000 chars to check non-printable ratio
    sample = content[:1000]
    if not sample:
        return False

    non_printable = sum(1 for c in sample if not c.isprintable() and c not in '\n\r\t')
    return non_printable / len(sample) > 0.1  # >10% non-printable = binary


def join_path(directory: str, name: str) -> str:
    """Join a container directory and an entry name.

    Examples:
        '/', 'etc'       -> '/etc'
        '/etc', 'hosts'  -> '/etc/hosts'
    """
    if directory in ("", "/"):
        return f"/{name}"
    return f"{directory.rstrip('/')}/{name}"


def parent_path(path: str) -> str:
    """Parent of a container path; the root is its own parent."""
    path = path.rstrip("/")
    if not path:
        return "/"
    return posixpath.dirname(path) or "/"
