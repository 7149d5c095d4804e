# ls_parser.py
# Parser for long-form directory listings (ls -la, and the helper's ls)
#
# Output from a remote shell is often partial or mixed with stderr, so
# bad lines are dropped one at a time instead of failing the listing.

import re
from datetime import datetime
from typing import Optional

from dcview.modules.errors import ParseFailed
from dcview.modules.finders.file_entry import FileEntry


# 10-char mode, optionally followed by '.', '+' or '@' (SELinux/ACL/xattr)
PERMISSION_PATTERN = re.compile(r'^[-dlcbpsD?][-rwxsStTlL]{9}[.+@]?$')

LINK_SEPARATOR = " -> "

# Fields before the name: perms, links, owner, group, size, month, day, time/year
MIN_FIELDS = 9
NAME_FIELD = 8


def _parse_mtime(month: str, day: str, time_or_year: str,
                 now: Optional[datetime] = None) -> Optional[datetime]:
    """
    Parse the three ls date fields.

    Examples:
        'Dec', '15', '10:30' -> Dec 15 10:30 of the current year
        'Dec', '15', '2023'  -> Dec 15 2023 00:00

    ls prints the time for entries younger than six months and the year
    otherwise, so a 'HH:MM' date in the future belongs to last year.
    """
    now = now or datetime.now()
    try:
        if ":" in time_or_year:
            parsed = datetime.strptime(f"{month} {day} {now.year} {time_or_year}", "%b %d %Y %H:%M")
            if (parsed - now).days > 1:
                parsed = parsed.replace(year=now.year - 1)
            return parsed
        return datetime.strptime(f"{month} {day} {time_or_year}", "%b %d %Y")
    except ValueError:
        return None


def parse_ls_line(line: str, now: Optional[datetime] = None) -> Optional[FileEntry]:
    """
    Parse one ls -la line into a FileEntry.

    Example input:
        'drwxr-xr-x  2 root root 4096 Dec 15 10:30 dirname'
        '-rw-r--r--  1 root root  123 Dec 15 10:30 my file.txt'
        'lrwxrwxrwx  1 root root   10 Dec 15 10:30 link -> /etc/hosts'

    Returns:
        FileEntry, or None if the line is blank, a 'total' line, or malformed
    """
    line = line.strip()
    if not line or line.startswith("total"):
        return None

    parts = line.split()
    if len(parts) < MIN_FIELDS:
        return None

    permissions = parts[0]
    if not PERMISSION_PATTERN.match(permissions):
        return None

    # Device nodes print "major, minor" where the size would be
    size_field = 4
    name_field = NAME_FIELD
    if parts[size_field].endswith(",") and len(parts) > MIN_FIELDS:
        size_field += 1
        name_field += 1

    try:
        size = int(parts[size_field])
    except ValueError:
        size = 0

    date_fields = parts[name_field - 3:name_field]
    modified_at = _parse_mtime(*date_fields, now=now)

    # Everything from the name field onwards is the filename (spaces included)
    name = " ".join(parts[name_field:])

    link_target = None
    if LINK_SEPARATOR in name:
        name, link_target = name.split(LINK_SEPARATOR, 1)

    is_dir = permissions[0] == "d"
    return FileEntry(
        name=name,
        size=0 if is_dir else size,
        permissions=permissions[:10],
        is_dir=is_dir,
        modified_at=modified_at,
        link_target=link_target,
    )


def parse_ls_output(raw: str | bytes, now: Optional[datetime] = None) -> list[FileEntry]:
    """
    Parse long-form listing output into FileEntry values.

    Blank lines, 'total NNN' lines and lines with fewer than nine fields
    are skipped silently. Empty input gives an empty list.

    Args:
        raw: Listing text (or raw command output bytes)
        now: Reference time for year inference (defaults to now)

    Returns:
        One FileEntry per parseable line, in input order

    Raises:
        ParseFailed: if the input is not text at all (not str/bytes, or
            binary data containing NUL bytes)
    """
    if isinstance(raw, (bytes, bytearray)):
        if b"\x00" in raw:
            raise ParseFailed("listing output contains binary data")
        raw = bytes(raw).decode("utf-8", errors="replace")
    elif not isinstance(raw, str):
        raise ParseFailed(f"cannot parse listing from {type(raw).__name__}")

    entries = []
    for line in raw.splitlines():
        entry = parse_ls_line(line, now=now)
        if entry is not None:
            entries.append(entry)
    return entries
