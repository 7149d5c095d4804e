# tar_parser.py
# Manual tar header parser for container filesystem snapshots
#
# Parses 512-byte tar headers from an uncompressed archive buffer (the
# output of `docker export`) and yields each member with its content.


from dataclasses import dataclass
from typing import Iterator, Optional

from dcview.modules.errors import ArchiveError


BLOCK_SIZE = 512
END_OF_ARCHIVE = b'\x00' * BLOCK_SIZE

# Typeflags
REGTYPE = '0'
AREGTYPE = '\x00'
LNKTYPE = '1'
SYMTYPE = '2'
CHRTYPE = '3'
BLKTYPE = '4'
DIRTYPE = '5'
FIFOTYPE = '6'
CONTTYPE = '7'
GNU_LONGNAME = 'L'
GNU_LONGLINK = 'K'
PAX_HEADER = 'x'
PAX_GLOBAL = 'g'

REGULAR_TYPES = (REGTYPE, AREGTYPE, CONTTYPE)


@dataclass
class TarHeader:
    """A single tar archive header (file, directory, link, ...)."""
    name: str
    mode: int           # Permission bits (e.g., 0o755)
    uid: int
    gid: int
    size: int           # Content size in bytes
    mtime: int          # Unix timestamp
    typeflag: str
    linkname: str       # Symlink/hard link target (empty otherwise)

    @property
    def is_regular(self) -> bool:
        return self.typeflag in REGULAR_TYPES and not self.name.endswith('/')

    @property
    def is_dir(self) -> bool:
        return self.typeflag == DIRTYPE or self.name.endswith('/')

    @property
    def is_symlink(self) -> bool:
        return self.typeflag == SYMTYPE

    @property
    def is_hardlink(self) -> bool:
        return self.typeflag == LNKTYPE

    @property
    def type_char(self) -> str:
        """ls-style type prefix for this header."""
        if self.is_dir:
            return 'd'
        return {
            SYMTYPE: 'l',
            CHRTYPE: 'c',
            BLKTYPE: 'b',
            FIFOTYPE: 'p',
        }.get(self.typeflag, '-')


def _parse_octal(data: bytes, default: int = 0) -> int:
    """
    Parse a numeric header field.

    Handles the usual NUL/space padded octal and the GNU base-256 form
    (high bit of the first byte set) used for sizes over 8 GiB.
    """
    if data and data[0] & 0x80:
        value = data[0] & 0x7f
        for byte in data[1:]:
            value = (value << 8) | byte
        return value
    try:
        # Writers pad with NULs and/or spaces on either side ("012345\0 ")
        stripped = data.strip(b' \x00')
        if not stripped:
            return default
        return int(stripped, 8)
    except (ValueError, TypeError):
        return default


def _decode(data: bytes) -> str:
    return data.split(b'\x00', 1)[0].decode('utf-8', errors='surrogateescape')


def _checksum_ok(header: bytes) -> bool:
    """Header checksum: byte sum with the checksum field read as spaces."""
    stored = _parse_octal(header[148:156], -1)
    if stored < 0:
        return False
    unsigned = sum(header[:148]) + 8 * 32 + sum(header[156:])
    # Some old writers summed signed bytes
    signed = sum((b - 256 if b > 127 else b) for b in header[:148]) + 8 * 32 + \
        sum((b - 256 if b > 127 else b) for b in header[156:])
    return stored in (unsigned, signed)


def parse_tar_header(data: bytes, offset: int = 0) -> tuple[Optional[TarHeader], int]:
    """
    Parse a 512-byte tar header at the given offset.

    Returns (header, next_offset), or (None, -1) at the end-of-archive
    marker or when the buffer is exhausted.

    Tar header structure (POSIX ustar):
    - 0-99: filename (100 bytes, null-terminated)
    - 100-107: mode (8 bytes octal)
    - 108-115: uid (8 bytes octal)
    - 116-123: gid (8 bytes octal)
    - 124-135: size (12 bytes octal)
    - 136-147: mtime (12 bytes octal)
    - 148-155: checksum (8 bytes)
    - 156: typeflag (1 byte)
    - 157-256: linkname (100 bytes)
    - 257-262: magic "ustar\\0" or "ustar " (6 bytes)
    - 345-500: prefix (155 bytes, for long filenames)

    Raises:
        ArchiveError: if the block is not a valid header (bad checksum)
    """
    if offset + BLOCK_SIZE > len(data):
        return None, -1

    header = data[offset:offset + BLOCK_SIZE]

    # Null block marks the end of the archive
    if header == END_OF_ARCHIVE:
        return None, -1

    if not _checksum_ok(header):
        raise ArchiveError(f"invalid tar header checksum at offset {offset}")

    name = _decode(header[0:100])

    # ustar prefix field (GNU tar uses these bytes for atime/ctime instead)
    if header[257:263] == b'ustar\x00':
        prefix = _decode(header[345:500])
        if prefix:
            name = f"{prefix}/{name}"

    mode = _parse_octal(header[100:108], 0)
    uid = _parse_octal(header[108:116], 0)
    gid = _parse_octal(header[116:124], 0)
    size = _parse_octal(header[124:136], 0)
    mtime = _parse_octal(header[136:148], 0)
    typeflag = chr(header[156]) if header[156] else AREGTYPE
    linkname = _decode(header[157:257])

    # Calculate next header offset (header + content + padding to 512 boundary)
    content_blocks = (size + BLOCK_SIZE - 1) // BLOCK_SIZE
    next_offset = offset + BLOCK_SIZE + content_blocks * BLOCK_SIZE

    return TarHeader(
        name=name,
        mode=mode & 0o7777,
        uid=uid,
        gid=gid,
        size=size,
        mtime=mtime,
        typeflag=typeflag,
        linkname=linkname,
    ), next_offset


def _parse_pax_records(payload: bytes) -> dict[str, str]:
    """Parse PAX extended header records: '<len> <key>=<value>\\n'."""
    records = {}
    pos = 0
    while pos < len(payload):
        space = payload.find(b' ', pos)
        if space < 0:
            break
        try:
            length = int(payload[pos:space])
        except ValueError:
            raise ArchiveError("malformed PAX extended header")
        if length <= 0:
            raise ArchiveError("malformed PAX extended header")
        record = payload[space + 1:pos + length - 1]
        key, _, value = record.partition(b'=')
        records[key.decode('utf-8', errors='replace')] = value.decode('utf-8', errors='surrogateescape')
        pos += length
    return records


def iter_tar_members(data: bytes) -> Iterator[tuple[TarHeader, Optional[bytes]]]:
    """
    Walk an uncompressed tar buffer one member at a time.

    Long names from GNU ('L'/'K') and PAX ('x') records are folded into
    the following header; PAX global headers are skipped.

    Yields:
        (header, content) where content is set only for regular files

    Raises:
        ArchiveError: on a bad header or content running past the buffer
    """
    offset = 0
    long_name: Optional[str] = None
    long_link: Optional[str] = None
    pax: dict[str, str] = {}

    while offset + BLOCK_SIZE <= len(data):
        header, next_offset = parse_tar_header(data, offset)
        if header is None:
            return

        if "size" in pax and header.typeflag not in (GNU_LONGNAME, GNU_LONGLINK, PAX_HEADER, PAX_GLOBAL):
            try:
                header.size = int(pax["size"])
            except ValueError as e:
                raise ArchiveError(f"malformed PAX size {pax['size']!r} for {header.name!r}") from e
            if header.size < 0:
                raise ArchiveError(f"malformed PAX size {pax['size']!r} for {header.name!r}")
            next_offset = offset + BLOCK_SIZE + (header.size + BLOCK_SIZE - 1) // BLOCK_SIZE * BLOCK_SIZE

        content_start = offset + BLOCK_SIZE
        content_end = content_start + header.size
        if content_end > len(data):
            raise ArchiveError(
                f"truncated archive: {header.name!r} needs {header.size} bytes "
                f"at offset {content_start}"
            )
        payload = data[content_start:content_end]
        offset = next_offset

        if header.typeflag == GNU_LONGNAME:
            long_name = _decode(payload)
            continue
        if header.typeflag == GNU_LONGLINK:
            long_link = _decode(payload)
            continue
        if header.typeflag == PAX_HEADER:
            pax = _parse_pax_records(payload)
            continue
        if header.typeflag == PAX_GLOBAL:
            continue

        if long_name is not None:
            header.name = long_name
        elif "path" in pax:
            header.name = pax["path"]
        if long_link is not None:
            header.linkname = long_link
        elif "linkpath" in pax:
            header.linkname = pax["linkpath"]
        long_name = long_link = None
        pax = {}

        yield header, (payload if header.is_regular else None)
