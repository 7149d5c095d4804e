# archive_index.py
# In-memory directory index over a container filesystem snapshot
#
# Built once from an uncompressed tar stream (docker export), then
# answers list/read queries without rescanning the archive. Archives do
# not always carry a header for every directory, so missing ancestors
# are synthesized while indexing and listing falls back to a prefix scan.

import logging
import posixpath
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import BinaryIO, Optional

from dcview.modules.errors import ArchiveError, NotARegularFile, NotFound
from dcview.modules.finders.file_entry import FileEntry
from dcview.modules.finders.tar_parser import DIRTYPE, TarHeader, iter_tar_members
from dcview.modules.formatters import mode_to_string


logger = logging.getLogger(__name__)

DEFAULT_DIR_MODE = 0o755
DEFAULT_DIR_PERMISSIONS = mode_to_string(DEFAULT_DIR_MODE, 'd')


# =============================================================================
# Index Nodes
# =============================================================================

@dataclass
class IndexNode:
    """One indexed path: header metadata, file content, and child links."""
    path: str
    header: TarHeader
    content: Optional[bytes] = None     # Regular files only
    children: dict[str, "IndexNode"] = field(default_factory=dict)
    synthetic: bool = False

    @property
    def is_dir(self) -> bool:
        return self.header.is_dir

    @property
    def base_name(self) -> str:
        return posixpath.basename(self.path)


def _to_datetime(mtime: int) -> Optional[datetime]:
    if mtime <= 0:
        return None
    try:
        return datetime.fromtimestamp(mtime)
    except (OSError, ValueError, OverflowError):
        return None


def normalize_path(path: str) -> str:
    """
    Normalize an archive or query path to the index key form.

    Examples:
        "/"          -> ""
        "./etc/"     -> "etc"
        "/etc/apk/"  -> "etc/apk"
        "usr//bin"   -> "usr/bin"
    """
    path = path.strip()
    while path.startswith("./"):
        path = path[2:]
    path = path.strip("/")
    if path in ("", "."):
        return ""
    return "/".join(part for part in path.split("/") if part and part != ".")


# =============================================================================
# Archive Index
# =============================================================================

class ArchiveIndex:
    """
    Random-access view of a filesystem archive.

    Usage:
        index = ArchiveIndex.build(tar_bytes)
        for entry in index.list_directory("/etc"):
            print(entry.display_name)
        passwd = index.read_file("/etc/passwd")

    Immutable after build(); safe for concurrent read-only queries.
    """

    def __init__(self, nodes: dict[str, IndexNode], built_at: datetime):
        self._nodes = nodes
        self._built_at = built_at

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def build(cls, archive: bytes | BinaryIO, max_bytes: Optional[int] = None) -> "ArchiveIndex":
        """
        Index an uncompressed tar archive.

        Args:
            archive: Archive bytes, or a binary stream read to the end
            max_bytes: Optional cap on the file content copied into the
                index; exceeding it raises ArchiveError. The archive
                itself is still read into memory in full first.

        Returns:
            ArchiveIndex over every member of the archive

        Raises:
            ArchiveError: on corrupt or truncated framing, an unreadable
                stream, or when max_bytes is exceeded
        """
        if not isinstance(archive, (bytes, bytearray, memoryview)):
            try:
                archive = archive.read()
            except OSError as e:
                raise ArchiveError(f"failed to read archive stream: {e}") from e
        data = bytes(archive)

        built_at = datetime.now()
        nodes: dict[str, IndexNode] = {}
        buffered = 0

        for header, content in iter_tar_members(data):
            path = normalize_path(header.name)
            if not path:
                # The archive root ("./") carries nothing we list
                continue
            if content is not None:
                buffered += len(content)
                if max_bytes is not None and buffered > max_bytes:
                    raise ArchiveError(
                        f"archive content exceeds limit of {max_bytes} bytes"
                    )
            node = IndexNode(path=path, header=header, content=content)
            cls._insert(nodes, node, built_at)

        logger.debug("Indexed %d archive paths (%d content bytes)", len(nodes), buffered)
        return cls(nodes, built_at)

    @classmethod
    def from_file(cls, path: str | Path, max_bytes: Optional[int] = None) -> "ArchiveIndex":
        """Index a saved archive file (e.g. the output of docker export -o)."""
        try:
            f = open(path, "rb")
        except FileNotFoundError as e:
            raise ArchiveError(f"archive not found: {path}") from e
        except OSError as e:
            raise ArchiveError(f"failed to open archive {path}: {e}") from e
        with f:
            return cls.build(f, max_bytes=max_bytes)

    @staticmethod
    def _insert(nodes: dict[str, IndexNode], node: IndexNode, built_at: datetime) -> None:
        """Store a node, keep children of any node it replaces, link ancestors."""
        existing = nodes.get(node.path)
        if existing is not None and node.is_dir:
            node.children = existing.children
        nodes[node.path] = node

        # Walk upward, synthesizing missing ancestors and linking each
        # node into its parent's child map under its base name
        child = node
        while "/" in child.path:
            parent_path = posixpath.dirname(child.path)
            parent = nodes.get(parent_path)
            created = parent is None
            if created:
                parent = IndexNode(
                    path=parent_path,
                    header=TarHeader(
                        name=parent_path + "/",
                        mode=DEFAULT_DIR_MODE,
                        uid=0,
                        gid=0,
                        size=0,
                        mtime=int(built_at.timestamp()),
                        typeflag=DIRTYPE,
                        linkname="",
                    ),
                    synthetic=True,
                )
                nodes[parent_path] = parent
            parent.children[child.base_name] = child
            if not created:
                break
            child = parent

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, path: str) -> bool:
        return normalize_path(path) in self._nodes

    def _to_entry(self, node: IndexNode, name: Optional[str] = None) -> FileEntry:
        header = node.header
        is_dir = node.is_dir
        return FileEntry(
            name=name if name is not None else node.base_name,
            size=0 if is_dir else header.size,
            permissions=mode_to_string(header.mode, header.type_char),
            is_dir=is_dir,
            modified_at=_to_datetime(header.mtime),
            link_target=header.linkname if header.is_symlink else None,
        )

    def _placeholder(self, name: str) -> FileEntry:
        return FileEntry(
            name=name,
            size=0,
            permissions=DEFAULT_DIR_PERMISSIONS,
            is_dir=True,
            modified_at=self._built_at,
        )

    def list_directory(self, path: str) -> list[FileEntry]:
        """
        List the direct children of a directory, sorted by name.

        Non-root listings start with synthetic '.' and '..' entries.

        Raises:
            NotFound: if nothing in the archive lives at or under path
        """
        key = normalize_path(path)
        if not key:
            return self._list_root()

        node = self._nodes.get(key)
        if node is not None and node.is_dir:
            # Child map is keyed by base name; use that as the display name
            files = [self._to_entry(child, name) for name, child in node.children.items()]
        else:
            files = self._list_by_prefix(key)
            if not files:
                if node is not None:
                    raise NotFound(f"not a directory: /{key}")
                raise NotFound(f"directory not found: /{key}")

        files.sort(key=lambda f: f.name)
        return [self._placeholder("."), self._placeholder("..")] + files

    def _list_root(self) -> list[FileEntry]:
        seen: dict[str, FileEntry] = {}
        for entry_path in self._nodes:
            top_level = entry_path.split("/", 1)[0]
            if top_level in seen:
                continue
            node = self._nodes.get(top_level)
            if node is not None:
                seen[top_level] = self._to_entry(node, top_level)
            else:
                seen[top_level] = self._placeholder(top_level)
        return sorted(seen.values(), key=lambda f: f.name)

    def _list_by_prefix(self, key: str) -> list[FileEntry]:
        """Directory implied only by deeper paths: collect first segments."""
        prefix = key + "/"
        seen: dict[str, FileEntry] = {}
        for entry_path, entry in self._nodes.items():
            if not entry_path.startswith(prefix):
                continue
            parts = entry_path[len(prefix):].split("/")
            name = parts[0]
            if not name or name in seen:
                continue
            if len(parts) > 1:
                seen[name] = self._placeholder(name)
            else:
                seen[name] = self._to_entry(entry, name)
        return list(seen.values())

    def read_file(self, path: str) -> bytes:
        """
        Return the content of a regular file.

        Hard links resolve to the content of the file they point at.

        Raises:
            NotFound: no entry at path
            NotARegularFile: entry is a directory, symlink, device, ...
        """
        key = normalize_path(path)
        node = self._nodes.get(key)
        if node is None:
            raise NotFound(f"file not found: /{key}")

        if node.header.is_hardlink:
            target = self._nodes.get(normalize_path(node.header.linkname))
            if target is not None and target.header.is_regular:
                return target.content or b""

        if not node.header.is_regular:
            raise NotARegularFile(f"not a regular file: /{key}")
        return node.content or b""
