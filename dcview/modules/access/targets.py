# targets.py
# Browse targets: one interface over a live container and a snapshot
#
# The CLI and the TUI navigate through a BrowseTarget, so neither needs
# to know whether listings come from docker exec or an archive index.

from dataclasses import dataclass

from dcview.modules.access.file_access import FileAccess
from dcview.modules.finders import ArchiveIndex, FileEntry
from dcview.modules.runtime import ContainerHandle


@dataclass
class LiveTarget:
    access: FileAccess
    handle: ContainerHandle

    @property
    def title(self) -> str:
        return self.handle.title

    def list_files(self, path: str) -> list[FileEntry]:
        return self.access.list_files(self.handle, path)

    def read_file(self, path: str) -> bytes:
        return self.access.read_file(self.handle, path)


@dataclass
class SnapshotTarget:
    index: ArchiveIndex
    label: str = "snapshot"

    @property
    def title(self) -> str:
        return f"Snapshot: {self.label}"

    def list_files(self, path: str) -> list[FileEntry]:
        return self.index.list_directory(path)

    def read_file(self, path: str) -> bytes:
        return self.index.read_file(path)


BrowseTarget = LiveTarget | SnapshotTarget
