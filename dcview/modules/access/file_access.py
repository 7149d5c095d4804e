# file_access.py
# File access coordinator: native commands first, injected helper second
#
# Each call makes at most two attempts. The native attempt runs the
# target's own ls/cat; any failure there (non-zero exit, or output that
# parses to nothing) moves on to the helper. If the helper attempt fails
# too, both diagnostics are raised together as AllStrategiesExhausted.

import logging
from pathlib import Path
from typing import Optional

from dcview.config import Settings
from dcview.modules.errors import (
    AllStrategiesExhausted,
    CommandFailed,
    DcviewError,
    ParseFailed,
)
from dcview.modules.finders import ArchiveIndex, FileEntry, parse_ls_output
from dcview.modules.keepers import BrowseSession, HelperBinarySet, HelperProvisioner
from dcview.modules.runtime import (
    CommandRunner,
    ContainerHandle,
    RuntimeExecutor,
    execute_captured,
)


logger = logging.getLogger(__name__)


def _parse_listing(output: bytes) -> list[FileEntry]:
    """Parse listing output; non-empty output with no entries is a failure."""
    entries = parse_ls_output(output)
    if not entries and output.strip():
        raise ParseFailed("no entries could be parsed from listing output")
    return entries


class FileAccess:
    """
    Public entry point for browsing live containers.

    Usage:
        access = FileAccess()
        handle = ContainerHandle.direct("abc123")
        for entry in access.list_files(handle, "/etc"):
            print(entry.display_name)
        data = access.read_file(handle, "/etc/hostname")

    One FileAccess (and its BrowseSession) per browsing session; the
    session remembers which targets already carry the helper.
    """

    def __init__(
        self,
        run: Optional[CommandRunner] = None,
        settings: Optional[Settings] = None,
        binaries: Optional[HelperBinarySet] = None,
        session: Optional[BrowseSession] = None,
    ):
        self.settings = settings or Settings()
        self.run = run or RuntimeExecutor(self.settings.runtime)
        self.session = session or BrowseSession()
        self.provisioner = HelperProvisioner(
            self.run,
            binaries=binaries,
            settings=self.settings,
            session=self.session,
        )

    # -------------------------------------------------------------------------
    # Listing
    # -------------------------------------------------------------------------

    def list_files(self, handle: ContainerHandle, path: str) -> list[FileEntry]:
        """
        List a directory inside the target.

        Raises:
            AllStrategiesExhausted: native ls and the helper both failed
        """
        try:
            return self._list_native(handle, path)
        except (CommandFailed, ParseFailed) as native_error:
            logger.debug("Native listing of %s failed, trying helper: %s", path, native_error)
            try:
                return self._list_helper(handle, path)
            except DcviewError as helper_error:
                raise AllStrategiesExhausted(
                    "list directory", handle.title, path, native_error, helper_error
                ) from helper_error

    def _list_native(self, handle: ContainerHandle, path: str) -> list[FileEntry]:
        output = execute_captured(self.run, handle.file_operation_args("ls", "-la", path))
        return _parse_listing(output)

    def _list_helper(self, handle: ContainerHandle, path: str) -> list[FileEntry]:
        return _parse_listing(self._run_helper(handle, "ls", path))

    def _run_helper(self, handle: ContainerHandle, *args: str) -> bytes:
        helper_path = self.provisioner.provision(handle)
        try:
            return execute_captured(self.run, handle.file_operation_args(helper_path, *args))
        except CommandFailed as e:
            # 126/127: the helper is gone (target recreated), inject again next time
            if e.exit_code in (126, 127):
                self.session.injected.discard(handle)
            raise

    # -------------------------------------------------------------------------
    # Reading
    # -------------------------------------------------------------------------

    def read_file(self, handle: ContainerHandle, path: str) -> bytes:
        """
        Read a file's content from the target.

        Raises:
            AllStrategiesExhausted: native cat and the helper both failed
        """
        try:
            return execute_captured(self.run, handle.file_operation_args("cat", path))
        except CommandFailed as native_error:
            logger.debug("Native read of %s failed, trying helper: %s", path, native_error)
            try:
                return self._run_helper(handle, "cat", path)
            except DcviewError as helper_error:
                raise AllStrategiesExhausted(
                    "read file", handle.title, path, native_error, helper_error
                ) from helper_error

    # -------------------------------------------------------------------------
    # Helper and snapshots
    # -------------------------------------------------------------------------

    def inject_helper(self, handle: ContainerHandle) -> str:
        """Install the helper now, without listing. Returns the install path."""
        return self.provisioner.provision(handle)

    def export(self, handle: ContainerHandle) -> bytes:
        """Capture the target's filesystem as an uncompressed tar archive."""
        return execute_captured(self.run, handle.operation_args("export"))

    def export_to_file(self, handle: ContainerHandle, dest: str | Path) -> int:
        """Write the target's filesystem archive to dest. Returns bytes written."""
        archive = self.export(handle)
        Path(dest).write_bytes(archive)
        return len(archive)

    def snapshot(self, handle: ContainerHandle, max_bytes: Optional[int] = None) -> ArchiveIndex:
        """Export the target and index it for offline browsing."""
        return ArchiveIndex.build(self.export(handle), max_bytes=max_bytes)
