# provisioner.py
# Helper binary provisioning: pick, stage, and inject the static helper
#
# Used only on the fallback path, when a target lacks a usable ls/cat.
# The helper is copied with the runtime's cp command: once for a direct
# container, twice for a nested one (host, then the inner container).

import json
import logging
import os
import platform
import shutil
import tempfile
import threading
from dataclasses import dataclass, field
from typing import Optional

from dcview.config import Settings
from dcview.modules.errors import CommandFailed, StagingError, UnsupportedArchitecture
from dcview.modules.keepers.helper_binaries import (
    HELPER_PREFIX,
    HelperBinarySet,
    default_helper_set,
    normalize_arch,
)
from dcview.modules.runtime import CommandRunner, ContainerHandle, execute_captured


logger = logging.getLogger(__name__)


# =============================================================================
# Per-session caches
# =============================================================================

class InjectionCache:
    """Targets that already have the helper installed in this session."""

    def __init__(self):
        self._lock = threading.Lock()
        self._injected: dict[str, str] = {}

    def get(self, handle: ContainerHandle) -> Optional[str]:
        with self._lock:
            return self._injected.get(handle.key)

    def mark(self, handle: ContainerHandle, install_path: str) -> None:
        with self._lock:
            self._injected[handle.key] = install_path

    def discard(self, handle: ContainerHandle) -> None:
        with self._lock:
            self._injected.pop(handle.key, None)

    def __contains__(self, handle: ContainerHandle) -> bool:
        return self.get(handle) is not None


class ArchitectureCache:
    """Detected architecture per target."""

    def __init__(self):
        self._lock = threading.Lock()
        self._arch: dict[str, str] = {}

    def get(self, handle: ContainerHandle) -> Optional[str]:
        with self._lock:
            return self._arch.get(handle.key)

    def put(self, handle: ContainerHandle, arch: str) -> None:
        with self._lock:
            self._arch[handle.key] = arch


@dataclass
class BrowseSession:
    """State shared by the operations of one browsing session."""
    injected: InjectionCache = field(default_factory=InjectionCache)
    architectures: ArchitectureCache = field(default_factory=ArchitectureCache)


# =============================================================================
# Architecture detection
# =============================================================================

def host_architecture() -> str:
    return normalize_arch(platform.machine())


def parse_architecture(inspect_output: bytes | str) -> Optional[str]:
    """
    Pull the CPU architecture out of runtime inspect JSON.

    Looks at, in order:
    - Platform in 'os/arch' form (e.g. 'linux/arm64')
    - Config.Labels['architecture']
    - Architecture (image inspect)

    Returns:
        Normalized architecture name, or None if nothing usable is present
    """
    try:
        data = json.loads(inspect_output)
    except (ValueError, TypeError):
        return None
    if isinstance(data, list):
        data = data[0] if data else {}
    if not isinstance(data, dict):
        return None

    platform_str = data.get("Platform") or ""
    if isinstance(platform_str, str) and "/" in platform_str:
        parts = platform_str.split("/")
        if len(parts) > 1 and parts[1]:
            return normalize_arch("/".join(parts[1:]) if len(parts) > 2 else parts[1])

    labels = (data.get("Config") or {}).get("Labels") or {}
    if isinstance(labels, dict) and labels.get("architecture"):
        return normalize_arch(labels["architecture"])

    arch = data.get("Architecture")
    if isinstance(arch, str) and arch:
        return normalize_arch(arch)
    return None


# =============================================================================
# Staging and injection commands
# =============================================================================

def stage_to_temp_file(payload: bytes) -> str:
    """
    Write the helper to a private temp directory with mode 0755.

    Returns:
        Path of the staged executable

    Raises:
        StagingError: if the temp directory or file cannot be created
    """
    try:
        temp_dir = tempfile.mkdtemp(prefix=f"{HELPER_PREFIX}-")
    except OSError as e:
        raise StagingError(f"failed to create temp directory: {e}") from e

    staged_path = os.path.join(temp_dir, HELPER_PREFIX)
    try:
        with open(staged_path, "wb") as f:
            f.write(payload)
        os.chmod(staged_path, 0o755)
    except OSError as e:
        shutil.rmtree(temp_dir, ignore_errors=True)
        raise StagingError(f"failed to write helper binary to temp file: {e}") from e
    return staged_path


def remove_staged_file(staged_path: str) -> None:
    """Delete a staged helper and its temp directory. Failures are only logged."""
    temp_dir = os.path.dirname(staged_path)
    try:
        shutil.rmtree(temp_dir)
    except OSError as e:
        logger.warning("Failed to clean up temp directory %s: %s", temp_dir, e)


def build_injection_commands(handle: ContainerHandle, staged_path: str,
                             install_path: str) -> list[list[str]]:
    """
    Runtime commands that copy a staged helper into the target.

    Direct:  cp <staged> <id>:<install>
    Nested:  cp <staged> <host>:<install>
             exec <host> <runtime> cp <install> <id>:<install>
    """
    if handle.is_nested:
        return [
            ["cp", staged_path, f"{handle.host_id}:{install_path}"],
            ["exec", handle.host_id, handle.runtime, "cp", install_path,
             f"{handle.container_id}:{install_path}"],
        ]
    return [
        ["cp", staged_path, f"{handle.container_id}:{install_path}"],
    ]


# =============================================================================
# Provisioner
# =============================================================================

class HelperProvisioner:
    """
    Detect, select, stage, and inject the helper binary.

    Usage:
        provisioner = HelperProvisioner(run, settings=settings, session=session)
        helper_path = provisioner.provision(handle)
        run(handle.file_operation_args(helper_path, "ls", "/"))
    """

    def __init__(
        self,
        run: CommandRunner,
        binaries: Optional[HelperBinarySet] = None,
        settings: Optional[Settings] = None,
        session: Optional[BrowseSession] = None,
    ):
        self.run = run
        self.settings = settings or Settings()
        self.binaries = binaries or default_helper_set(self.settings.helper_dir)
        self.session = session or BrowseSession()

    @property
    def install_path(self) -> str:
        return self.settings.helper_path

    def detect_architecture(self, handle: ContainerHandle) -> str:
        """
        Architecture of the target, falling back to the host's own.

        With strict_arch set, a failed detection raises instead of guessing.

        Raises:
            UnsupportedArchitecture: detection failed and strict_arch is on
        """
        cached = self.session.architectures.get(handle)
        if cached:
            return cached

        arch = None
        reason = "no architecture in inspect output"
        try:
            output = execute_captured(self.run, handle.operation_args("inspect"))
            arch = parse_architecture(output)
        except CommandFailed as e:
            reason = str(e)

        if arch:
            logger.info("Detected container architecture %s for %s", arch, handle.title)
        else:
            if self.settings.strict_arch:
                raise UnsupportedArchitecture(
                    f"could not detect architecture of {handle.title}: {reason}"
                )
            arch = host_architecture()
            logger.warning(
                "Architecture detection failed for %s (%s); using host architecture %s",
                handle.title, reason, arch,
            )

        self.session.architectures.put(handle, arch)
        return arch

    def select_binary(self, arch: str) -> bytes:
        return self.binaries.select(arch)

    def inject(self, handle: ContainerHandle, staged_path: str) -> None:
        """Run the copy commands in order; the first failure aborts."""
        commands = build_injection_commands(handle, staged_path, self.install_path)
        for step, args in enumerate(commands, start=1):
            logger.info("Injecting helper [%d/%d] into %s", step, len(commands), handle.title)
            execute_captured(self.run, args)

    def provision(self, handle: ContainerHandle) -> str:
        """
        Make sure the helper is installed in the target.

        Skips everything if this session already injected the target.

        Returns:
            Install path of the helper inside the target

        Raises:
            UnsupportedArchitecture, MissingPayload, StagingError, CommandFailed
        """
        installed = self.session.injected.get(handle)
        if installed:
            return installed

        arch = self.detect_architecture(handle)
        payload = self.select_binary(arch)
        staged_path = stage_to_temp_file(payload)
        try:
            self.inject(handle, staged_path)
        finally:
            remove_staged_file(staged_path)

        self.session.injected.mark(handle, self.install_path)
        return self.install_path
