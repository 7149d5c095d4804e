"""
Embedded helper binary set.

Static helper executables are built per CPU architecture and shipped as
package data (dcview/helpers/dcv-helper-<arch>). A missing file leaves
its slot empty, which is reported as MissingPayload rather than crashing.
"""

import logging
from functools import lru_cache
from importlib import resources
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional

from dcview.modules.errors import MissingPayload, UnsupportedArchitecture


logger = logging.getLogger(__name__)

HELPER_PREFIX = "dcv-helper"
SUPPORTED_ARCHITECTURES = ("amd64", "arm64", "arm")

ARCH_ALIASES = {
    "amd64": "amd64",
    "x86_64": "amd64",
    "x86-64": "amd64",
    "x64": "amd64",
    "arm64": "arm64",
    "aarch64": "arm64",
    "arm64/v8": "arm64",
    "arm": "arm",
    "armv7": "arm",
    "armv7l": "arm",
    "armhf": "arm",
    "arm/v7": "arm",
}


def normalize_arch(arch: str) -> str:
    """
    Map an architecture name or alias to its canonical slot name.

    Examples:
        'x86_64'  -> 'amd64'
        'aarch64' -> 'arm64'
        'armv7l'  -> 'arm'
        'riscv64' -> 'riscv64' (unknown names pass through)
    """
    arch = (arch or "").strip().lower()
    return ARCH_ALIASES.get(arch, arch)


class HelperBinarySet:
    """
    Read-only mapping of architecture -> helper executable bytes.

    Usage:
        binaries = HelperBinarySet.load()
        payload = binaries.select("x86_64")
    """

    def __init__(self, payloads: Mapping[str, bytes]):
        slots = {arch: b"" for arch in SUPPORTED_ARCHITECTURES}
        for arch, payload in payloads.items():
            slots[normalize_arch(arch)] = payload or b""
        self._payloads = MappingProxyType(slots)

    @classmethod
    def load(cls, helper_dir: Optional[str] = None) -> "HelperBinarySet":
        """
        Load payloads from helper_dir, or from the packaged helpers directory.

        Files are named dcv-helper-<arch>; absent files leave an empty slot.
        """
        if helper_dir:
            base = Path(helper_dir)
        else:
            base = resources.files("dcview.helpers")

        payloads = {}
        for arch in SUPPORTED_ARCHITECTURES:
            candidate = base / f"{HELPER_PREFIX}-{arch}"
            try:
                payloads[arch] = candidate.read_bytes() if candidate.is_file() else b""
            except OSError as e:
                logger.warning("Could not read helper payload %s: %s", candidate, e)
                payloads[arch] = b""
        return cls(payloads)

    @property
    def architectures(self) -> tuple[str, ...]:
        return tuple(self._payloads)

    def available(self) -> list[str]:
        """Architectures that actually have a payload baked in."""
        return [arch for arch, payload in self._payloads.items() if payload]

    def select(self, arch: str) -> bytes:
        """
        Return the helper payload for an architecture.

        Raises:
            UnsupportedArchitecture: no slot exists for the normalized name
            MissingPayload: the slot exists but is empty (build config error)
        """
        name = normalize_arch(arch)
        if name not in self._payloads:
            available = ", ".join(self.available()) or "none"
            raise UnsupportedArchitecture(
                f"unsupported architecture: {arch} (helpers available for: {available})"
            )
        payload = self._payloads[name]
        if not payload:
            raise MissingPayload(
                f"helper binary for {name} not embedded "
                f"(expected {HELPER_PREFIX}-{name} in the helpers directory)"
            )
        return payload


@lru_cache(maxsize=None)
def default_helper_set(helper_dir: str = "") -> HelperBinarySet:
    """Process-wide helper set, loaded once per helper directory."""
    return HelperBinarySet.load(helper_dir or None)
