# handles.py
# Container handles and the addressing resolver
#
# A handle names one browsing target: either a container reached
# directly, or a workload container running inside a Docker-in-Docker
# host. Both expose the same two argument builders, so callers never
# branch on nesting depth.

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class HandleKind(str, Enum):
    DIRECT = "direct"
    NESTED = "nested"


@dataclass(frozen=True)
class ContainerHandle:
    """
    Immutable reference to a direct or nested (DinD) container.

    Usage:
        handle = ContainerHandle.direct("abc123")
        handle.operation_args("stop")          # ['stop', 'abc123']

        dind = ContainerHandle.nested("host123", "dind456")
        dind.operation_args("stop")            # ['exec', 'host123', 'docker', 'stop', 'dind456']
        dind.file_operation_args("ls", "-la", "/")
    """
    kind: HandleKind
    container_id: str
    host_id: Optional[str] = None
    # Runtime CLI invoked inside the host for nested targets
    runtime: str = "docker"
    name: str = ""

    def __post_init__(self):
        if not self.container_id:
            raise ValueError("container_id is required")
        if self.kind is HandleKind.NESTED and not self.host_id:
            raise ValueError("nested handles need a host_id")
        if self.kind is HandleKind.DIRECT and self.host_id:
            raise ValueError("direct handles take no host_id")

    @classmethod
    def direct(cls, container_id: str, name: str = "") -> "ContainerHandle":
        return cls(HandleKind.DIRECT, container_id, name=name)

    @classmethod
    def nested(cls, host_id: str, container_id: str,
               runtime: str = "docker", name: str = "") -> "ContainerHandle":
        return cls(HandleKind.NESTED, container_id, host_id=host_id,
                   runtime=runtime, name=name)

    @property
    def is_nested(self) -> bool:
        return self.kind is HandleKind.NESTED

    @property
    def key(self) -> str:
        """Stable identity used by the per-session caches."""
        if self.is_nested:
            return f"{self.host_id}/{self.container_id}"
        return self.container_id

    @property
    def title(self) -> str:
        label = self.name or self.container_id
        if self.is_nested:
            return f"DinD: {self.host_id} ({label})"
        return label

    def operation_args(self, command: str, *extra: str) -> list[str]:
        """
        Arguments to run an arbitrary runtime command against this target.

        Direct:  [command, id, *extra]
        Nested:  [exec, host, runtime, command, id, *extra]
        """
        if self.is_nested:
            return ["exec", self.host_id, self.runtime, command, self.container_id, *extra]
        return [command, self.container_id, *extra]

    def file_operation_args(self, *parts: str) -> list[str]:
        """
        Arguments to run a command (ls, cat, the helper) inside this target.

        Direct:  [exec, id, *parts]
        Nested:  [exec, host, runtime, exec, id, *parts]
        """
        return self.operation_args("exec", *parts)


def build_operation_args(handle: ContainerHandle, command: str, *extra: str) -> list[str]:
    return handle.operation_args(command, *extra)


def build_file_operation_args(handle: ContainerHandle, *parts: str) -> list[str]:
    return handle.file_operation_args(*parts)
