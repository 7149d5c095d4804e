import io
import tarfile

import pytest

from dcview.config import Settings
from dcview.modules.access import FileAccess
from dcview.modules.keepers import BrowseSession, HelperBinarySet
from dcview.modules.runtime import CommandResult


MTIME = 1700000000


class FakeRunner:
    """
    Stand-in for RuntimeExecutor: records argv, replays scripted results.

    Replies come from the longest registered argv prefix that matches,
    the latest registration winning a tie; anything unscripted exits 1.
    """

    def __init__(self):
        self.calls: list[list[str]] = []
        self._rules: list[tuple[list[str], CommandResult]] = []

    def on(self, *prefix: str, output: bytes | str = b"", exit_code: int = 0) -> "FakeRunner":
        if isinstance(output, str):
            output = output.encode("utf-8")
        self._rules.append((list(prefix), CommandResult(output=output, exit_code=exit_code)))
        return self

    def __call__(self, args) -> CommandResult:
        args = list(args)
        self.calls.append(args)
        best = None
        for prefix, result in self._rules:
            if args[:len(prefix)] == prefix and (best is None or len(prefix) >= len(best[0])):
                best = (prefix, result)
        if best is None:
            return CommandResult(output=b"unexpected command", exit_code=1)
        return best[1]

    def calls_starting_with(self, *prefix: str) -> list[list[str]]:
        return [c for c in self.calls if c[:len(prefix)] == list(prefix)]


def make_tar(members, format=tarfile.USTAR_FORMAT) -> bytes:
    """
    Build an uncompressed tar archive in memory.

    members: iterable of (name, payload[, kind]) where kind is one of
    'file' (default), 'dir', 'symlink', 'hardlink'. For links the
    payload is the link target; directories take None.
    """
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w", format=format) as tar:
        for member in members:
            name, payload = member[0], member[1]
            kind = member[2] if len(member) > 2 else ("dir" if payload is None else "file")
            info = tarfile.TarInfo(name)
            info.mtime = MTIME
            if kind == "dir":
                info.type = tarfile.DIRTYPE
                info.mode = 0o755
                tar.addfile(info)
            elif kind == "symlink":
                info.type = tarfile.SYMTYPE
                info.linkname = payload
                info.mode = 0o777
                tar.addfile(info)
            elif kind == "hardlink":
                info.type = tarfile.LNKTYPE
                info.linkname = payload
                info.mode = 0o644
                tar.addfile(info)
            else:
                info.size = len(payload)
                info.mode = 0o644
                tar.addfile(info, io.BytesIO(payload))
    return buf.getvalue()


LS_ROOT = """total 64
drwxr-xr-x    1 root     root          4096 Dec 15 10:30 .
drwxr-xr-x    1 root     root          4096 Dec 15 10:30 ..
drwxr-xr-x    2 root     root          4096 Nov  2  2023 bin
drwxr-xr-x    1 root     root          4096 Dec 15 10:30 etc
-rw-r--r--    1 root     root           123 Dec 15 10:30 my file.txt
lrwxrwxrwx    1 root     root            10 Dec 15 10:30 link -> /etc/hosts
"""


@pytest.fixture
def runner():
    return FakeRunner()


@pytest.fixture
def settings():
    return Settings(runtime="docker", helper_path="/.dcv-helper")


@pytest.fixture
def binaries():
    return HelperBinarySet({
        "amd64": b"\x7fELF-amd64",
        "arm64": b"\x7fELF-arm64",
        "arm": b"\x7fELF-arm",
    })


@pytest.fixture
def session():
    return BrowseSession()


@pytest.fixture
def access(runner, settings, binaries, session):
    return FileAccess(run=runner, settings=settings, binaries=binaries, session=session)


@pytest.fixture
def inspect_amd64():
    return '[{"Id": "abc123", "Platform": "linux/amd64", "Config": {"Labels": {}}}]'
