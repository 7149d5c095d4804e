import pytest

from dcview.modules.access import FileAccess, LiveTarget, SnapshotTarget
from dcview.modules.errors import AllStrategiesExhausted, NotFound
from dcview.modules.finders import ArchiveIndex
from dcview.modules.keepers import HelperBinarySet
from dcview.modules.runtime import ContainerHandle

from conftest import LS_ROOT, FakeRunner, make_tar


DIRECT = ContainerHandle.direct("abc123")
NESTED = ContainerHandle.nested("host123", "dind456")

HELPER = "/.dcv-helper"


def entry_shape(entries):
    return [(e.name, e.size, e.permissions, e.is_dir, e.link_target) for e in entries]


def script_helper(runner, inspect_amd64, listing=LS_ROOT, cat=b"hello\n"):
    runner.on("inspect", "abc123", output=inspect_amd64)
    runner.on("cp")
    runner.on("exec", "abc123", HELPER, "ls", output=listing)
    runner.on("exec", "abc123", HELPER, "cat", output=cat)


class TestListFiles:

    def test_native_success(self, access, runner):
        runner.on("exec", "abc123", "ls", "-la", "/", output=LS_ROOT)

        entries = access.list_files(DIRECT, "/")
        assert [e.name for e in entries] == [".", "..", "bin", "etc", "my file.txt", "link"]
        assert runner.calls == [["exec", "abc123", "ls", "-la", "/"]]

    def test_native_empty_output_is_empty_listing(self, access, runner):
        runner.on("exec", "abc123", "ls", "-la", "/empty", output=b"")
        assert access.list_files(DIRECT, "/empty") == []

    def test_nested_native_command(self, access, runner):
        runner.on("exec", "host123", "docker", "exec", "dind456", "ls", "-la", "/",
                  output=LS_ROOT)

        entries = access.list_files(NESTED, "/")
        assert len(entries) == 6

    def test_native_failure_falls_back_to_helper(self, access, runner, inspect_amd64):
        runner.on("exec", "abc123", "ls", output="exec: \"ls\": executable file not found", exit_code=126)
        script_helper(runner, inspect_amd64)

        entries = access.list_files(DIRECT, "/")
        assert runner.calls[-1] == ["exec", "abc123", HELPER, "ls", "/"]

        native = FileAccess(run=_native_only(LS_ROOT))
        assert entry_shape(entries) == entry_shape(native.list_files(DIRECT, "/"))

    def test_unparseable_native_output_falls_back(self, access, runner, inspect_amd64):
        runner.on("exec", "abc123", "ls", output="BusyBox v1.36 applet not found")
        script_helper(runner, inspect_amd64)

        entries = access.list_files(DIRECT, "/")
        assert len(entries) == 6
        assert runner.calls_starting_with("exec", "abc123", HELPER, "ls")

    def test_both_strategies_fail(self, access, runner, inspect_amd64):
        runner.on("exec", "abc123", "ls", output="ls: not found", exit_code=127)
        runner.on("inspect", "abc123", output=inspect_amd64)
        runner.on("cp", output="Error response from daemon: container is paused", exit_code=1)

        with pytest.raises(AllStrategiesExhausted) as exc_info:
            access.list_files(DIRECT, "/etc")

        message = str(exc_info.value)
        assert "ls: not found" in message
        assert "container is paused" in message
        assert "Path: /etc" in message
        assert exc_info.value.native is not None
        assert exc_info.value.helper is not None

    def test_helper_is_injected_once_per_session(self, access, runner, inspect_amd64):
        runner.on("exec", "abc123", "ls", exit_code=126)
        script_helper(runner, inspect_amd64)

        access.list_files(DIRECT, "/")
        access.list_files(DIRECT, "/etc")
        assert len(runner.calls_starting_with("cp")) == 1
        assert len(runner.calls_starting_with("inspect")) == 1

    def test_vanished_helper_is_injected_again(self, access, runner, inspect_amd64):
        runner.on("exec", "abc123", "ls", exit_code=126)
        script_helper(runner, inspect_amd64)
        access.list_files(DIRECT, "/")

        runner.on("exec", "abc123", HELPER, "ls", output="exec: no such file or directory", exit_code=127)
        with pytest.raises(AllStrategiesExhausted):
            access.list_files(DIRECT, "/")
        assert DIRECT not in access.session.injected

        runner.on("exec", "abc123", HELPER, "ls", output=LS_ROOT)
        assert len(access.list_files(DIRECT, "/")) == 6
        assert len(runner.calls_starting_with("cp")) == 2

    def test_helper_error_keeps_injection(self, access, runner, inspect_amd64):
        runner.on("exec", "abc123", "ls", exit_code=126)
        script_helper(runner, inspect_amd64)
        runner.on("exec", "abc123", HELPER, "ls", output="helper: permission denied", exit_code=1)

        with pytest.raises(AllStrategiesExhausted):
            access.list_files(DIRECT, "/root")
        assert DIRECT in access.session.injected

    def test_nested_fallback(self, access, runner):
        prefix = ("exec", "host123", "docker")
        runner.on(*prefix, "exec", "dind456", "ls", exit_code=126)
        runner.on(*prefix, "inspect", "dind456", output='[{"Platform": "linux/arm64"}]')
        runner.on("cp")
        runner.on(*prefix, "cp")
        runner.on(*prefix, "exec", "dind456", HELPER, "ls", output=LS_ROOT)

        entries = access.list_files(NESTED, "/")
        assert len(entries) == 6
        assert runner.calls[-1] == [*prefix, "exec", "dind456", HELPER, "ls", "/"]


class TestReadFile:

    def test_native_success(self, access, runner):
        runner.on("exec", "abc123", "cat", "/etc/hostname", output=b"box\n")
        assert access.read_file(DIRECT, "/etc/hostname") == b"box\n"
        assert len(runner.calls) == 1

    def test_fallback_to_helper(self, access, runner, inspect_amd64):
        runner.on("exec", "abc123", "cat", exit_code=126)
        script_helper(runner, inspect_amd64, cat=b"from helper")

        assert access.read_file(DIRECT, "/etc/hostname") == b"from helper"
        assert runner.calls[-1] == ["exec", "abc123", HELPER, "cat", "/etc/hostname"]

    def test_both_fail(self, access, runner, inspect_amd64):
        runner.on("exec", "abc123", "cat", output="cat: /etc: Is a directory", exit_code=1)
        script_helper(runner, inspect_amd64)
        runner.on("exec", "abc123", HELPER, "cat", output="helper: is a directory", exit_code=1)

        with pytest.raises(AllStrategiesExhausted) as exc_info:
            access.read_file(DIRECT, "/etc")
        assert "Is a directory" in str(exc_info.value)
        assert "helper: is a directory" in str(exc_info.value)

    def test_missing_payload_is_reported(self, runner, settings, session, inspect_amd64):
        access = FileAccess(run=runner, settings=settings,
                            binaries=HelperBinarySet({}), session=session)
        runner.on("exec", "abc123", "cat", exit_code=126)
        runner.on("inspect", "abc123", output=inspect_amd64)

        with pytest.raises(AllStrategiesExhausted, match="not embedded"):
            access.read_file(DIRECT, "/etc/hostname")


class TestInjectAndSnapshot:

    def test_inject_helper(self, access, runner, inspect_amd64):
        runner.on("inspect", "abc123", output=inspect_amd64)
        runner.on("cp")
        assert access.inject_helper(DIRECT) == HELPER
        assert DIRECT in access.session.injected

    def test_snapshot_direct(self, access, runner):
        runner.on("export", "abc123", output=make_tar([("etc/hostname", b"box\n")]))

        index = access.snapshot(DIRECT)
        assert index.read_file("/etc/hostname") == b"box\n"
        assert runner.calls == [["export", "abc123"]]

    def test_snapshot_nested(self, access, runner):
        runner.on("exec", "host123", "docker", "export", "dind456",
                  output=make_tar([("a/b.txt", b"X")]))

        index = access.snapshot(NESTED)
        assert index.read_file("a/b.txt") == b"X"

    def test_export_to_file(self, access, runner, tmp_path):
        archive = make_tar([("f", b"data")])
        runner.on("export", "abc123", output=archive)

        dest = tmp_path / "snap.tar"
        assert access.export_to_file(DIRECT, dest) == len(archive)
        assert dest.read_bytes() == archive


class TestTargets:

    def test_live_target(self, access, runner):
        runner.on("exec", "abc123", "ls", "-la", "/", output=LS_ROOT)
        target = LiveTarget(access, DIRECT)
        assert target.title == "abc123"
        assert len(target.list_files("/")) == 6

    def test_snapshot_target(self):
        index = ArchiveIndex.build(make_tar([("etc/hostname", b"box\n")]))
        target = SnapshotTarget(index, label="snap.tar")
        assert target.title == "Snapshot: snap.tar"
        assert target.read_file("/etc/hostname") == b"box\n"
        with pytest.raises(NotFound):
            target.list_files("/nope")


def _native_only(listing):
    return FakeRunner().on("exec", "abc123", "ls", "-la", output=listing)
