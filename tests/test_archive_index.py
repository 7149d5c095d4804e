import io

import pytest

from dcview.modules.errors import ArchiveError, NotARegularFile, NotFound
from dcview.modules.finders import ArchiveIndex, normalize_path

from conftest import make_tar


def names(entries):
    return [e.name for e in entries]


@pytest.fixture
def index():
    return ArchiveIndex.build(make_tar([
        ("./", None),
        ("./bin/", None),
        ("./bin/sh", b"#!busybox"),
        ("./etc/", None),
        ("./etc/hostname", b"box\n"),
        ("./etc/apk/", None),
        ("./etc/apk/world", b"alpine-base\n"),
        ("./etc/localtime", "/usr/share/zoneinfo/UTC", "symlink"),
        ("./bin/ash", "bin/sh", "hardlink"),
    ]))


@pytest.mark.parametrize("path, expected", [
    ("/", ""),
    ("", ""),
    (".", ""),
    ("./etc/", "etc"),
    ("/etc/apk/", "etc/apk"),
    ("usr//bin", "usr/bin"),
    ("/usr/./bin", "usr/bin"),
])
def test_normalize_path(path, expected):
    assert normalize_path(path) == expected


def test_round_trip_directory_and_file():
    index = ArchiveIndex.build(make_tar([("a/", None), ("a/b.txt", b"X")]))
    entries = index.list_directory("a")
    files = [e for e in entries if e.name not in (".", "..")]
    assert names(files) == ["b.txt"]
    assert files[0].size == 1
    assert not files[0].is_dir
    assert index.read_file("a/b.txt") == b"X"


def test_missing_directories_are_synthesized():
    index = ArchiveIndex.build(make_tar([("x/y/z.txt", b"zzz")]))

    x_entries = index.list_directory("x")
    y = [e for e in x_entries if e.name == "y"]
    assert len(y) == 1
    assert y[0].is_dir

    xy_entries = index.list_directory("x/y")
    assert "z.txt" in names(xy_entries)
    assert names(index.list_directory("/")) == ["x"]


def test_root_listing(index):
    entries = index.list_directory("/")
    assert names(entries) == ["bin", "etc"]
    assert all(e.is_dir for e in entries)


def test_non_root_listing_has_dot_entries_and_sorted_children(index):
    entries = index.list_directory("/etc")
    assert names(entries) == [".", "..", "apk", "hostname", "localtime"]
    assert entries[0].is_dir and entries[1].is_dir


def test_entry_metadata(index):
    entries = {e.name: e for e in index.list_directory("/etc")}
    assert entries["apk"].permissions == "drwxr-xr-x"
    assert entries["apk"].size == 0
    assert entries["hostname"].permissions == "-rw-r--r--"
    assert entries["hostname"].size == 4
    assert entries["localtime"].link_target == "/usr/share/zoneinfo/UTC"
    assert entries["localtime"].permissions.startswith("l")


def test_path_forms_are_equivalent(index):
    assert index.list_directory("etc") == index.list_directory("/etc/")
    assert index.read_file("/etc/hostname") == index.read_file("./etc/hostname")


def test_listing_is_idempotent(index):
    assert index.list_directory("/etc") == index.list_directory("/etc")
    assert index.list_directory("/") == index.list_directory("/")


def test_read_missing_file(index):
    with pytest.raises(NotFound):
        index.read_file("/etc/shadow")


def test_read_directory(index):
    with pytest.raises(NotARegularFile):
        index.read_file("/etc")


def test_read_symlink(index):
    with pytest.raises(NotARegularFile):
        index.read_file("/etc/localtime")


def test_hardlink_resolves_to_target(index):
    assert index.read_file("/bin/ash") == b"#!busybox"


def test_list_missing_directory(index):
    with pytest.raises(NotFound, match="directory not found"):
        index.list_directory("/nope")


def test_list_regular_file(index):
    with pytest.raises(NotFound, match="not a directory"):
        index.list_directory("/etc/hostname")


def test_empty_archive():
    index = ArchiveIndex.build(make_tar([]))
    assert len(index) == 0
    assert index.list_directory("/") == []


def test_build_from_stream():
    data = make_tar([("f.txt", b"hi")])
    index = ArchiveIndex.build(io.BytesIO(data))
    assert "f.txt" in index
    assert index.read_file("/f.txt") == b"hi"


def test_from_file(tmp_path):
    archive = tmp_path / "snap.tar"
    archive.write_bytes(make_tar([("etc/os-release", b"ID=alpine\n")]))
    index = ArchiveIndex.from_file(archive)
    assert index.read_file("/etc/os-release") == b"ID=alpine\n"


def test_from_missing_file(tmp_path):
    with pytest.raises(ArchiveError):
        ArchiveIndex.from_file(tmp_path / "missing.tar")


def test_from_unreadable_path(tmp_path):
    with pytest.raises(ArchiveError, match="failed to open archive"):
        ArchiveIndex.from_file(tmp_path)


def test_max_bytes_cap():
    data = make_tar([("a", b"x" * 100), ("b", b"y" * 100)])
    with pytest.raises(ArchiveError, match="exceeds limit"):
        ArchiveIndex.build(data, max_bytes=150)
    assert len(ArchiveIndex.build(data, max_bytes=200)) == 2


def test_corrupt_archive():
    with pytest.raises(ArchiveError):
        ArchiveIndex.build(b"not a tar archive".ljust(1024, b"!"))


def test_late_directory_header_keeps_children():
    index = ArchiveIndex.build(make_tar([
        ("d/inner.txt", b"1"),
        ("d/", None),
    ]))
    assert "inner.txt" in names(index.list_directory("d"))
