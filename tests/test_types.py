"""Tests for sftp_types.py — type/access decoding and callback decisions."""

import stat

import pytest

from sftp_types import FileType, Access, Decision, FileInfo, parse_types


class _Attrs:
    def __init__(self, mode, size=0):
        self.st_mode = mode
        self.st_size = size
        self.st_atime = 1700000000
        self.st_mtime = 1700000001
        self.st_uid = 1000
        self.st_gid = 1000


class TestFileType:
    @pytest.mark.parametrize("mode, expected", [
        (stat.S_IFREG | 0o644, FileType.REGULAR),
        (stat.S_IFDIR | 0o755, FileType.DIRECTORY),
        (stat.S_IFLNK | 0o777, FileType.SYMLINK),
        (stat.S_IFCHR | 0o600, FileType.DEVICE),
        (stat.S_IFBLK | 0o600, FileType.DEVICE),
        (stat.S_IFIFO | 0o600, FileType.OTHER),
        (stat.S_IFSOCK | 0o600, FileType.OTHER),
        (None, FileType.UNKNOWN),
    ])
    def test_from_mode(self, mode, expected):
        assert FileType.from_mode(mode) is expected


class TestAccess:
    @pytest.mark.parametrize("perms, expected", [
        (0o600, Access.READ_WRITE),
        (0o400, Access.READ),
        (0o200, Access.WRITE),
        (0o100, Access.NONE),
        (0o077, Access.NONE),
    ])
    def test_owner_bits(self, perms, expected):
        assert Access.from_mode(stat.S_IFDIR | perms) is expected

    def test_missing_mode(self):
        assert Access.from_mode(None) is Access.NONE

    def test_readable_writable(self):
        assert Access.READ_WRITE.readable and Access.READ_WRITE.writable
        assert Access.READ.readable and not Access.READ.writable
        assert Access.WRITE.writable and not Access.WRITE.readable
        assert not Access.NONE.readable and not Access.NONE.writable


class TestFileInfo:
    def test_from_attrs(self):
        info = FileInfo.from_attrs(_Attrs(stat.S_IFREG | 0o644, size=42))
        assert info.type is FileType.REGULAR
        assert info.access is Access.READ_WRITE
        assert info.size == 42
        assert info.mtime == 1700000001
        assert not info.is_dir

    def test_directory(self):
        assert FileInfo.from_attrs(_Attrs(stat.S_IFDIR | 0o500)).is_dir


class TestDecision:
    def test_none_is_proceed(self):
        assert Decision.coerce(None) is Decision.PROCEED

    def test_strings(self):
        assert Decision.coerce("skip") is Decision.SKIP
        assert Decision.coerce("skip_but_include") is Decision.SKIP_BUT_INCLUDE

    def test_member_passes_through(self):
        assert Decision.coerce(Decision.SKIP) is Decision.SKIP

    def test_invalid(self):
        with pytest.raises(ValueError, match="ok"):
            Decision.coerce("ok")


class TestParseTypes:
    def test_names(self):
        assert parse_types(["regular", " Directory ", ""]) == {FileType.REGULAR, FileType.DIRECTORY}

    def test_unknown_name(self):
        with pytest.raises(ValueError):
            parse_types(["folder"])
