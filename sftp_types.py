"""Remote entry types — file type, access mode, file info, listing decisions."""

import stat
from collections import namedtuple
from enum import Enum


class FileType(Enum):
    REGULAR = "regular"
    DIRECTORY = "directory"
    SYMLINK = "symlink"
    DEVICE = "device"
    OTHER = "other"
    UNKNOWN = "unknown"

    @classmethod
    def from_mode(cls, mode):
        """Classify an st_mode value. None means the server sent no mode."""
        if mode is None:
            return cls.UNKNOWN
        if stat.S_ISREG(mode):
            return cls.REGULAR
        if stat.S_ISDIR(mode):
            return cls.DIRECTORY
        if stat.S_ISLNK(mode):
            return cls.SYMLINK
        if stat.S_ISCHR(mode) or stat.S_ISBLK(mode):
            return cls.DEVICE
        return cls.OTHER


class Access(Enum):
    NONE = "none"
    READ = "read"
    WRITE = "write"
    READ_WRITE = "read_write"

    @classmethod
    def from_mode(cls, mode):
        """Derive access from the owner permission bits of st_mode.

        SFTP v3 has no notion of the access granted to the logged-in user,
        so the owner bits are the best available approximation.
        """
        if mode is None:
            return cls.NONE
        readable = bool(mode & stat.S_IRUSR)
        writable = bool(mode & stat.S_IWUSR)
        if readable and writable:
            return cls.READ_WRITE
        if readable:
            return cls.READ
        if writable:
            return cls.WRITE
        return cls.NONE

    @property
    def readable(self):
        return self in (Access.READ, Access.READ_WRITE)

    @property
    def writable(self):
        return self in (Access.WRITE, Access.READ_WRITE)


class Decision(Enum):
    """Answer returned by the listing callbacks."""
    SKIP = "skip"
    SKIP_BUT_INCLUDE = "skip_but_include"
    PROCEED = "proceed"

    @classmethod
    def coerce(cls, value):
        if value is None:
            return cls.PROCEED
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ValueError(
                f"callback returned {value!r}, expected one of "
                f"{[d.value for d in cls]}"
            ) from None


_FileInfoBase = namedtuple(
    "FileInfo", ["type", "access", "size", "atime", "mtime", "uid", "gid", "mode"]
)


class FileInfo(_FileInfoBase):
    """Stat result of a remote entry."""

    __slots__ = ()

    @classmethod
    def from_attrs(cls, attrs):
        """Build from a paramiko.SFTPAttributes."""
        mode = attrs.st_mode
        return cls(
            type=FileType.from_mode(mode),
            access=Access.from_mode(mode),
            size=attrs.st_size,
            atime=attrs.st_atime,
            mtime=attrs.st_mtime,
            uid=attrs.st_uid,
            gid=attrs.st_gid,
            mode=mode,
        )

    @property
    def is_dir(self):
        return self.type is FileType.DIRECTORY


def parse_types(names):
    """Turn an iterable of type names ("regular", "directory", ...) into a frozenset of FileType."""
    return frozenset(FileType(n.strip().lower()) for n in names if n.strip())
