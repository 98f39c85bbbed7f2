"""Shared fixtures for SFTP toolkit tests."""

import errno
import os
import stat
import sys
from pathlib import Path
from unittest.mock import MagicMock

import paramiko
import pytest

# Ensure project root is on sys.path
sys.path.insert(0, str(Path(__file__).parent.parent))


class FakeSFTPClient:
    """In-process stand-in for paramiko.SFTPClient rooted at a local directory.

    Permissions are checked against the owner mode bits rather than left to
    the OS, so tests behave the same when run as root. Errors are raised the
    way paramiko raises them: IOError with errno ENOENT/EACCES, or a bare
    IOError("Failure") for the generic SFTP v3 failure code. With
    open_directories set, a read-open on a directory succeeds and the first
    read fails, as with OpenSSH.
    """

    def __init__(self, root, open_directories=False):
        self.root = Path(root)
        self.open_directories = open_directories
        self.calls = []
        self.failures = {}
        self.channel = MagicMock()

    def get_channel(self):
        return self.channel

    def _local(self, path):
        return self.root / path.lstrip("/")

    def _record(self, op, path):
        self.calls.append((op, path))
        exc = self.failures.get((op, path))
        if exc is not None:
            raise exc

    def ops(self, op):
        return [p for o, p in self.calls if o == op]

    @staticmethod
    def _require(local, bit):
        if not os.lstat(local).st_mode & bit:
            raise IOError(errno.EACCES, "Permission denied")

    def lstat(self, path):
        self._record("lstat", path)
        local = self._local(path)
        if not os.path.lexists(local):
            raise IOError(errno.ENOENT, "No such file")
        return paramiko.SFTPAttributes.from_stat(os.lstat(local))

    def listdir(self, path):
        self._record("listdir", path)
        local = self._local(path)
        if not local.exists():
            raise IOError(errno.ENOENT, "No such file")
        self._require(local, stat.S_IRUSR)
        return sorted(os.listdir(local))

    def mkdir(self, path, mode=0o777):
        self._record("mkdir", path)
        local = self._local(path)
        if os.path.lexists(local):
            raise IOError("Failure")
        self._require(local.parent, stat.S_IWUSR)
        os.mkdir(local, mode)

    def remove(self, path):
        self._record("remove", path)
        local = self._local(path)
        if not os.path.lexists(local):
            raise IOError(errno.ENOENT, "No such file")
        if local.is_dir() and not local.is_symlink():
            raise IOError("Failure")
        self._require(local.parent, stat.S_IWUSR)
        os.remove(local)

    def rmdir(self, path):
        self._record("rmdir", path)
        local = self._local(path)
        if not os.path.lexists(local):
            raise IOError(errno.ENOENT, "No such file")
        if os.listdir(local):
            raise IOError("Failure")
        os.rmdir(local)

    def open(self, path, mode="r"):
        self._record("open", path)
        local = self._local(path)
        if "w" in mode:
            if local.exists():
                self._require(local, stat.S_IWUSR)
            elif not local.parent.is_dir():
                raise IOError(errno.ENOENT, "No such file")
            else:
                self._require(local.parent, stat.S_IWUSR)
            return FakeSFTPFile(local, open(local, "wb"))
        if not local.exists():
            raise IOError(errno.ENOENT, "No such file")
        if local.is_dir():
            if not self.open_directories:
                raise IOError("Failure")
            self._require(local, stat.S_IRUSR)
            return FakeSFTPFile(local, None)
        self._require(local, stat.S_IRUSR)
        return FakeSFTPFile(local, open(local, "rb"))


class FakeSFTPFile:
    """Handle returned by FakeSFTPClient.open, with the SFTPFile methods the toolkit uses.

    A handle on a directory (``f is None``) fails every read with the generic
    failure code, like OpenSSH's sftp-server does.
    """

    def __init__(self, local, f):
        self.local = local
        self._f = f

    def stat(self):
        return paramiko.SFTPAttributes.from_stat(os.stat(self.local))

    def read(self, size):
        if self._f is None:
            raise IOError("Failure")
        return self._f.read(size)

    def write(self, data):
        self._f.write(data)

    def close(self):
        if self._f is not None:
            self._f.close()


@pytest.fixture
def remote_root(tmp_path):
    """Directory served by the fake SFTP server."""
    root = tmp_path / "remote"
    root.mkdir()
    return root


@pytest.fixture
def local_root(tmp_path):
    """Scratch directory standing in for the local file system."""
    root = tmp_path / "local"
    root.mkdir()
    return root


@pytest.fixture
def sftp(remote_root):
    return FakeSFTPClient(remote_root)


def tree(root):
    """Relative paths of everything below root, sorted."""
    return sorted(str(p.relative_to(root)) for p in Path(root).rglob("*"))
