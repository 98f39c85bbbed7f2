"""SFTP client — connect, close, and the per-call remote operations used by the toolkit.

Every operation takes an explicit timeout (seconds) which is applied to the
channel before the request is sent, so it bounds that one round trip and not a
whole tree or transfer.
"""

import errno
import logging
import os
import socket

import paramiko
from dotenv import load_dotenv

from sftp_types import FileInfo

log = logging.getLogger(__name__)

DEFAULT_OPERATION_TIMEOUT = 5.0


class RemoteError(Exception):
    """A remote operation failed. ``reason`` is a short tag like 'no_such_file'."""

    def __init__(self, reason, path=None):
        self.reason = reason
        self.path = path
        super().__init__(f"{path}: {reason}" if path is not None else reason)


def connect(env_path=None):
    """Connect to SFTP server using credentials from .env. Returns SFTPClient."""
    if env_path is None:
        env_path = os.path.join(os.path.dirname(__file__), ".env")
    load_dotenv(env_path)

    host = os.environ["SFTP_HOST"]
    port = int(os.environ.get("SFTP_PORT", 22))
    user = os.environ["SFTP_USER"]
    password = os.environ.get("SFTP_PASSWORD")
    key_file = os.environ.get("SFTP_KEY_FILE")

    pkey = None
    if key_file:
        pkey = paramiko.PKey.from_path(key_file, passphrase=password)
        password = None

    log.info("Connecting to %s@%s:%d", user, host, port)
    transport = paramiko.Transport((host, port))
    transport.connect(username=user, password=password, pkey=pkey)
    sftp = paramiko.SFTPClient.from_transport(transport)
    return sftp


def close(sftp):
    """Close the SFTP connection and underlying transport."""
    transport = sftp.get_channel().get_transport()
    sftp.close()
    transport.close()


def remote_reason(exc):
    """Map an exception raised by paramiko to a short reason tag."""
    if isinstance(exc, socket.timeout):
        return "timeout"
    if isinstance(exc, EOFError):
        return "eof"
    if isinstance(exc, paramiko.SSHException):
        return "channel_error"
    code = getattr(exc, "errno", None)
    if code == errno.ENOENT:
        return "no_such_file"
    if code in (errno.EACCES, errno.EPERM):
        return "permission_denied"
    if code is not None:
        return errno.errorcode.get(code, str(code)).lower()
    return "failure"


_REMOTE_EXCEPTIONS = (IOError, EOFError, paramiko.SSHException)


def _call(sftp, timeout, path, func, *args):
    sftp.get_channel().settimeout(timeout)
    try:
        return func(*args)
    except _REMOTE_EXCEPTIONS as e:
        raise RemoteError(remote_reason(e), path) from e


def stat(sftp, path, timeout=DEFAULT_OPERATION_TIMEOUT):
    """lstat a remote path. Symlinks are reported as such, never followed."""
    attrs = _call(sftp, timeout, path, sftp.lstat, path)
    return FileInfo.from_attrs(attrs)


def listdir(sftp, path, timeout=DEFAULT_OPERATION_TIMEOUT):
    """Names of the entries in a remote directory, '.' and '..' excluded."""
    names = _call(sftp, timeout, path, sftp.listdir, path)
    return [n for n in names if n not in (".", "..")]


def mkdir(sftp, path, timeout=DEFAULT_OPERATION_TIMEOUT):
    _call(sftp, timeout, path, sftp.mkdir, path)


def remove(sftp, path, timeout=DEFAULT_OPERATION_TIMEOUT):
    _call(sftp, timeout, path, sftp.remove, path)


def rmdir(sftp, path, timeout=DEFAULT_OPERATION_TIMEOUT):
    _call(sftp, timeout, path, sftp.rmdir, path)


def open_file(sftp, path, mode, timeout=DEFAULT_OPERATION_TIMEOUT):
    """Open a remote file. 'rb' reads; 'wb' creates if missing and truncates."""
    return _call(sftp, timeout, path, sftp.open, path, mode)


def fstat(sftp, handle, timeout=DEFAULT_OPERATION_TIMEOUT):
    """Stat an open remote file through its handle."""
    attrs = _call(sftp, timeout, None, handle.stat)
    return FileInfo.from_attrs(attrs)


def read(sftp, handle, size, timeout=DEFAULT_OPERATION_TIMEOUT):
    """Read up to size bytes. Returns b'' at end of file."""
    return _call(sftp, timeout, None, handle.read, size)


def write(sftp, handle, data, timeout=DEFAULT_OPERATION_TIMEOUT):
    _call(sftp, timeout, None, handle.write, data)


def close_file(sftp, handle, timeout=DEFAULT_OPERATION_TIMEOUT):
    _call(sftp, timeout, None, handle.close)
