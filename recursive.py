"""Recursive directory operations — create, list and delete remote trees.

SFTP only offers single-level calls, so each tree operation is a sequence of
stat/mkdir/listdir/remove requests. Every mutation is preceded by a stat of
the same path: SFTP v3 servers answer a mkdir on an existing directory with a
generic failure, which cannot be told apart from a real error.

Stats are lstats. Symbolic links are never followed, not even when they point
at a directory.
"""

import logging
import posixpath

import sftp_client
from sftp_client import RemoteError, DEFAULT_OPERATION_TIMEOUT
from sftp_errors import (
    MakeDirError,
    FileInfoError,
    ListDirError,
    DelFileError,
    DelDirError,
    InvalidTypeError,
    InvalidAccessError,
)
from sftp_types import FileType, Decision

log = logging.getLogger(__name__)

DEFAULT_INCLUDED_TYPES = frozenset({FileType.REGULAR})
RESULT_FORMATS = ("path", "file_info")


def split_path(path):
    """Split a slash-delimited path into components.

    An absolute path keeps "/" as its first component; empty components
    from repeated or trailing slashes are dropped.
    """
    parts = [p for p in path.split("/") if p]
    if path.startswith("/"):
        parts.insert(0, "/")
    return parts


def make_dir_recursive(sftp, path, operation_timeout=DEFAULT_OPERATION_TIMEOUT):
    """Create path and every missing parent on the server.

    Existing components must be directories with write access. Raises
    InvalidTypeError or InvalidAccessError naming the offending component,
    MakeDirError if the server refuses a mkdir, FileInfoError on any other
    stat failure. Components created before the failure are left in place.
    """
    prefix = ""
    for component in split_path(path):
        prefix = posixpath.join(prefix, component)
        try:
            info = sftp_client.stat(sftp, prefix, operation_timeout)
        except RemoteError as e:
            if e.reason != "no_such_file":
                raise FileInfoError(prefix, e.reason) from e
            log.debug("Creating directory %s", prefix)
            try:
                sftp_client.mkdir(sftp, prefix, operation_timeout)
            except RemoteError as e:
                raise MakeDirError(prefix, e.reason) from e
            continue

        if not info.is_dir:
            raise InvalidTypeError(prefix, info.type)
        if not info.access.writable:
            raise InvalidAccessError(prefix, info.access)


def del_dir_recursive(sftp, path, operation_timeout=DEFAULT_OPERATION_TIMEOUT):
    """Delete a remote directory and everything below it.

    The first failure aborts the whole operation; whatever was removed
    before it stays removed.
    """
    _del_dir(sftp, path, _stat(sftp, path, operation_timeout), operation_timeout)
    log.info("Removed directory tree %s", path)


def _del_dir(sftp, path, info, timeout):
    if not info.is_dir:
        raise InvalidTypeError(path, info.type)
    if not info.access.writable:
        raise InvalidAccessError(path, info.access)

    for name in _listdir(sftp, path, timeout):
        child = posixpath.join(path, name)
        child_info = _stat(sftp, child, timeout)
        if child_info.is_dir:
            _del_dir(sftp, child, child_info, timeout)
            continue
        log.debug("Removing file %s", child)
        try:
            sftp_client.remove(sftp, child, timeout)
        except RemoteError as e:
            raise DelFileError(child, e.reason) from e

    # The tree may have changed while the children were removed.
    info = _stat(sftp, path, timeout)
    if not info.is_dir:
        raise InvalidTypeError(path, info.type)
    if not info.access.writable:
        raise InvalidAccessError(path, info.access)

    log.debug("Removing directory %s", path)
    try:
        sftp_client.rmdir(sftp, path, timeout)
    except RemoteError as e:
        raise DelDirError(path, e.reason) from e


def list_dir_recursive(sftp, path="", operation_timeout=DEFAULT_OPERATION_TIMEOUT,
                       included_types=DEFAULT_INCLUDED_TYPES, result_format="path",
                       iterate_callback=None, recurse_callback=None):
    """Recursively list a remote directory.

    Returns a list of paths, or of (path, FileInfo) tuples when
    result_format is "file_info", in depth-first pre-order. Only entries
    whose type is in included_types and which are readable are returned;
    unreadable directories are not descended into. Symlinks are not followed.

    iterate_callback(path) is asked about every entry before it is stat'ed:
      - Decision.SKIP: drop the entry without a stat,
      - Decision.SKIP_BUT_INCLUDE: include it without a stat (info is None),
      - Decision.PROCEED (or None): stat it and handle it normally.

    recurse_callback(path) is asked about every readable directory before
    descending into it:
      - Decision.SKIP: do not descend,
      - Decision.SKIP_BUT_INCLUDE: do not descend, but include the directory
        itself even if directories are not in included_types,
      - Decision.PROCEED (or None): descend.

    Both callbacks let large trees be pruned by name alone, e.g. answering
    SKIP_BUT_INCLUDE for every "*.pdf" saves a stat per file when such
    paths are known to be regular files.

    Any stat or listing failure raises and no partial result is returned.
    """
    if result_format not in RESULT_FORMATS:
        raise ValueError(f"result_format must be one of {RESULT_FORMATS}, got {result_format!r}")

    info = _stat(sftp, path, operation_timeout)
    if not info.is_dir:
        raise InvalidTypeError(path, info.type)
    if not info.access.readable:
        raise InvalidAccessError(path, info.access)

    walk = _Walk(sftp, operation_timeout, frozenset(included_types), result_format,
                 iterate_callback, recurse_callback)
    walk.visit(path)
    log.debug("Listed %s: %d entries", path, len(walk.results))
    return walk.results


class _Walk:
    """State of one list_dir_recursive call."""

    def __init__(self, sftp, timeout, included_types, result_format,
                 iterate_callback, recurse_callback):
        self.sftp = sftp
        self.timeout = timeout
        self.included_types = included_types
        self.result_format = result_format
        self.iterate_callback = iterate_callback
        self.recurse_callback = recurse_callback
        self.results = []

    def _item(self, path, info):
        if self.result_format == "path":
            return path
        return (path, info)

    def visit(self, path):
        for name in _listdir(self.sftp, path, self.timeout):
            child = posixpath.join(path, name)

            decision = Decision.PROCEED
            if self.iterate_callback is not None:
                decision = Decision.coerce(self.iterate_callback(child))
            if decision is Decision.SKIP:
                continue
            if decision is Decision.SKIP_BUT_INCLUDE:
                self.results.append(self._item(child, None))
                continue

            info = _stat(self.sftp, child, self.timeout)
            if not info.access.readable:
                continue

            included = info.type in self.included_types
            if included:
                self.results.append(self._item(child, info))
            if not info.is_dir:
                continue

            decision = Decision.PROCEED
            if self.recurse_callback is not None:
                decision = Decision.coerce(self.recurse_callback(child))
            if decision is Decision.PROCEED:
                self.visit(child)
            elif decision is Decision.SKIP_BUT_INCLUDE and not included:
                self.results.append(self._item(child, info))


def _stat(sftp, path, timeout):
    try:
        return sftp_client.stat(sftp, path, timeout)
    except RemoteError as e:
        raise FileInfoError(path, e.reason) from e


def _listdir(sftp, path, timeout):
    try:
        return sftp_client.listdir(sftp, path, timeout)
    except RemoteError as e:
        raise ListDirError(path, e.reason) from e
