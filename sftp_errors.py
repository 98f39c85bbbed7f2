"""Tagged errors raised by the tree and transfer operations.

Every error names the step that failed (``tag``), the path it failed on and a
short ``reason``. The exception that caused it is chained as ``__cause__``.
"""

import errno


class ToolkitError(Exception):
    tag = None

    def __init__(self, path, reason):
        self.path = path
        self.reason = reason
        super().__init__(self._message())

    def _message(self):
        return f"{self.tag}: {self.path}: {self.reason}"


class LocalOpenError(ToolkitError):
    tag = "local_open"


class RemoteOpenError(ToolkitError):
    tag = "remote_open"


class LocalCloseError(ToolkitError):
    tag = "local_close"


class RemoteCloseError(ToolkitError):
    tag = "remote_close"


class TransferError(ToolkitError):
    """The chunk loop failed. ``op`` is the side that failed: read or write."""
    tag = "transfer"

    def __init__(self, direction, op, path, reason):
        self.direction = direction
        self.op = op
        super().__init__(path, reason)

    def _message(self):
        return f"{self.direction} {self.op}: {self.path}: {self.reason}"


class MakeDirError(ToolkitError):
    tag = "make_dir"


class FileInfoError(ToolkitError):
    tag = "file_info"


class ListDirError(ToolkitError):
    tag = "list_dir"


class DelFileError(ToolkitError):
    tag = "del_file"


class DelDirError(ToolkitError):
    tag = "del_dir"


class InvalidTypeError(ToolkitError):
    tag = "invalid_type"

    def __init__(self, path, type):
        self.type = type
        super().__init__(path, f"unexpected type {type.value}")


class InvalidAccessError(ToolkitError):
    tag = "invalid_access"

    def __init__(self, path, access):
        self.access = access
        super().__init__(path, f"insufficient access {access.value}")


def local_reason(exc):
    """Short reason for a local OSError: the lower-cased errno name, e.g. 'eacces'."""
    if exc.errno is None:
        return "unknown"
    return errno.errorcode.get(exc.errno, str(exc.errno)).lower()
