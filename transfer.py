"""Chunked file transfer — download and upload without loading whole files into memory."""

import logging

import sftp_client
from sftp_client import RemoteError, DEFAULT_OPERATION_TIMEOUT
from sftp_errors import (
    LocalOpenError,
    RemoteOpenError,
    LocalCloseError,
    RemoteCloseError,
    TransferError,
    local_reason,
)

log = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 32768


def download_file(sftp, remote_path, local_path, chunk_size=DEFAULT_CHUNK_SIZE,
                  operation_timeout=DEFAULT_OPERATION_TIMEOUT):
    """Download remote_path to local_path in chunks of chunk_size bytes.

    The remote file is opened before the local one, so a missing or
    unreadable remote file never leaves a local file behind.

    Raises RemoteOpenError, LocalOpenError, TransferError (direction
    "download", op "read" or "write"), RemoteCloseError or LocalCloseError.
    Handles are closed only after the whole file went through; a failed
    transfer may leave a partial local file. A chunk_size below 1 raises
    ValueError before anything is opened.
    """
    _check_chunk_size(chunk_size)
    try:
        remote = sftp_client.open_file(sftp, remote_path, "rb", operation_timeout)
    except RemoteError as e:
        raise RemoteOpenError(remote_path, e.reason) from e

    # Some servers (OpenSSH) accept a read-open on a directory and only fail
    # on the first read.
    try:
        info = sftp_client.fstat(sftp, remote, operation_timeout)
    except RemoteError as e:
        raise RemoteOpenError(remote_path, e.reason) from e
    if info.is_dir:
        _close_quietly(sftp, remote, remote_path, operation_timeout)
        raise RemoteOpenError(remote_path, "failure")

    try:
        local = open(local_path, "wb")
    except OSError as e:
        _close_quietly(sftp, remote, remote_path, operation_timeout)
        raise LocalOpenError(local_path, local_reason(e)) from e

    total = 0
    while True:
        try:
            data = sftp_client.read(sftp, remote, chunk_size, operation_timeout)
        except RemoteError as e:
            raise TransferError("download", "read", remote_path, e.reason) from e
        if not data:
            break
        try:
            local.write(data)
        except OSError as e:
            raise TransferError("download", "write", local_path, local_reason(e)) from e
        total += len(data)

    try:
        sftp_client.close_file(sftp, remote, operation_timeout)
    except RemoteError as e:
        raise RemoteCloseError(remote_path, e.reason) from e
    try:
        local.close()
    except OSError as e:
        raise LocalCloseError(local_path, local_reason(e)) from e

    log.info("Downloaded %s -> %s (%d bytes)", remote_path, local_path, total)


def upload_file(sftp, local_path, remote_path, chunk_size=DEFAULT_CHUNK_SIZE,
                operation_timeout=DEFAULT_OPERATION_TIMEOUT):
    """Upload local_path to remote_path in chunks of chunk_size bytes.

    The remote file is created if missing and truncated otherwise. Raises
    LocalOpenError, RemoteOpenError, TransferError (direction "upload"),
    RemoteCloseError or LocalCloseError.
    """
    _check_chunk_size(chunk_size)
    try:
        local = open(local_path, "rb")
    except OSError as e:
        raise LocalOpenError(local_path, local_reason(e)) from e

    try:
        remote = sftp_client.open_file(sftp, remote_path, "wb", operation_timeout)
    except RemoteError as e:
        local.close()
        raise RemoteOpenError(remote_path, e.reason) from e

    total = 0
    while True:
        try:
            data = local.read(chunk_size)
        except OSError as e:
            raise TransferError("upload", "read", local_path, local_reason(e)) from e
        if not data:
            break
        try:
            sftp_client.write(sftp, remote, data, operation_timeout)
        except RemoteError as e:
            raise TransferError("upload", "write", remote_path, e.reason) from e
        total += len(data)

    try:
        sftp_client.close_file(sftp, remote, operation_timeout)
    except RemoteError as e:
        raise RemoteCloseError(remote_path, e.reason) from e
    try:
        local.close()
    except OSError as e:
        raise LocalCloseError(local_path, local_reason(e)) from e

    log.info("Uploaded %s -> %s (%d bytes)", local_path, remote_path, total)


def _check_chunk_size(chunk_size):
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be a positive number of bytes, got {chunk_size!r}")


def _close_quietly(sftp, handle, remote_path, timeout):
    # Used only when nothing was transferred; the open error is what gets reported.
    try:
        sftp_client.close_file(sftp, handle, timeout)
    except RemoteError:
        log.debug("Ignoring close failure on %s", remote_path)
