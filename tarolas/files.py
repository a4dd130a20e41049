# SPDX-FileCopyrightText: 2025 - Canonical Ltd
# SPDX-License-Identifier: Apache-2.0
"""File operations scoped below the root directory.

Uploads arrive base64 encoded and are decoded while being copied into the
file. Bounded reads are returned base64 encoded, shared reads are returned
raw with a sniffed content type. Both reads hand back a :class:`FileStream`
which owns the open descriptor until it is exhausted or closed.
"""

import binascii
import hashlib
import io
import logging
import os
import stat
from typing import BinaryIO, Iterator, Optional

from .codec import CHUNK_READ_SIZE, iter_decoded, iter_encoded
from .errors import ErrorKind, StorageError
from .models import File
from .paths import resolve
from .sniff import SNIFF_LENGTH, TEXT_PLAIN, detect_content_type

LOG = logging.getLogger(__name__)

# Bounded reads up to this many bytes are read completely before the
# response starts.
DEFAULT_BUFFERED_READ_LIMIT = 1024 * 1024


class FileStream:
    """Response body backed by an open file.

    Yields at most ``length`` bytes from the current position of ``fileobj``,
    base64 encoded when ``encode`` is set. Once iteration started the
    response status is already on the wire, so a read failure can only be
    logged and ends the body early.
    """

    def __init__(
        self,
        fileobj: BinaryIO,
        length: Optional[int],
        content_type: str,
        name: str,
        encode: bool = False,
    ):
        self._fileobj = fileobj
        self._length = length
        self.content_type = content_type
        self.name = name
        self.encode = encode

    def _raw_chunks(self) -> Iterator[bytes]:
        remaining = self._length
        try:
            while remaining is None or remaining > 0:
                want = CHUNK_READ_SIZE if remaining is None else min(CHUNK_READ_SIZE, remaining)
                buf = self._fileobj.read(want)
                if not buf:
                    if remaining:
                        LOG.error(
                            "File %s ended %d bytes early, response truncated",
                            self.name,
                            remaining,
                        )
                    return
                if remaining is not None:
                    remaining -= len(buf)
                yield buf
        except (OSError, ValueError) as exc:
            LOG.error("Reading file %s failed, response truncated: %s", self.name, exc)
        finally:
            self.close()

    def __iter__(self) -> Iterator[bytes]:
        if self.encode:
            return iter_encoded(self._raw_chunks())
        return self._raw_chunks()

    def read_all(self) -> bytes:
        """Drain the stream into memory."""
        return b"".join(self)

    def close(self) -> None:
        """Release the underlying descriptor."""
        try:
            self._fileobj.close()
        except OSError as exc:
            LOG.warning("Failed to close file %s: %s", self.name, exc)


def _copy_decoded(body: BinaryIO, out: BinaryIO) -> None:
    for buf in iter_decoded(body):
        out.write(buf)


_STORE_MODES = {
    False: ("wb", ErrorKind.OPEN_FOR_WRITE_FAILED, ErrorKind.WRITE_FAILED),
    True: ("ab", ErrorKind.OPEN_FOR_APPEND_FAILED, ErrorKind.APPEND_FAILED),
}


def _store(root: str, name: str, body: BinaryIO, append: bool) -> File:
    mode, open_kind, copy_kind = _STORE_MODES[append]
    full_name = resolve(root, name)
    try:
        out = open(full_name, mode)
    except (OSError, ValueError) as exc:
        LOG.error("Opening file %s (%s) failed: %s", name, mode, exc)
        raise StorageError(open_kind, name)
    with out:
        try:
            _copy_decoded(body, out)
            out.flush()
            size = os.fstat(out.fileno()).st_size
        except (OSError, binascii.Error) as exc:
            LOG.error("Copying into file %s failed: %s", name, exc)
            raise StorageError(copy_kind, name)
    return File(name=name, size=size)


def write(root: str, name: str, body: BinaryIO) -> File:
    """Replace the content of a file with the decoded body.

    The file is created when absent and truncated when present. The
    returned size is the final size of the file.
    """
    return _store(root, name, body, append=False)


def append(root: str, name: str, body: BinaryIO) -> File:
    """Append the decoded body to a file, creating it when absent.

    The returned size is the total size after the append, not the number
    of bytes appended.
    """
    return _store(root, name, body, append=True)


def _stat(full_name: str, name: str) -> os.stat_result:
    """Stat a file, classifying missing files and other stat failures."""
    try:
        return os.stat(full_name)
    except FileNotFoundError:
        raise StorageError(ErrorKind.FILE_NOT_FOUND, name)
    except (OSError, ValueError) as exc:
        LOG.error("Retrieving file info of %s failed: %s", name, exc)
        raise StorageError(ErrorKind.STAT_FAILED, name)


def delete(root: str, name: str) -> File:
    """Delete a file, returning its size from before the deletion."""
    full_name = resolve(root, name)
    info = _stat(full_name, name)
    if stat.S_ISDIR(info.st_mode):
        raise StorageError(ErrorKind.NOT_A_FILE, name)
    try:
        os.remove(full_name)
    except (OSError, ValueError) as exc:
        LOG.error("Deleting file %s failed: %s", name, exc)
        raise StorageError(ErrorKind.DELETE_FILE_FAILED, name)
    return File(name=name, size=info.st_size)


def exists(root: str, name: str) -> File:
    """Check whether a file exists.

    A missing file is not an error, it is reported with ``exists`` set to
    false. A directory is reported as :attr:`ErrorKind.NOT_A_FILE`.
    """
    full_name = resolve(root, name)
    try:
        info = _stat(full_name, name)
    except StorageError as exc:
        if exc.kind is ErrorKind.FILE_NOT_FOUND:
            return File(name=name, exists=False)
        raise
    if stat.S_ISDIR(info.st_mode):
        raise StorageError(ErrorKind.NOT_A_FILE, name)
    return File(name=name, size=info.st_size, exists=True)


def _open_for_reading(full_name: str, name: str) -> BinaryIO:
    try:
        return open(full_name, "rb")
    except FileNotFoundError:
        raise StorageError(ErrorKind.FILE_NOT_FOUND, name)
    except IsADirectoryError:
        raise StorageError(ErrorKind.NOT_A_FILE, name)
    except (OSError, ValueError) as exc:
        LOG.error("Opening file %s for reading failed: %s", name, exc)
        raise StorageError(ErrorKind.OPEN_FOR_READ_FAILED, name)


def checksum(root: str, name: str) -> File:
    """Compute the SHA-256 digest of a file."""
    full_name = resolve(root, name)
    try:
        f = open(full_name, "rb")
    except FileNotFoundError:
        raise StorageError(ErrorKind.FILE_NOT_FOUND, name)
    except IsADirectoryError as exc:
        LOG.error("Calculating checksum of %s failed: %s", name, exc)
        raise StorageError(ErrorKind.CHECKSUM_FAILED, name)
    except (OSError, ValueError) as exc:
        LOG.error("Opening file %s for reading failed: %s", name, exc)
        raise StorageError(ErrorKind.OPEN_FOR_READ_FAILED, name)
    with f:
        h = hashlib.sha256()
        try:
            for chunk in iter(lambda: f.read(CHUNK_READ_SIZE), b""):
                h.update(chunk)
            size = os.fstat(f.fileno()).st_size
        except OSError as exc:
            LOG.error("Calculating checksum of %s failed: %s", name, exc)
            raise StorageError(ErrorKind.CHECKSUM_FAILED, name)
    return File(name=name, size=size, checksum=h.hexdigest())


def read(
    root: str,
    name: str,
    offset: int,
    size: int,
    buffered_read_limit: int = DEFAULT_BUFFERED_READ_LIMIT,
) -> FileStream:
    """Read a window of a file, base64 encoded.

    ``offset`` must lie within the file and ``size`` must be positive and
    not larger than the file; a window reaching past the end of the file is
    clamped to it. Windows of at most ``buffered_read_limit`` bytes are read
    before returning, so a failing read is still reported as an error.
    Larger windows are streamed and a failure while streaming only
    truncates the body.
    """
    full_name = resolve(root, name)
    info = _stat(full_name, name)
    if stat.S_ISDIR(info.st_mode):
        raise StorageError(ErrorKind.NOT_A_FILE, name)
    file_size = info.st_size
    if offset < 0 or offset > file_size:
        raise StorageError(ErrorKind.INVALID_PARAMETER_VALUE, f"offset ({offset})")
    if size <= 0 or size > file_size:
        raise StorageError(ErrorKind.INVALID_PARAMETER_VALUE, f"size ({size})")
    if offset + size > file_size:
        size = file_size - offset

    f = _open_for_reading(full_name, name)
    try:
        f.seek(offset)
    except OSError as exc:
        f.close()
        LOG.error("Seeking file %s to %d failed: %s", name, offset, exc)
        raise StorageError(ErrorKind.SEEK_FAILED, name)

    if size > buffered_read_limit:
        return FileStream(f, size, TEXT_PLAIN, name, encode=True)
    with f:
        try:
            data = f.read(size)
        except OSError as exc:
            LOG.error("Reading file %s failed: %s", name, exc)
            raise StorageError(ErrorKind.READ_FILE_FAILED, name)
    return FileStream(io.BytesIO(data), len(data), TEXT_PLAIN, name, encode=True)


def served_content(root: str, name: str) -> FileStream:
    """Open a file for sharing as a download link.

    The content type is sniffed from the leading bytes of the file; the
    returned stream yields the whole file unencoded.
    """
    full_name = resolve(root, name)
    f = _open_for_reading(full_name, name)
    try:
        try:
            info = os.fstat(f.fileno())
        except OSError as exc:
            LOG.error("Retrieving file info of %s failed: %s", name, exc)
            raise StorageError(ErrorKind.STAT_FAILED, name)
        if stat.S_ISDIR(info.st_mode):
            raise StorageError(ErrorKind.NOT_A_FILE, name)
        try:
            head = f.read(SNIFF_LENGTH)
        except OSError as exc:
            LOG.error("Reading file %s failed: %s", name, exc)
            raise StorageError(ErrorKind.READ_FILE_FAILED, name)
        try:
            f.seek(0)
        except OSError as exc:
            LOG.error("Seeking file %s failed: %s", name, exc)
            raise StorageError(ErrorKind.SEEK_FAILED, name)
    except StorageError:
        f.close()
        raise
    return FileStream(f, None, detect_content_type(head), name)
