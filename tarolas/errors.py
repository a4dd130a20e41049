# SPDX-FileCopyrightText: 2025 - Canonical Ltd
# SPDX-License-Identifier: Apache-2.0
"""Error kinds reported by the storage engines and the transport layer.

Every error is identified by an :class:`ErrorKind`. The status, application
code and title of a kind never change, they are looked up in a static table.
Only the detail is built where the error is raised.
"""

from enum import Enum
from typing import Any, Dict, NamedTuple

CHECK_SERVER_LOG = "check server log for details"


class ErrorDescriptor(NamedTuple):
    """Static attributes shared by every occurrence of an error kind."""

    status: str
    code: str
    title: str


class ErrorKind(str, Enum):
    """Enum for the error kinds known to the file server."""

    METHOD_NOT_SUPPORTED = "method_not_supported"
    PARAMETER_MISSING = "parameter_missing"
    PARAMETER_EMPTY = "parameter_empty"
    PARAMETER_NOT_INTEGER = "parameter_not_integer"
    NAME_WITHOUT_SLASH = "name_without_slash"
    DUPLICATE_PARAMETER = "duplicate_parameter"
    READ_DIRECTORY_FAILED = "read_directory_failed"
    DIRECTORY_EXISTS = "directory_exists"
    CREATE_DIRECTORY_FAILED = "create_directory_failed"
    CREATE_DIRECTORIES_FAILED = "create_directories_failed"
    DELETE_DIRECTORY_FAILED = "delete_directory_failed"
    DELETE_FILE_FAILED = "delete_file_failed"
    OPEN_FOR_APPEND_FAILED = "open_for_append_failed"
    OPEN_FOR_WRITE_FAILED = "open_for_write_failed"
    OPEN_FOR_READ_FAILED = "open_for_read_failed"
    STAT_FAILED = "stat_failed"
    APPEND_FAILED = "append_failed"
    WRITE_FAILED = "write_failed"
    READ_FILE_FAILED = "read_file_failed"
    SEEK_FAILED = "seek_failed"
    FILE_NOT_FOUND = "file_not_found"
    CHECKSUM_FAILED = "checksum_failed"
    NOT_A_FILE = "not_a_file"
    INVALID_PARAMETER_VALUE = "invalid_parameter_value"
    WALK_FAILED = "walk_failed"

    @property
    def descriptor(self) -> ErrorDescriptor:
        """Return the static descriptor of this kind."""
        return _DESCRIPTORS[self]


_DESCRIPTORS: Dict[ErrorKind, ErrorDescriptor] = {
    ErrorKind.METHOD_NOT_SUPPORTED: ErrorDescriptor(
        "400", "10001", "request method not supported"
    ),
    ErrorKind.PARAMETER_MISSING: ErrorDescriptor("400", "10837", "required parameter is missing"),
    ErrorKind.PARAMETER_EMPTY: ErrorDescriptor("400", "10767", "required parameter is empty"),
    ErrorKind.PARAMETER_NOT_INTEGER: ErrorDescriptor(
        "400", "10767", "required parameter is not an integer"
    ),
    ErrorKind.NAME_WITHOUT_SLASH: ErrorDescriptor(
        "400", "10767", "file or directory name must begin with slash"
    ),
    ErrorKind.DUPLICATE_PARAMETER: ErrorDescriptor("400", "10364", "only one parameter allowed"),
    ErrorKind.READ_DIRECTORY_FAILED: ErrorDescriptor(
        "400", "10147", "reading directory content failed"
    ),
    ErrorKind.DIRECTORY_EXISTS: ErrorDescriptor("400", "10237", "directory already exists"),
    ErrorKind.CREATE_DIRECTORY_FAILED: ErrorDescriptor("400", "10152", "creating directory failed"),
    ErrorKind.CREATE_DIRECTORIES_FAILED: ErrorDescriptor(
        "400", "10141", "creating directories failed"
    ),
    ErrorKind.DELETE_DIRECTORY_FAILED: ErrorDescriptor("400", "10371", "deleting directory failed"),
    ErrorKind.DELETE_FILE_FAILED: ErrorDescriptor("400", "10923", "deleting file failed"),
    ErrorKind.OPEN_FOR_APPEND_FAILED: ErrorDescriptor(
        "400", "10347", "opening file for append failed"
    ),
    ErrorKind.OPEN_FOR_WRITE_FAILED: ErrorDescriptor(
        "400", "10747", "opening file for writing failed"
    ),
    ErrorKind.OPEN_FOR_READ_FAILED: ErrorDescriptor(
        "400", "10352", "opening file for reading failed"
    ),
    ErrorKind.STAT_FAILED: ErrorDescriptor("400", "10489", "retrieving file info failed"),
    ErrorKind.APPEND_FAILED: ErrorDescriptor("400", "10429", "appending file failed"),
    ErrorKind.WRITE_FAILED: ErrorDescriptor("400", "10451", "writing file failed"),
    ErrorKind.READ_FILE_FAILED: ErrorDescriptor("400", "10455", "reading file failed"),
    ErrorKind.SEEK_FAILED: ErrorDescriptor("400", "10458", "seeking file failed"),
    ErrorKind.FILE_NOT_FOUND: ErrorDescriptor("400", "10938", "file not found"),
    ErrorKind.CHECKSUM_FAILED: ErrorDescriptor("400", "10956", "calculating checksum failed"),
    ErrorKind.NOT_A_FILE: ErrorDescriptor("400", "10462", "not a file"),
    ErrorKind.INVALID_PARAMETER_VALUE: ErrorDescriptor("400", "10901", "invalid parameter value"),
    ErrorKind.WALK_FAILED: ErrorDescriptor("400", "10177", "walking directory tree failed"),
}


class StorageError(Exception):
    """Raised when a file server operation fails.

    :param kind: the error kind, selects status, code and title
    :param detail: explanation specific to this occurrence, usually the
        offending parameter or name
    """

    def __init__(self, kind: ErrorKind, detail: str = ""):
        super().__init__(f"{kind.descriptor.title}: {detail}")
        self.kind = kind
        self.detail = detail

    @property
    def status(self) -> str:
        """HTTP status class of the error."""
        return self.kind.descriptor.status

    @property
    def code(self) -> str:
        """Application specific error code."""
        return self.kind.descriptor.code

    @property
    def title(self) -> str:
        """Short human readable summary, identical for every occurrence."""
        return self.kind.descriptor.title

    def to_dict(self) -> Dict[str, Any]:
        """Return the error object as serialized in an error envelope."""
        return {
            "status": self.status,
            "code": self.code,
            "title": self.title,
            "detail": self.detail,
        }
