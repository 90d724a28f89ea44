from __future__ import annotations

from typing import Optional

from .constants import (
    EXIT_ARGUMENT_COUNT,
    EXIT_INVALID_OPERATION,
    EXIT_PATH_NOT_FOUND,
    EXIT_IO_FAILURE,
)


class CryptoSoftError(Exception):
    """Base class for CryptoSoft-specific errors."""

    exit_code = EXIT_IO_FAILURE


# Invocation
class ArgumentCountError(CryptoSoftError):
    exit_code = EXIT_ARGUMENT_COUNT


class InvalidOperationError(CryptoSoftError):
    exit_code = EXIT_INVALID_OPERATION

    def __init__(self, operation: str):
        super().__init__(f"Invalid operation {operation!r}. Use 'encrypt' or 'decrypt'.")
        self.operation = operation


# Filesystem
class PathNotFoundError(CryptoSoftError):
    exit_code = EXIT_PATH_NOT_FOUND

    def __init__(self, path):
        super().__init__(f"Path not found: {path}")
        self.path = path


class IoFailureError(CryptoSoftError):
    """A read/write/create/delete/move step of the pipeline failed.

    The original file is left untouched and any temporary file removed before
    this is raised.
    """

    exit_code = EXIT_IO_FAILURE

    def __init__(self, path, operation: str, cause: Optional[BaseException] = None):
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Failed to {operation} {path}{detail}")
        self.path = path
        self.operation = operation
