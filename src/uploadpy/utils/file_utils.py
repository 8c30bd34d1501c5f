"""File operation utilities for upload and directory files."""

import codecs
import os
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import TextIO

from ..core.exceptions import FileOperationError


def validate_file_path(file_path: str | Path, operation: str = "access") -> Path:
    """Validate a file path for the specified operation.

    Args:
        file_path: Path to validate
        operation: Type of operation (read, write, access)

    Returns:
        Path object if valid

    Raises:
        FileOperationError: If path is invalid for the operation
    """
    try:
        path = Path(file_path).resolve()
    except (OSError, ValueError) as e:
        raise FileOperationError(
            "Invalid file path",
            file_path=str(file_path),
            operation=operation,
            details=str(e),
        ) from e

    if operation == "read":
        if not path.exists():
            raise FileOperationError(
                "File not found", file_path=str(path), operation=operation
            )
        if not path.is_file():
            raise FileOperationError(
                "Path is not a file", file_path=str(path), operation=operation
            )
        if not os.access(path, os.R_OK):
            raise FileOperationError(
                "Permission denied reading file",
                file_path=str(path),
                operation=operation,
            )
    elif operation == "write":
        parent = path.parent
        if not parent.is_dir():
            raise FileOperationError(
                "Directory does not exist", file_path=str(parent), operation=operation
            )
        if not os.access(parent, os.W_OK):
            raise FileOperationError(
                "Permission denied writing to directory",
                file_path=str(parent),
                operation=operation,
            )
        if path.exists() and not path.is_file():
            raise FileOperationError(
                "Path exists but is not a file",
                file_path=str(path),
                operation=operation,
            )

    return path


def validate_encoding(encoding: str) -> str:
    """Return the canonical name of a text encoding.

    Raises:
        FileOperationError: If Python does not know the encoding
    """
    try:
        return codecs.lookup(encoding).name
    except LookupError:
        raise FileOperationError(
            "Unknown file encoding", operation="read", details=encoding
        ) from None


@contextmanager
def safe_file_read(
    file_path: str | Path, encoding: str = "utf-8"
) -> Generator[TextIO, None, None]:
    """Context manager for reading a text file with uniform error handling.

    Args:
        file_path: Path to the file to read
        encoding: File encoding (default: utf-8)

    Yields:
        File object for reading, opened with universal newlines off for csv

    Raises:
        FileOperationError: If file cannot be read
    """
    path = validate_file_path(file_path, "read")

    try:
        with open(path, encoding=encoding, newline="") as file:
            yield file
    except PermissionError as e:
        raise FileOperationError(
            "Permission denied reading file", file_path=str(path), operation="read"
        ) from e
    except UnicodeDecodeError as e:
        raise FileOperationError(
            "File encoding error",
            file_path=str(path),
            operation="read",
            details=f"{encoding}: {e}",
        ) from e
    except OSError as e:
        raise FileOperationError(
            "OS error reading file",
            file_path=str(path),
            operation="read",
            details=str(e),
        ) from e
