"""Reading user upload files."""

import csv
from collections.abc import Iterator
from pathlib import Path

from ..core.exceptions import FileOperationError, ValidationError
from ..models.schema import normalise_columns
from .console_log import print_info
from .file_utils import safe_file_read, validate_encoding

# Delimiter names accepted on the command line; cfg means the site default
DELIMITERS: dict[str, str] = {
    "comma": ",",
    "semicolon": ";",
    "colon": ":",
    "tab": "\t",
    "cfg": ",",
}


def resolve_delimiter(name: str) -> str:
    """Map a delimiter name to its character.

    Raises:
        ValidationError: If the name is unknown
    """
    try:
        return DELIMITERS[name.strip().lower()]
    except KeyError:
        raise ValidationError(
            "Invalid delimiter",
            field="delimiter",
            value=name,
            details=f"Choose one of: {', '.join(DELIMITERS)}",
        ) from None


def read_user_rows(
    file_path: str | Path, delimiter: str = "comma", encoding: str = "utf-8"
) -> Iterator[tuple[int, dict[str, str]]]:
    """Yield the rows of an upload file.

    The header is line 1; blank lines are skipped but still counted so line
    numbers match the file. Values are left untrimmed; the engine decides
    what to trim. Missing trailing cells read as empty strings.

    Args:
        file_path: Upload file
        delimiter: Delimiter name (comma, semicolon, colon, tab, cfg)
        encoding: Text encoding of the file

    Yields:
        (line_number, raw_row) pairs, raw_row keyed by normalised column name

    Raises:
        FileOperationError: If the file cannot be read or is empty
        ValidationError: If the delimiter or header row is invalid
    """
    separator = resolve_delimiter(delimiter)
    encoding = validate_encoding(encoding)

    with safe_file_read(file_path, encoding=encoding) as infile:
        reader = csv.reader(infile, delimiter=separator)
        try:
            headers = next(reader)
        except StopIteration:
            raise FileOperationError(
                "Upload file is empty", file_path=str(file_path), operation="read"
            ) from None
        except csv.Error as e:
            raise FileOperationError(
                "Malformed upload file",
                file_path=str(file_path),
                operation="read",
                details=str(e),
            ) from e

        if headers and headers[0].startswith("\ufeff"):
            headers[0] = headers[0][1:]
        columns = normalise_columns(headers)
        print_info(
            f"Upload columns: {', '.join(columns)}",
            file_path=str(file_path),
            operation="read",
        )

        try:
            for cells in reader:
                line_number = reader.line_num
                if not cells or all(not cell.strip() for cell in cells):
                    continue
                if len(cells) > len(columns):
                    raise ValidationError(
                        f"Line {line_number} has more values than columns",
                        value=str(len(cells)),
                    )
                cells = cells + [""] * (len(columns) - len(cells))
                yield line_number, dict(zip(columns, cells, strict=True))
        except csv.Error as e:
            raise FileOperationError(
                f"Malformed upload file at line {reader.line_num}",
                file_path=str(file_path),
                operation="read",
                details=str(e),
            ) from e
