"""File and input helpers for pglocks."""

from pathlib import Path
from typing import Optional


def read_sql_file(file_path: Path) -> str:
    """
    Read a SQL file and return its contents as a string.

    Args:
        file_path: Path to the SQL file to read

    Returns:
        The contents of the SQL file as a string

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the path is not a regular file
        PermissionError: If the file cannot be read
        UnicodeDecodeError: If the file encoding is not UTF-8
    """
    if not file_path.exists():
        raise FileNotFoundError(f"SQL file not found: {file_path}")

    if not file_path.is_file():
        raise ValueError(f"Path is not a file: {file_path}")

    try:
        return file_path.read_text(encoding="utf-8")
    except PermissionError as e:
        raise PermissionError(f"Cannot read file {file_path}: {e}") from e
    except UnicodeDecodeError as e:
        raise UnicodeDecodeError(
            e.encoding,
            e.object,
            e.start,
            e.end,
            f"File {file_path} is not valid UTF-8: {e.reason}",
        ) from e


def resolve_sql(
    file_path: Optional[Path], sql_text: Optional[str], label: str = "SQL"
) -> str:
    """
    Pick the SQL to analyze from a file argument or inline text.

    Exactly one of ``file_path`` and ``sql_text`` must be given.

    Raises:
        ValueError: If both or neither source is given.
        FileNotFoundError, PermissionError, UnicodeDecodeError: As
            ``read_sql_file``.
    """
    if file_path is not None and sql_text is not None:
        raise ValueError(f"Provide either a file or inline text for {label}, not both")
    if file_path is not None:
        return read_sql_file(file_path)
    if sql_text is not None:
        return sql_text
    raise ValueError(f"No {label} given: pass a file or inline text")
