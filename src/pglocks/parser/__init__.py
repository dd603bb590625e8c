"""SQL parser access for pglocks."""

from pglocks.parser.dialect import DIALECT_NAME, PostgresLocks
from pglocks.parser.handle import (
    ParserHandle,
    ParserState,
    ParserUnavailableError,
    clear_parser_handles,
    get_parser_handle,
)

__all__ = [
    "DIALECT_NAME",
    "ParserHandle",
    "ParserState",
    "ParserUnavailableError",
    "PostgresLocks",
    "clear_parser_handles",
    "get_parser_handle",
]
