"""Process-wide handle on the SQL parser.

Resolving a sqlglot dialect builds its tokenizer and parser tables, which is
done once per dialect and shared by every analysis. Each ``ParserHandle`` runs
that initialization at most once, even when several threads ask for it before
the first attempt has finished; success or failure is remembered for the life
of the handle.
"""

import threading
from enum import Enum
from typing import Dict, List, Optional

from sqlglot import exp
from sqlglot.dialects.dialect import Dialect

from pglocks.parser.dialect import DIALECT_NAME, PostgresLocks  # noqa: F401


class ParserState(str, Enum):
    """Lifecycle of a parser handle."""

    NOT_STARTED = "not_started"
    INITIALIZING = "initializing"
    READY = "ready"
    FAILED = "failed"


class ParserUnavailableError(Exception):
    """Raised when the parser could not be initialized."""

    pass


class ParserHandle:
    """Lazily initialized parser for one sqlglot dialect."""

    def __init__(self, dialect: str = DIALECT_NAME):
        """
        Create a handle without initializing it.

        Args:
            dialect: sqlglot dialect name (default: the bundled lock dialect)
        """
        self.dialect_name = dialect
        self._lock = threading.Lock()
        self._state = ParserState.NOT_STARTED
        self._dialect: Optional[Dialect] = None
        self._error: Optional[Exception] = None

    @property
    def state(self) -> ParserState:
        """Current lifecycle state."""
        return self._state

    @property
    def error(self) -> Optional[Exception]:
        """The initialization failure, if any."""
        return self._error

    def initialize(self) -> Dialect:
        """
        Initialize the parser if needed and return the dialect.

        Concurrent callers block on the same attempt and all observe its
        outcome.

        Returns:
            The ready sqlglot Dialect instance.

        Raises:
            ParserUnavailableError: If initialization failed, now or earlier.
        """
        if self._state is ParserState.READY and self._dialect is not None:
            return self._dialect

        with self._lock:
            if self._state is ParserState.READY and self._dialect is not None:
                return self._dialect
            if self._state is ParserState.FAILED:
                raise ParserUnavailableError(
                    f"SQL parser for dialect '{self.dialect_name}' is unavailable: "
                    f"{self._error}"
                ) from self._error

            self._state = ParserState.INITIALIZING
            try:
                dialect = Dialect.get_or_raise(self.dialect_name)
                # Builds the tokenizer and keyword tables up front.
                dialect.tokenize("SELECT 1")
            except Exception as e:
                self._error = e
                self._state = ParserState.FAILED
                raise ParserUnavailableError(
                    f"SQL parser for dialect '{self.dialect_name}' is unavailable: {e}"
                ) from e

            self._dialect = dialect
            self._state = ParserState.READY
            return dialect

    def parse(self, sql: str) -> List[exp.Expression]:
        """
        Parse SQL into statement trees, dropping empty statements.

        Raises:
            ParserUnavailableError: If the parser could not be initialized.
            sqlglot.errors.ParseError: If the SQL is invalid.
            sqlglot.errors.TokenError: If the SQL cannot be tokenized.
        """
        dialect = self.initialize()
        return [expr for expr in dialect.parse(sql) if expr is not None]

    def parse_one(self, sql: str) -> Optional[exp.Expression]:
        """Parse SQL expected to hold at most one statement."""
        statements = self.parse(sql)
        return statements[0] if statements else None


# One shared handle per dialect name
_handles: Dict[str, ParserHandle] = {}
_handles_lock = threading.Lock()


def get_parser_handle(dialect: Optional[str] = None) -> ParserHandle:
    """Return the shared handle for ``dialect`` (default: lock dialect).

    Example:
        >>> handle = get_parser_handle()
        >>> handle.parse("SELECT * FROM users")[0].sql()
        'SELECT * FROM users'
    """
    name = dialect or DIALECT_NAME
    with _handles_lock:
        handle = _handles.get(name)
        if handle is None:
            handle = ParserHandle(name)
            _handles[name] = handle
        return handle


def clear_parser_handles() -> None:
    """Forget every shared handle.

    This is primarily useful for testing.
    """
    with _handles_lock:
        _handles.clear()
