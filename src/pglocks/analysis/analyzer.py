"""Lock analysis of SQL text, one result per statement."""

from typing import List, Optional, Tuple

from sqlglot import exp
from sqlglot.errors import ParseError, TokenError

from pglocks.analysis.assigner import assign_locks
from pglocks.analysis.classifier import classify
from pglocks.analysis.extractor import TableExtractor, statement_targets
from pglocks.analysis.models import (
    AnalysisErrorKind,
    AnalyzedQuery,
    Classification,
    QueryLockResult,
    QueryMetadata,
)
from pglocks.parser import ParserHandle, ParserUnavailableError, get_parser_handle

EMPTY_INPUT_MESSAGE = "Query cannot be empty"
UNKNOWN_COMMAND_MESSAGE = "Unable to identify SQL command"
NO_TABLES_MESSAGE = "No tables found in query"
MULTIPLE_STATEMENTS_MESSAGE = "Expected a single statement, found {count}"


def _preview(text: str) -> str:
    normalized = " ".join(text.split())
    preview = normalized[:100]
    if len(normalized) > 100:
        preview += "..."
    return preview


class LockAnalyzer:
    """Infer the table locks taken by every statement of a SQL script.

    Failures never raise: they come back as invalid results carrying an
    ``error`` message and an ``error_kind``.
    """

    def __init__(
        self,
        sql: str,
        dialect: Optional[str] = None,
        handle: Optional[ParserHandle] = None,
    ):
        """
        Initialize the lock analyzer.

        Args:
            sql: SQL text (can contain multiple statements)
            dialect: sqlglot dialect name (default: the bundled lock dialect)
            handle: Parser handle to use instead of the shared one
        """
        self.sql = sql
        self.handle = handle or get_parser_handle(dialect)
        self.dialect = self.handle.dialect_name
        self.extractor = TableExtractor(self.handle)

    def analyze_queries(
        self, primary_table: Optional[str] = None
    ) -> List[QueryLockResult]:
        """
        Analyze every statement in the SQL text.

        Args:
            primary_table: Table to treat as acted upon when it appears in a
                statement; the statement's own target is used otherwise.

        Returns:
            List of QueryLockResult objects (one per statement). Input that
            cannot be split into statements yields a single invalid result.
        """
        statements, failure = self._parse()
        if failure is not None:
            return [failure]
        return [
            self._analyze_statement(index, statement, primary_table)
            for index, statement in enumerate(statements)
        ]

    def analyze_query(self, primary_table: Optional[str] = None) -> QueryLockResult:
        """
        Analyze SQL text expected to hold exactly one statement.

        Returns:
            QueryLockResult; a script with more than one statement yields an
            invalid result with error kind MULTIPLE_STATEMENTS.
        """
        statements, failure = self._parse()
        if failure is not None:
            return failure
        if len(statements) > 1:
            return self._failure(
                AnalysisErrorKind.MULTIPLE_STATEMENTS,
                MULTIPLE_STATEMENTS_MESSAGE.format(count=len(statements)),
            )
        return self._analyze_statement(0, statements[0], primary_table)

    def _parse(
        self,
    ) -> Tuple[List[exp.Expression], Optional[QueryLockResult]]:
        """Split the SQL into statements.

        Returns:
            Tuple of (statements, failure); failure is set when the text
            holds no analyzable statement.
        """
        if not self.sql or not self.sql.strip():
            return [], self._failure(
                AnalysisErrorKind.EMPTY_INPUT, EMPTY_INPUT_MESSAGE
            )
        try:
            statements = self.handle.parse(self.sql)
        except ParserUnavailableError as e:
            return [], self._failure(AnalysisErrorKind.PARSER_UNAVAILABLE, str(e))
        except (ParseError, TokenError) as e:
            return [], self._failure(AnalysisErrorKind.UNPARSEABLE_INPUT, str(e))
        if not statements:
            # Only comments or semicolons
            return [], self._failure(
                AnalysisErrorKind.EMPTY_INPUT, EMPTY_INPUT_MESSAGE
            )
        return statements, None

    def _failure(
        self, kind: AnalysisErrorKind, message: str, query_index: int = 0
    ) -> QueryLockResult:
        return QueryLockResult(
            metadata=QueryMetadata(
                query_index=query_index, query_preview=_preview(self.sql or "")
            ),
            analysis=AnalyzedQuery(error=message, error_kind=kind),
        )

    def _analyze_statement(
        self,
        query_index: int,
        statement: exp.Expression,
        primary_table: Optional[str] = None,
    ) -> QueryLockResult:
        metadata = QueryMetadata(
            query_index=query_index,
            query_preview=_preview(statement.sql(dialect=self.dialect)),
        )
        analysis = self.analyze_statement(statement)
        locks = []
        if analysis.valid:
            if primary_table not in analysis.tables:
                primary_table = analysis.target_table
            locks = assign_locks(
                analysis.classification,
                analysis.tables,
                primary_table=primary_table,
                secondary_table=analysis.secondary_table,
            )
        return QueryLockResult(metadata=metadata, analysis=analysis, locks=locks)

    def analyze_statement(self, statement: exp.Expression) -> AnalyzedQuery:
        """
        Classify a parsed statement and collect its tables.

        Args:
            statement: Root expression of one statement

        Returns:
            AnalyzedQuery. Unknown statements keep their tables but are not
            valid; known statements without tables are not valid either.
        """
        try:
            classification = classify(statement)
            tables = self.extractor.extract(statement)
            target, secondary = statement_targets(statement)
        except ParserUnavailableError as e:
            return AnalyzedQuery(
                error=str(e), error_kind=AnalysisErrorKind.PARSER_UNAVAILABLE
            )
        except (ParseError, TokenError) as e:
            return AnalyzedQuery(
                error=str(e), error_kind=AnalysisErrorKind.UNPARSEABLE_INPUT
            )

        if classification is Classification.UNKNOWN:
            return AnalyzedQuery(
                tables=tables,
                error=UNKNOWN_COMMAND_MESSAGE,
                error_kind=AnalysisErrorKind.UNKNOWN_CLASSIFICATION,
            )
        if not tables:
            return AnalyzedQuery(
                classification=classification,
                error=NO_TABLES_MESSAGE,
                error_kind=AnalysisErrorKind.NO_TABLES_FOUND,
            )
        return AnalyzedQuery(
            classification=classification,
            tables=tables,
            valid=True,
            target_table=target,
            secondary_table=secondary,
        )


def analyze_sql(
    sql: str,
    primary_table: Optional[str] = None,
    dialect: Optional[str] = None,
) -> List[QueryLockResult]:
    """Analyze every statement of a SQL script."""
    return LockAnalyzer(sql, dialect=dialect).analyze_queries(primary_table)


def analyze_query(
    sql: str,
    primary_table: Optional[str] = None,
    dialect: Optional[str] = None,
) -> QueryLockResult:
    """
    Analyze a single SQL statement.

    Example:
        >>> result = analyze_query("UPDATE users SET name = 'x' WHERE id = 1")
        >>> result.analysis.classification.value
        'UPDATE'
        >>> [(lock.table, lock.lock_mode.value) for lock in result.locks]
        [('users', 'ROW EXCLUSIVE')]
    """
    return LockAnalyzer(sql, dialect=dialect).analyze_query(primary_table)
