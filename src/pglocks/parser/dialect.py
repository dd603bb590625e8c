"""PostgreSQL dialect used for lock analysis.

sqlglot's stock Postgres dialect has no statement parsers for maintenance
commands such as ``VACUUM`` or ``REFRESH MATERIALIZED VIEW`` and rejects them
outright. Mapping their leading keywords to ``TokenType.COMMAND`` makes the
tokenizer keep the rest of the statement as one string, so they reach the
analyzer as ``exp.Command`` nodes just like the statements sqlglot already
falls back on (``CREATE TRIGGER``, unsupported ``ALTER TABLE`` forms).

``DROP`` naming several objects (``DROP TABLE a, b``) is rejected by the stock
grammar, which only reads one name; such statements are kept as commands too.
"""

from sqlglot import exp
from sqlglot.dialects.postgres import Postgres
from sqlglot.tokens import TokenType

# Registered with sqlglot under the lowercased class name.
DIALECT_NAME = "postgreslocks"

UTILITY_KEYWORDS = (
    "ANALYSE",
    "ANALYZE",
    "CLUSTER",
    "EXPLAIN",
    "REFRESH",
    "REINDEX",
    "VACUUM",
)


class PostgresLocks(Postgres):
    """Postgres dialect that parses utility statements as commands."""

    class Tokenizer(Postgres.Tokenizer):
        KEYWORDS = {
            **Postgres.Tokenizer.KEYWORDS,
            **{keyword: TokenType.COMMAND for keyword in UTILITY_KEYWORDS},
        }

    class Parser(Postgres.Parser):
        def _parse_drop(self, exists: bool = False) -> exp.Expression:
            start = self._prev
            drop = super()._parse_drop(exists=exists)
            # Only a statement-level DROP; ALTER TABLE reuses this for its actions
            if (
                start is self._tokens[0]
                and self._curr is not None
                and self._curr.token_type == TokenType.COMMA
            ):
                return self._parse_as_command(start)
            return drop
