"""Reader for statements sqlglot keeps as raw ``Command`` nodes.

Maintenance statements (VACUUM, ANALYZE, CLUSTER, REINDEX, REFRESH
MATERIALIZED VIEW) and the forms sqlglot's grammar gives up on (CREATE
TRIGGER, most ALTER TABLE sub-operations, DROP of several tables, unusual
TRUNCATE or COPY options)
arrive as ``exp.Command`` with a leading keyword and the remaining text. The
text is re-tokenized with sqlglot's Postgres tokenizer and read keyword by
keyword; only the parts that decide the lock footprint are understood, the
rest is skipped.
"""

import re
from typing import Callable, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field
from sqlglot import exp
from sqlglot.dialects.postgres import Postgres
from sqlglot.tokens import Token, TokenType

from pglocks.analysis.models import Classification
from pglocks.analysis.rules import strongest

# Everything between EXPLAIN and the explained statement
_EXPLAIN_PREFIX = re.compile(
    r"^\s*(?:\((?:[^()]|\([^()]*\))*\)\s*)?(?:(?:ANALYZE|ANALYSE|VERBOSE)\s+)*",
    re.IGNORECASE,
)

_WORD = re.compile(r"^[A-Za-z_][A-Za-z0-9_$]*$")

# The tokenizer emits some keyword pairs (PRIMARY KEY, FOREIGN KEY) as one token
_KEYWORD_TEXT = re.compile(r"^[A-Za-z_][A-Za-z0-9_$]*(?:\s+[A-Za-z_][A-Za-z0-9_$]*)*$")

_STRING_TOKENS = {
    TokenType.STRING,
    TokenType.NATIONAL_STRING,
    TokenType.BIT_STRING,
    TokenType.HEX_STRING,
    TokenType.BYTE_STRING,
    TokenType.HEREDOC_STRING,
}

_VACUUM_FLAGS = {"FULL", "FREEZE", "VERBOSE", "ANALYZE", "ANALYSE"}
_DISABLED_OPTION_VALUES = {"FALSE", "OFF", "0"}
_REINDEX_KINDS = {"INDEX", "TABLE", "SCHEMA", "DATABASE", "SYSTEM"}

# ADD <word> forms that add something other than a column
_NOT_A_COLUMN = {"CONSTRAINT", "PRIMARY", "UNIQUE", "CHECK", "FOREIGN", "EXCLUDE"}

_body_dialect = Postgres()


class CommandAnalysis(BaseModel):
    """What a raw command statement does to which tables."""

    classification: Classification = Classification.UNKNOWN
    tables: List[str] = Field(default_factory=list)
    target_table: Optional[str] = None
    secondary_table: Optional[str] = None
    embedded_sql: Optional[str] = Field(
        None,
        description="Statement nested in the command (EXPLAIN, COPY (query))",
    )


def _is_word(token: Token) -> bool:
    if token.token_type == TokenType.IDENTIFIER:
        return True
    return token.token_type not in _STRING_TOKENS and bool(_WORD.match(token.text))


def _name_part(token: Token) -> str:
    # Unquoted names fold to lower case, as PostgreSQL does
    if token.token_type == TokenType.IDENTIFIER:
        return token.text
    return token.text.lower()


def _keyword(token: Token) -> Optional[str]:
    """Uppercased text of an unquoted word token, single-spaced."""
    if token.token_type == TokenType.IDENTIFIER or token.token_type in _STRING_TOKENS:
        return None
    if not _KEYWORD_TEXT.match(token.text):
        return None
    return " ".join(token.text.upper().split())


def _words_of(tokens: List[Token]) -> List[str]:
    words: List[str] = []
    for token in tokens:
        keyword = _keyword(token)
        if keyword:
            words.extend(keyword.split())
    return words


def tokenize_words(sql: str) -> List[str]:
    """Uppercased keyword sequence of a SQL fragment, punctuation dropped."""
    return _words_of(_body_dialect.tokenize(sql))


class CommandStatement:
    """A raw command split into its leading keyword and body tokens."""

    def __init__(self, keyword: str, text: str):
        self.keyword = keyword.strip().upper()
        self.text = text.strip()
        self.tokens: List[Token] = (
            _body_dialect.tokenize(self.text) if self.text else []
        )
        self._pos = 0

    @classmethod
    def from_expression(cls, command: exp.Command) -> "CommandStatement":
        """Build from an ``exp.Command`` node.

        Tokenizer-level commands carry the body as a string literal, parser
        fallbacks carry it as a plain string.
        """
        body = command.expression
        if isinstance(body, exp.Expression):
            body = body.name
        return cls(str(command.this or ""), str(body or ""))

    def __repr__(self) -> str:
        return f"CommandStatement({self.keyword!r}, {self.text!r})"

    # Cursor over the body tokens

    @property
    def at_end(self) -> bool:
        return self._pos >= len(self.tokens)

    def _token(self, offset: int = 0) -> Optional[Token]:
        index = self._pos + offset
        if 0 <= index < len(self.tokens):
            return self.tokens[index]
        return None

    def peek(self, offset: int = 0) -> Optional[str]:
        token = self._token(offset)
        return _keyword(token) if token else None

    def at(self, token_type: TokenType) -> bool:
        token = self._token()
        return token is not None and token.token_type == token_type

    def advance(self) -> None:
        self._pos += 1

    def match(self, *words: str) -> bool:
        """Consume ``words`` if the body continues with exactly them."""
        expected = list(words)
        offset = 0
        while expected:
            keyword = self.peek(offset)
            if keyword is None:
                return False
            parts = keyword.split()
            if parts != expected[: len(parts)]:
                return False
            expected = expected[len(parts) :]
            offset += 1
        self._pos += offset
        return True

    def skip_until(self, word: str) -> bool:
        """Advance past the next top-level ``word``."""
        depth = 0
        while not self.at_end:
            if self.at(TokenType.L_PAREN):
                depth += 1
            elif self.at(TokenType.R_PAREN):
                depth -= 1
            elif depth == 0 and self.peek() == word:
                self.advance()
                return True
            self.advance()
        return False

    def read_group(self) -> Optional[Tuple[int, int]]:
        """Consume a parenthesized group, returning its inner token span."""
        if not self.at(TokenType.L_PAREN):
            return None
        start = self._pos + 1
        depth = 0
        while not self.at_end:
            if self.at(TokenType.L_PAREN):
                depth += 1
            elif self.at(TokenType.R_PAREN):
                depth -= 1
                if depth == 0:
                    end = self._pos
                    self.advance()
                    return start, end
            self.advance()
        return start, len(self.tokens)

    def group_text(self, span: Tuple[int, int]) -> str:
        """Original text of the tokens in ``span``."""
        start, end = span
        if start >= end:
            return ""
        return self.text[self.tokens[start].start : self.tokens[end - 1].end + 1]

    def group_options(self, span: Tuple[int, int]) -> List[List[str]]:
        """Split a ``(option [value], ...)`` group into uppercased word lists."""
        options: List[List[str]] = [[]]
        for token in self.tokens[span[0] : span[1]]:
            if token.token_type == TokenType.COMMA:
                options.append([])
            else:
                options[-1].append(token.text.upper())
        return [option for option in options if option]

    def read_name(self) -> Optional[str]:
        """Consume a possibly qualified relation name."""
        token = self._token()
        if token is None or not _is_word(token):
            return None
        parts = [_name_part(token)]
        self.advance()
        while self.at(TokenType.DOT):
            following = self._token(1)
            if following is None or not _is_word(following):
                break
            parts.append(_name_part(following))
            self._pos += 2
        return ".".join(parts)

    def read_name_list(self) -> List[str]:
        """Consume ``[ONLY] name [*] [(columns)] [, ...]``."""
        names = []
        while not self.at_end:
            self.match("ONLY")
            name = self.read_name()
            if name is None:
                break
            names.append(name)
            if self.at(TokenType.STAR):
                self.advance()
            self.read_group()
            if not self.at(TokenType.COMMA):
                break
            self.advance()
        return names

    def action_spans(self) -> List[Tuple[int, int]]:
        """Split the remaining tokens at top-level commas."""
        spans = []
        start = self._pos
        depth = 0
        for index in range(self._pos, len(self.tokens)):
            token_type = self.tokens[index].token_type
            if token_type == TokenType.L_PAREN:
                depth += 1
            elif token_type == TokenType.R_PAREN:
                depth -= 1
            elif token_type == TokenType.COMMA and depth == 0:
                spans.append((start, index))
                start = index + 1
        if start < len(self.tokens):
            spans.append((start, len(self.tokens)))
        return spans

    def words(self, span: Tuple[int, int]) -> List[str]:
        return _words_of(self.tokens[span[0] : span[1]])

    def name_after(self, span: Tuple[int, int], *words: str) -> Optional[str]:
        """Read the relation name following ``words`` inside ``span``."""
        saved = self._pos
        try:
            for index in range(span[0], span[1]):
                self._pos = index
                if self.match(*words):
                    return self.read_name()
            return None
        finally:
            self._pos = saved


def classify_alter_action(words: List[str]) -> Classification:
    """Classify one ALTER TABLE action from its uppercased keywords."""
    if not words:
        return Classification.ALTER_TABLE
    head = words[0]
    second = words[1] if len(words) > 1 else None

    if head == "ADD" and (
        "REFERENCES" in words or _contains(words, "FOREIGN", "KEY")
    ):
        return Classification.ALTER_TABLE_ADD_FOREIGN_KEY
    if head == "VALIDATE" and second == "CONSTRAINT":
        return Classification.ALTER_TABLE_VALIDATE_CONSTRAINT
    if head == "ATTACH" and second == "PARTITION":
        return Classification.ALTER_TABLE_ATTACH_PARTITION
    if head == "SET" and second == "TABLESPACE":
        return Classification.ALTER_TABLE_SET_TABLESPACE
    if head == "DISABLE" and second == "TRIGGER":
        return Classification.ALTER_TABLE_DISABLE_TRIGGER
    if head == "ADD" and second not in _NOT_A_COLUMN:
        return Classification.ALTER_TABLE_ADD_COLUMN
    return Classification.ALTER_TABLE


def _contains(words: List[str], *sequence: str) -> bool:
    size = len(sequence)
    return any(
        tuple(words[i : i + size]) == sequence for i in range(len(words) - size + 1)
    )


def _read_vacuum(stmt: CommandStatement) -> CommandAnalysis:
    full = False
    span = stmt.read_group()
    if span:
        for option in stmt.group_options(span):
            if option[0] == "FULL" and (
                len(option) == 1 or option[1] not in _DISABLED_OPTION_VALUES
            ):
                full = True
    while stmt.peek() in _VACUUM_FLAGS:
        if stmt.peek() == "FULL":
            full = True
        stmt.advance()
    tables = stmt.read_name_list()
    return CommandAnalysis(
        classification=(
            Classification.VACUUM_FULL if full else Classification.VACUUM
        ),
        tables=tables,
    )


def _read_analyze(stmt: CommandStatement) -> CommandAnalysis:
    stmt.read_group()
    stmt.match("VERBOSE")
    return CommandAnalysis(
        classification=Classification.ANALYZE, tables=stmt.read_name_list()
    )


def _read_cluster(stmt: CommandStatement) -> CommandAnalysis:
    stmt.match("VERBOSE")
    stmt.read_group()
    name = stmt.read_name()
    if name and stmt.match("ON"):
        # CLUSTER index ON table
        name = stmt.read_name()
    return CommandAnalysis(
        classification=Classification.CLUSTER, tables=[name] if name else []
    )


def _read_reindex(stmt: CommandStatement) -> CommandAnalysis:
    stmt.read_group()
    kind = stmt.peek()
    if kind not in _REINDEX_KINDS:
        return CommandAnalysis()
    stmt.advance()
    concurrently = stmt.match("CONCURRENTLY")
    name = stmt.read_name()
    return CommandAnalysis(
        classification=(
            Classification.REINDEX_CONCURRENTLY
            if concurrently
            else Classification.REINDEX
        ),
        tables=[name] if name and kind == "TABLE" else [],
    )


def _read_refresh(stmt: CommandStatement) -> CommandAnalysis:
    if not stmt.match("MATERIALIZED", "VIEW"):
        return CommandAnalysis()
    concurrently = stmt.match("CONCURRENTLY")
    name = stmt.read_name()
    return CommandAnalysis(
        classification=(
            Classification.REFRESH_MATERIALIZED_VIEW_CONCURRENTLY
            if concurrently
            else Classification.REFRESH_MATERIALIZED_VIEW
        ),
        tables=[name] if name else [],
    )


def _read_create(stmt: CommandStatement) -> CommandAnalysis:
    stmt.match("OR", "REPLACE")
    stmt.match("CONSTRAINT")
    if not stmt.match("TRIGGER"):
        return CommandAnalysis()
    name = stmt.read_name() if stmt.skip_until("ON") else None
    return CommandAnalysis(
        classification=Classification.CREATE_TRIGGER, tables=[name] if name else []
    )


def _read_alter(stmt: CommandStatement) -> CommandAnalysis:
    if not stmt.match("TABLE"):
        return CommandAnalysis()
    stmt.match("IF", "EXISTS")
    stmt.match("ONLY")
    target = stmt.read_name()
    if target is None:
        return CommandAnalysis(classification=Classification.ALTER_TABLE)
    if stmt.at(TokenType.STAR):
        stmt.advance()

    tables = [target]
    secondary = None
    classifications = []
    for span in stmt.action_spans():
        classifications.append(classify_alter_action(stmt.words(span)))
        other = (
            stmt.name_after(span, "ATTACH", "PARTITION")
            or stmt.name_after(span, "DETACH", "PARTITION")
            or stmt.name_after(span, "REFERENCES")
        )
        if other and other not in tables:
            tables.append(other)
            secondary = secondary or other

    classification = (
        strongest(*classifications) if classifications else Classification.ALTER_TABLE
    )
    if classification not in (
        Classification.ALTER_TABLE_ADD_FOREIGN_KEY,
        Classification.ALTER_TABLE_ATTACH_PARTITION,
    ):
        secondary = None
    return CommandAnalysis(
        classification=classification,
        tables=tables,
        target_table=target,
        secondary_table=secondary,
    )


def _read_drop(stmt: CommandStatement) -> CommandAnalysis:
    if not stmt.match("TABLE"):
        return CommandAnalysis()
    stmt.match("IF", "EXISTS")
    return CommandAnalysis(
        classification=Classification.DROP_TABLE, tables=stmt.read_name_list()
    )


def _read_truncate(stmt: CommandStatement) -> CommandAnalysis:
    stmt.match("TABLE")
    return CommandAnalysis(
        classification=Classification.TRUNCATE, tables=stmt.read_name_list()
    )


def _read_copy(stmt: CommandStatement) -> CommandAnalysis:
    embedded = None
    tables: List[str] = []
    span = stmt.read_group()
    if span:
        embedded = stmt.group_text(span)
    else:
        name = stmt.read_name()
        if name is None:
            return CommandAnalysis()
        tables.append(name)
        stmt.read_group()
    if stmt.match("FROM"):
        classification = Classification.COPY_FROM
    elif stmt.match("TO"):
        classification = Classification.COPY_TO
    else:
        return CommandAnalysis()
    return CommandAnalysis(
        classification=classification, tables=tables, embedded_sql=embedded
    )


def _read_explain(stmt: CommandStatement) -> CommandAnalysis:
    return CommandAnalysis(
        classification=Classification.EXPLAIN,
        embedded_sql=_EXPLAIN_PREFIX.sub("", stmt.text, count=1),
    )


_READERS: Dict[str, Callable[[CommandStatement], CommandAnalysis]] = {
    "VACUUM": _read_vacuum,
    "ANALYZE": _read_analyze,
    "ANALYSE": _read_analyze,
    "CLUSTER": _read_cluster,
    "REINDEX": _read_reindex,
    "REFRESH": _read_refresh,
    "CREATE": _read_create,
    "ALTER": _read_alter,
    "DROP": _read_drop,
    "TRUNCATE": _read_truncate,
    "COPY": _read_copy,
    "EXPLAIN": _read_explain,
}


def read_command(command: exp.Command) -> CommandAnalysis:
    """
    Read the classification and tables of a raw command statement.

    Args:
        command: ``exp.Command`` node produced by the parser

    Returns:
        CommandAnalysis; classification is UNKNOWN for commands whose lock
        footprint is not known.

    Raises:
        sqlglot.errors.TokenError: If the command body cannot be tokenized.
    """
    stmt = CommandStatement.from_expression(command)
    reader = _READERS.get(stmt.keyword)
    if reader is None:
        return CommandAnalysis()
    analysis = reader(stmt)
    if analysis.tables and analysis.target_table is None:
        analysis.target_table = analysis.tables[0]
    return analysis
