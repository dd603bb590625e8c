"""Discovery of the base tables a statement touches."""

from typing import Dict, Iterator, List, Optional, Sequence, Set, Tuple

from sqlglot import exp
from sqlglot.optimizer.normalize_identifiers import normalize_identifiers

from pglocks.analysis.commands import read_command
from pglocks.parser import ParserHandle, get_parser_handle

# Nodes that can never contain a relation
_LEAVES = (exp.Column, exp.Identifier, exp.Literal, exp.Star, exp.DataType, exp.Var)

# Arguments walked before the rest of a statement, in order
_DML_FIRST: Dict[type, Tuple[str, ...]] = {
    exp.Insert: ("this", "expression"),
    exp.Update: ("this", "from"),
    exp.Delete: ("this", "using"),
    exp.Merge: ("this", "using", "on"),
}


def table_name(table: exp.Table) -> str:
    """
    Get the qualified name of a table reference.

    Args:
        table: sqlglot Table expression

    Returns:
        ``catalog.db.name`` with absent parts left out, or an empty string for
        table-valued functions.
    """
    if not table.name:
        return ""
    parts = [part for part in (table.catalog, table.db, table.name) if part]
    return ".".join(parts)


def normalize(statement: exp.Expression) -> exp.Expression:
    """
    Copy a statement with unquoted identifiers folded to lower case.

    PostgreSQL treats ``Users`` and ``users`` as the same relation, while
    ``"Users"`` keeps its case.
    """
    return normalize_identifiers(statement.copy(), dialect="postgres")


def _first_table(node: Optional[exp.Expression]) -> Optional[exp.Table]:
    if node is None:
        return None
    if isinstance(node, exp.Table):
        return node
    return node.find(exp.Table)


def _children(
    node: exp.Expression, skip: Sequence[str] = ()
) -> Iterator[exp.Expression]:
    for key, value in node.args.items():
        if key in skip:
            continue
        values = value if isinstance(value, list) else [value]
        for child in values:
            if isinstance(child, exp.Expression):
                yield child


class TableExtractor:
    """
    Walks one statement tree and collects the base tables it touches.

    Names bound by a WITH clause are excluded by bare name, wherever they
    appear in the statement. Unquoted names are compared lower-cased.
    Statements nested inside raw commands (EXPLAIN, ``COPY (query) TO``) are
    parsed with ``handle`` and walked too.
    """

    def __init__(self, handle: Optional[ParserHandle] = None):
        self.handle = handle or get_parser_handle()

    def extract(self, statement: Optional[exp.Expression]) -> List[str]:
        """
        Extract the tables of a statement.

        Returns:
            Deduplicated table names in discovery order, CTE names removed.

        Raises:
            ParseError: If a nested statement inside a command is invalid.
        """
        found: Dict[str, None] = {}
        ctes: Set[str] = set()
        if statement is not None:
            self._walk(normalize(statement), found, ctes)
        return [name for name in found if name and name not in ctes]

    def _walk_all(
        self,
        node: exp.Expression,
        found: Dict[str, None],
        ctes: Set[str],
        first: Sequence[str] = (),
        skip: Sequence[str] = (),
    ) -> None:
        for key in first:
            value = node.args.get(key)
            values = value if isinstance(value, list) else [value]
            for child in values:
                if isinstance(child, exp.Expression):
                    self._walk(child, found, ctes)
        for child in _children(node, skip=tuple(first) + tuple(skip)):
            self._walk(child, found, ctes)

    def _walk(
        self,
        node: Optional[exp.Expression],
        found: Dict[str, None],
        ctes: Set[str],
    ) -> None:
        if node is None or isinstance(node, _LEAVES):
            return
        if isinstance(node, exp.Lock):
            # FOR UPDATE OF lists relations already named in FROM
            return
        if isinstance(node, exp.AlterRename):
            # RENAME TO names the table's new name, not another relation
            return
        if isinstance(node, exp.Table):
            name = table_name(node)
            if name:
                found.setdefault(name, None)
            self._walk_all(node, found, ctes)
        elif isinstance(node, exp.Join):
            self._walk_all(node, found, ctes, first=("this", "on"))
        elif isinstance(node, exp.Subquery):
            self._walk_all(node, found, ctes, first=("this",))
        elif isinstance(node, exp.With):
            for cte in node.expressions:
                if cte.alias:
                    ctes.add(cte.alias)
            self._walk_all(node, found, ctes)
        elif isinstance(node, exp.Select):
            self._walk_all(
                node, found, ctes, first=("from", "joins", "laterals"), skip=("locks",)
            )
        elif isinstance(node, (exp.Insert, exp.Update, exp.Delete, exp.Merge)):
            self._walk_all(node, found, ctes, first=_DML_FIRST[type(node)])
        elif isinstance(node, exp.Create):
            index = node.this if isinstance(node.this, exp.Index) else None
            if index is not None:
                self._walk(index.args.get("table"), found, ctes)
            self._walk_all(node, found, ctes)
        elif isinstance(node, exp.Command):
            self._walk_command(node, found, ctes)
        else:
            self._walk_all(node, found, ctes)

    def _walk_command(
        self, node: exp.Command, found: Dict[str, None], ctes: Set[str]
    ) -> None:
        command = read_command(node)
        for name in command.tables:
            found.setdefault(name, None)
        if command.embedded_sql:
            for statement in self.handle.parse(command.embedded_sql):
                self._walk(normalize(statement), found, ctes)


def extract_tables(
    statement: Optional[exp.Expression], handle: Optional[ParserHandle] = None
) -> List[str]:
    """Convenience wrapper around ``TableExtractor.extract``."""
    return TableExtractor(handle).extract(statement)


def statement_targets(
    statement: Optional[exp.Expression],
) -> Tuple[Optional[str], Optional[str]]:
    """
    Find the tables a statement acts on directly.

    Returns:
        Tuple of (primary target, secondary target). The secondary target is
        the referenced table of a new foreign key or the partition being
        attached; either may be None.
    """
    if statement is None:
        return None, None

    if isinstance(statement, exp.Command):
        command = read_command(statement)
        return command.target_table, command.secondary_table

    statement = normalize(statement)
    target: Optional[exp.Table] = None
    secondary: Optional[str] = None

    if isinstance(statement, (exp.Insert, exp.Update, exp.Delete, exp.Merge)):
        target = _first_table(statement.this)
    elif isinstance(statement, exp.Alter):
        target = _first_table(statement.this)
        for action in statement.args.get("actions") or []:
            reference = action.find(exp.Reference)
            referenced = _first_table(reference)
            if referenced is not None and table_name(referenced):
                secondary = table_name(referenced)
                break
    elif isinstance(statement, exp.Create) and isinstance(statement.this, exp.Index):
        target = _first_table(statement.this.args.get("table"))
    elif isinstance(statement, exp.Copy):
        this = statement.this
        target = this if isinstance(this, exp.Table) else None

    primary = table_name(target) if target is not None else None
    return primary or None, secondary
