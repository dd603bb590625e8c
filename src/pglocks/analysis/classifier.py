"""Classification of parsed statements into lock-relevant variants."""

from typing import Optional

from sqlglot import exp

from pglocks.analysis.commands import (
    classify_alter_action,
    read_command,
    tokenize_words,
)
from pglocks.analysis.models import Classification
from pglocks.analysis.rules import strongest


def classify(statement: Optional[exp.Expression]) -> Classification:
    """
    Classify a statement tree.

    Args:
        statement: Root expression of one parsed statement

    Returns:
        The matching Classification, or ``Classification.UNKNOWN`` for
        statements whose lock footprint is not known.
    """
    if statement is None:
        return Classification.UNKNOWN

    if isinstance(statement, exp.Select):
        return _classify_select(statement)
    if isinstance(statement, (exp.SetOperation, exp.Subquery)):
        return Classification.SELECT
    if isinstance(statement, exp.Insert):
        if statement.args.get("conflict"):
            return Classification.INSERT_ON_CONFLICT
        return Classification.INSERT
    if isinstance(statement, exp.Update):
        return Classification.UPDATE
    if isinstance(statement, exp.Delete):
        return Classification.DELETE
    if isinstance(statement, exp.Merge):
        return Classification.MERGE
    if isinstance(statement, exp.Copy):
        return (
            Classification.COPY_FROM
            if statement.args.get("kind")
            else Classification.COPY_TO
        )
    if isinstance(statement, exp.TruncateTable):
        return Classification.TRUNCATE
    if isinstance(statement, exp.Drop):
        if (statement.args.get("kind") or "").upper() == "TABLE":
            return Classification.DROP_TABLE
        return Classification.UNKNOWN
    if isinstance(statement, exp.Create):
        return _classify_create(statement)
    if isinstance(statement, exp.Alter):
        return _classify_alter(statement)
    if isinstance(statement, exp.Command):
        return read_command(statement).classification
    return Classification.UNKNOWN


def _classify_select(select: exp.Select) -> Classification:
    locks = select.args.get("locks") or []
    if not locks:
        return Classification.SELECT
    # The first locking clause decides; mixed clauses are rare
    lock = locks[0]
    update = lock.args.get("update")
    key = lock.args.get("key")
    if update:
        return (
            Classification.SELECT_FOR_NO_KEY_UPDATE
            if key
            else Classification.SELECT_FOR_UPDATE
        )
    return Classification.SELECT_FOR_KEY_SHARE if key else Classification.SELECT_FOR_SHARE


def _classify_create(create: exp.Create) -> Classification:
    kind = (create.args.get("kind") or "").upper()
    if kind == "INDEX":
        if create.args.get("concurrently"):
            return Classification.CREATE_INDEX_CONCURRENTLY
        return Classification.CREATE_INDEX
    if kind == "TRIGGER":
        return Classification.CREATE_TRIGGER
    return Classification.UNKNOWN


def classify_alter_expression(action: exp.Expression) -> Classification:
    """Classify one parsed ALTER TABLE action."""
    if action.find(exp.Reference) or action.find(exp.ForeignKey):
        return Classification.ALTER_TABLE_ADD_FOREIGN_KEY
    if isinstance(action, exp.ColumnDef):
        return Classification.ALTER_TABLE_ADD_COLUMN
    # Other action nodes render back to their own keywords
    return classify_alter_action(tokenize_words(action.sql(dialect="postgres")))


def _classify_alter(alter: exp.Alter) -> Classification:
    if (alter.args.get("kind") or "").upper() != "TABLE":
        return Classification.UNKNOWN
    actions = alter.args.get("actions") or []
    if not actions:
        return Classification.ALTER_TABLE
    return strongest(*(classify_alter_expression(action) for action in actions))
