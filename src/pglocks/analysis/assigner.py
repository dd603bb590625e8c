"""Assignment of table-level lock modes to the tables of a statement."""

from typing import List, Optional, Sequence

from pglocks.analysis.models import (
    Classification,
    LockPolicy,
    TableLockInfo,
    TableRole,
)
from pglocks.analysis.rules import COMMAND_LOCKS
from pglocks.locks.registry import LockMode, conflict_set, describe


class LockLookupError(Exception):
    """Raised when no lock rule exists for a classification."""

    pass


def _lock_info(table: str, role: TableRole, mode: LockMode) -> TableLockInfo:
    return TableLockInfo(
        table=table,
        role=role,
        lock_mode=mode,
        description=describe(mode),
        conflicts=conflict_set(mode),
    )


def _pick(
    tables: Sequence[str], hint: Optional[str], exclude: Sequence[str] = ()
) -> Optional[str]:
    if hint and hint in tables and hint not in exclude:
        return hint
    for table in tables:
        if table not in exclude:
            return table
    return None


def assign_locks(
    classification: Classification,
    tables: Sequence[str],
    primary_table: Optional[str] = None,
    secondary_table: Optional[str] = None,
) -> List[TableLockInfo]:
    """
    Assign a lock mode and role to every table of a statement.

    Args:
        classification: Statement classification
        tables: Tables touched by the statement, in discovery order
        primary_table: Table acted upon directly, if known. Ignored unless it
            is one of ``tables``; the first table is used otherwise.
        secondary_table: Second acted-upon table for dual-target statements,
            if known; the next table in discovery order is used otherwise.

    Returns:
        One TableLockInfo per table, in the order of ``tables``.

    Raises:
        LockLookupError: If ``classification`` has no lock rule (UNKNOWN).

    Example:
        >>> locks = assign_locks(Classification.UPDATE, ["users", "orders"])
        >>> [(lock.table, lock.lock_mode.value) for lock in locks]
        [('users', 'ROW EXCLUSIVE'), ('orders', 'ACCESS SHARE')]
    """
    rule = COMMAND_LOCKS.get(classification)
    if rule is None:
        raise LockLookupError(
            f"No lock rule for classification '{classification.value}'"
        )

    if rule.policy is LockPolicy.ALL_PRIMARY:
        primaries = set(tables)
    else:
        primary = _pick(tables, primary_table)
        primaries = {primary} if primary else set()
        if rule.policy is LockPolicy.DUAL_PRIMARY and primary:
            secondary = _pick(tables, secondary_table, exclude=(primary,))
            if secondary:
                primaries.add(secondary)

    locks = []
    for table in tables:
        if table in primaries:
            locks.append(_lock_info(table, TableRole.PRIMARY, rule.lock_mode))
        else:
            locks.append(
                _lock_info(table, TableRole.REFERENCED, LockMode.ACCESS_SHARE)
            )
    return locks
