"""Comparison of the table locks held by two queries."""

from typing import Dict, List, Sequence

from pglocks.analysis.models import QueryLockResult, TableLockInfo
from pglocks.comparison.models import (
    CompatibleTable,
    ComparisonResult,
    TableConflict,
    UniqueTables,
)
from pglocks.locks.registry import LockMode, all_modes, conflicts_with


def check_lock_conflict(mode_a: LockMode, mode_b: LockMode) -> bool:
    """True if either lock mode conflicts with the other."""
    return conflicts_with(mode_a, mode_b) or conflicts_with(mode_b, mode_a)


def lock_compatibility_matrix() -> Dict[LockMode, Dict[LockMode, bool]]:
    """Map every pair of lock modes to whether they can be held together."""
    modes = all_modes()
    return {
        mode_a: {mode_b: not check_lock_conflict(mode_a, mode_b) for mode_b in modes}
        for mode_a in modes
    }


def compare_locks(
    valid_a: bool,
    locks_a: Sequence[TableLockInfo],
    valid_b: bool,
    locks_b: Sequence[TableLockInfo],
) -> ComparisonResult:
    """
    Compare two sets of table locks.

    Args:
        valid_a: Whether the first query was analyzed successfully
        locks_a: Locks taken by the first query
        valid_b: Whether the second query was analyzed successfully
        locks_b: Locks taken by the second query

    Returns:
        ComparisonResult. If either side is invalid the result is
        incompatible with no table detail.
    """
    if not valid_a or not valid_b:
        return ComparisonResult(is_compatible=False)

    modes_a: Dict[str, LockMode] = {lock.table: lock.lock_mode for lock in locks_a}
    modes_b: Dict[str, LockMode] = {lock.table: lock.lock_mode for lock in locks_b}

    conflicting: List[TableConflict] = []
    compatible: List[CompatibleTable] = []
    unique = UniqueTables()

    for table in list(modes_a) + [name for name in modes_b if name not in modes_a]:
        mode_a = modes_a.get(table)
        mode_b = modes_b.get(table)
        if mode_a is None:
            unique.side_b_only.append(table)
        elif mode_b is None:
            unique.side_a_only.append(table)
        elif check_lock_conflict(mode_a, mode_b):
            conflicting.append(
                TableConflict(
                    table=table,
                    lock_a=mode_a,
                    lock_b=mode_b,
                    reason=f"{mode_a.value} conflicts with {mode_b.value}",
                )
            )
        else:
            compatible.append(
                CompatibleTable(table=table, lock_a=mode_a, lock_b=mode_b)
            )

    return ComparisonResult(
        is_compatible=not conflicting,
        conflicting_tables=conflicting,
        compatible_tables=compatible,
        unique_tables=unique,
    )


def compare_queries(a: QueryLockResult, b: QueryLockResult) -> ComparisonResult:
    """
    Compare the locks of two analyzed queries.

    Example:
        >>> from pglocks.analysis import analyze_query
        >>> result = compare_queries(
        ...     analyze_query("UPDATE users SET active = false"),
        ...     analyze_query("CREATE INDEX CONCURRENTLY idx ON users (email)"),
        ... )
        >>> result.is_compatible
        True
    """
    return compare_locks(a.is_valid, a.locks, b.is_valid, b.locks)


def comparison_summary(result: ComparisonResult) -> str:
    """One-line, human-readable summary of a comparison."""
    if result.is_compatible:
        shared = len(result.compatible_tables)
        if shared == 0:
            return "Queries are compatible - they access different tables"
        plural = "s" if shared > 1 else ""
        return (
            f"Queries are compatible - {shared} shared table{plural} "
            "with compatible locks"
        )
    count = len(result.conflicting_tables)
    if count == 0:
        return "Queries cannot be compared - at least one query is invalid"
    verb = "tables have" if count > 1 else "table has"
    return f"Queries will conflict - {count} {verb} incompatible locks"
