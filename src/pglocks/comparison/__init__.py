"""Cross-query lock conflict detection."""

from pglocks.comparison.comparator import (
    check_lock_conflict,
    compare_locks,
    compare_queries,
    comparison_summary,
    lock_compatibility_matrix,
)
from pglocks.comparison.models import (
    CompatibleTable,
    ComparisonResult,
    TableConflict,
    UniqueTables,
)

__all__ = [
    "CompatibleTable",
    "ComparisonResult",
    "TableConflict",
    "UniqueTables",
    "check_lock_conflict",
    "compare_locks",
    "compare_queries",
    "comparison_summary",
    "lock_compatibility_matrix",
]
