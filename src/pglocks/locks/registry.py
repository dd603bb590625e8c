"""PostgreSQL table-level lock modes and their conflict relation.

The conflict table below only lists, for every mode, the modes of equal or
lower strength that it conflicts with. The full relation is derived by
mirroring that table, so ``conflicts_with(a, b) == conflicts_with(b, a)``
holds for every pair without a runtime check.
"""

from enum import Enum
from typing import Dict, FrozenSet, List, Tuple

from pydantic import BaseModel, Field


class LockMode(str, Enum):
    """Table-level lock modes, ordered weakest to strongest."""

    ACCESS_SHARE = "ACCESS SHARE"
    ROW_SHARE = "ROW SHARE"
    ROW_EXCLUSIVE = "ROW EXCLUSIVE"
    SHARE_UPDATE_EXCLUSIVE = "SHARE UPDATE EXCLUSIVE"
    SHARE = "SHARE"
    SHARE_ROW_EXCLUSIVE = "SHARE ROW EXCLUSIVE"
    EXCLUSIVE = "EXCLUSIVE"
    ACCESS_EXCLUSIVE = "ACCESS EXCLUSIVE"


class LockModeInfo(BaseModel):
    """Reference information about a single lock mode."""

    mode: LockMode = Field(..., description="The lock mode")
    description: str = Field(..., description="One-line summary of the mode")
    conflicts: List[LockMode] = Field(
        default_factory=list,
        description="Modes that conflict with this one, weakest first",
    )
    statements: List[str] = Field(
        default_factory=list, description="Statements that acquire this mode"
    )
    details: str = Field(default="", description="Longer explanation")


_MODE_ORDER: Tuple[LockMode, ...] = tuple(LockMode)

# Lower triangle of the conflict matrix (including the diagonal).
_CONFLICTS_WITH_WEAKER: Dict[LockMode, Tuple[LockMode, ...]] = {
    LockMode.ACCESS_SHARE: (),
    LockMode.ROW_SHARE: (),
    LockMode.ROW_EXCLUSIVE: (),
    LockMode.SHARE_UPDATE_EXCLUSIVE: (LockMode.SHARE_UPDATE_EXCLUSIVE,),
    LockMode.SHARE: (
        LockMode.ROW_EXCLUSIVE,
        LockMode.SHARE_UPDATE_EXCLUSIVE,
    ),
    LockMode.SHARE_ROW_EXCLUSIVE: (
        LockMode.ROW_EXCLUSIVE,
        LockMode.SHARE_UPDATE_EXCLUSIVE,
        LockMode.SHARE,
        LockMode.SHARE_ROW_EXCLUSIVE,
    ),
    LockMode.EXCLUSIVE: (
        LockMode.ROW_SHARE,
        LockMode.ROW_EXCLUSIVE,
        LockMode.SHARE_UPDATE_EXCLUSIVE,
        LockMode.SHARE,
        LockMode.SHARE_ROW_EXCLUSIVE,
        LockMode.EXCLUSIVE,
    ),
    LockMode.ACCESS_EXCLUSIVE: _MODE_ORDER,
}


def _mirror(
    lower: Dict[LockMode, Tuple[LockMode, ...]],
) -> Dict[LockMode, FrozenSet[LockMode]]:
    relation: Dict[LockMode, set] = {mode: set() for mode in _MODE_ORDER}
    for mode, weaker in lower.items():
        for other in weaker:
            relation[mode].add(other)
            relation[other].add(mode)
    return {mode: frozenset(others) for mode, others in relation.items()}


_CONFLICTS: Dict[LockMode, FrozenSet[LockMode]] = _mirror(_CONFLICTS_WITH_WEAKER)


_DESCRIPTIONS: Dict[LockMode, str] = {
    LockMode.ACCESS_SHARE: (
        "Only conflicts with ACCESS EXCLUSIVE lock. The lightest lock mode."
    ),
    LockMode.ROW_SHARE: "Conflicts with EXCLUSIVE and ACCESS EXCLUSIVE locks.",
    LockMode.ROW_EXCLUSIVE: (
        "Conflicts with SHARE, SHARE ROW EXCLUSIVE, EXCLUSIVE, "
        "and ACCESS EXCLUSIVE locks."
    ),
    LockMode.SHARE_UPDATE_EXCLUSIVE: (
        "Conflicts with SHARE UPDATE EXCLUSIVE, SHARE, SHARE ROW EXCLUSIVE, "
        "EXCLUSIVE, and ACCESS EXCLUSIVE locks."
    ),
    LockMode.SHARE: (
        "Conflicts with ROW EXCLUSIVE, SHARE UPDATE EXCLUSIVE, "
        "SHARE ROW EXCLUSIVE, EXCLUSIVE, and ACCESS EXCLUSIVE locks."
    ),
    LockMode.SHARE_ROW_EXCLUSIVE: (
        "Conflicts with ROW EXCLUSIVE, SHARE UPDATE EXCLUSIVE, SHARE, "
        "SHARE ROW EXCLUSIVE, EXCLUSIVE, and ACCESS EXCLUSIVE locks."
    ),
    LockMode.EXCLUSIVE: (
        "Conflicts with ROW SHARE, ROW EXCLUSIVE, SHARE UPDATE EXCLUSIVE, "
        "SHARE, SHARE ROW EXCLUSIVE, EXCLUSIVE, and ACCESS EXCLUSIVE locks."
    ),
    LockMode.ACCESS_EXCLUSIVE: (
        "Conflicts with ALL lock modes. The most restrictive lock."
    ),
}

_STATEMENTS: Dict[LockMode, List[str]] = {
    LockMode.ACCESS_SHARE: [
        "SELECT (read-only queries)",
        "SELECT with no locking clauses",
        "COPY TO",
        "EXPLAIN",
    ],
    LockMode.ROW_SHARE: [
        "SELECT FOR UPDATE",
        "SELECT FOR SHARE",
        "SELECT FOR NO KEY UPDATE",
        "SELECT FOR KEY SHARE",
    ],
    LockMode.ROW_EXCLUSIVE: [
        "UPDATE",
        "DELETE",
        "INSERT",
        "INSERT ON CONFLICT",
        "MERGE",
        "COPY FROM",
    ],
    LockMode.SHARE_UPDATE_EXCLUSIVE: [
        "VACUUM (without FULL)",
        "ANALYZE",
        "CREATE INDEX CONCURRENTLY",
        "CREATE STATISTICS",
        "COMMENT ON",
        "REINDEX CONCURRENTLY",
        "ALTER TABLE ADD COLUMN",
        "ALTER TABLE VALIDATE CONSTRAINT",
        "ALTER TABLE ATTACH PARTITION",
    ],
    LockMode.SHARE: ["CREATE INDEX (without CONCURRENTLY)"],
    LockMode.SHARE_ROW_EXCLUSIVE: [
        "CREATE TRIGGER",
        "ALTER TABLE ADD FOREIGN KEY",
        "ALTER TABLE DISABLE TRIGGER",
    ],
    LockMode.EXCLUSIVE: ["REFRESH MATERIALIZED VIEW CONCURRENTLY"],
    LockMode.ACCESS_EXCLUSIVE: [
        "DROP TABLE",
        "TRUNCATE",
        "REINDEX (without CONCURRENTLY)",
        "CLUSTER",
        "VACUUM FULL",
        "LOCK TABLE (default mode)",
        "ALTER TABLE (most forms)",
        "ALTER TABLE SET TABLESPACE",
        "REFRESH MATERIALIZED VIEW",
    ],
}

_DETAILS: Dict[LockMode, str] = {
    LockMode.ACCESS_SHARE: (
        "The most permissive lock mode. It allows all concurrent operations "
        "except ACCESS EXCLUSIVE and is acquired by read-only operations that "
        "do not modify data or require row-level locks."
    ),
    LockMode.ROW_SHARE: (
        "Acquired by SELECT commands that include row-level locking clauses. "
        "Allows concurrent reads and most writes, but prevents EXCLUSIVE and "
        "ACCESS EXCLUSIVE operations."
    ),
    LockMode.ROW_EXCLUSIVE: (
        "Acquired by commands that modify data. Allows concurrent reads and "
        "other row-exclusive operations, but conflicts with SHARE locks "
        "(preventing operations like index creation)."
    ),
    LockMode.SHARE_UPDATE_EXCLUSIVE: (
        "Protects against concurrent schema changes and allows only one such "
        "operation at a time. Ordinary reads and writes proceed, but "
        "concurrent VACUUM-type operations and schema modifications wait."
    ),
    LockMode.SHARE: (
        "Allows concurrent reads but prevents any data modification. Multiple "
        "SHARE locks can be held simultaneously, but they block all writes."
    ),
    LockMode.SHARE_ROW_EXCLUSIVE: (
        "More restrictive than SHARE because it conflicts with SHARE locks and "
        "itself. Allows reads but prevents data modifications and concurrent "
        "schema-changing operations."
    ),
    LockMode.EXCLUSIVE: (
        "Allows only ACCESS SHARE locks (plain SELECT) to proceed concurrently. "
        "Blocks every other mode, including row-level locking SELECTs."
    ),
    LockMode.ACCESS_EXCLUSIVE: (
        "The most restrictive lock mode. Conflicts with every other mode, "
        "making the table inaccessible to any other transaction until the lock "
        "is released."
    ),
}


def all_modes() -> List[LockMode]:
    """Return every lock mode, weakest first."""
    return list(_MODE_ORDER)


def strength(mode: LockMode) -> int:
    """Return the position of ``mode`` in the weakest-to-strongest order."""
    return _MODE_ORDER.index(mode)


def conflicts_with(mode_a: LockMode, mode_b: LockMode) -> bool:
    """Check whether a lock held in ``mode_a`` blocks ``mode_b``.

    Args:
        mode_a: Lock mode held by one transaction.
        mode_b: Lock mode requested by another transaction.

    Returns:
        True if the two modes cannot be held on the same table at once.
    """
    return mode_b in _CONFLICTS[mode_a]


def conflict_set(mode: LockMode) -> List[LockMode]:
    """Return the modes conflicting with ``mode``, weakest first."""
    return [other for other in _MODE_ORDER if other in _CONFLICTS[mode]]


def self_conflicting(mode: LockMode) -> bool:
    """Check whether ``mode`` blocks a second transaction asking for ``mode``."""
    return conflicts_with(mode, mode)


def describe(mode: LockMode) -> str:
    """Return the one-line description of ``mode``."""
    return _DESCRIPTIONS[mode]


def get_mode_info(mode: LockMode) -> LockModeInfo:
    """Return the full reference entry for ``mode``."""
    return LockModeInfo(
        mode=mode,
        description=_DESCRIPTIONS[mode],
        conflicts=conflict_set(mode),
        statements=list(_STATEMENTS[mode]),
        details=_DETAILS[mode],
    )


def all_mode_infos() -> List[LockModeInfo]:
    """Return reference entries for every mode, weakest first."""
    return [get_mode_info(mode) for mode in _MODE_ORDER]


def compatibility_matrix() -> Dict[LockMode, Dict[LockMode, bool]]:
    """Build the mode-by-mode compatibility matrix.

    Returns:
        Nested mapping where ``matrix[a][b]`` is True when ``a`` and ``b``
        can be held concurrently.
    """
    return {
        mode_a: {mode_b: not conflicts_with(mode_a, mode_b) for mode_b in _MODE_ORDER}
        for mode_a in _MODE_ORDER
    }
