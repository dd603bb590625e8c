"""Lock mode and assignment policy for every statement classification.

``COMMAND_LOCKS`` must cover every ``Classification`` except ``UNKNOWN``;
importing this module fails otherwise, so a new classification cannot ship
without a lock rule.
"""

from typing import Dict, Optional

from pglocks.analysis.models import Classification, LockPolicy, LockRule
from pglocks.locks.registry import LockMode, strength

_SINGLE = LockPolicy.SINGLE_PRIMARY
_ALL = LockPolicy.ALL_PRIMARY
_DUAL = LockPolicy.DUAL_PRIMARY

COMMAND_LOCKS: Dict[Classification, LockRule] = {
    Classification.SELECT: LockRule(lock_mode=LockMode.ACCESS_SHARE),
    Classification.SELECT_FOR_UPDATE: LockRule(
        lock_mode=LockMode.ROW_SHARE, policy=_ALL
    ),
    Classification.SELECT_FOR_NO_KEY_UPDATE: LockRule(
        lock_mode=LockMode.ROW_SHARE, policy=_ALL
    ),
    Classification.SELECT_FOR_SHARE: LockRule(
        lock_mode=LockMode.ROW_SHARE, policy=_ALL
    ),
    Classification.SELECT_FOR_KEY_SHARE: LockRule(
        lock_mode=LockMode.ROW_SHARE, policy=_ALL
    ),
    Classification.INSERT: LockRule(lock_mode=LockMode.ROW_EXCLUSIVE),
    Classification.INSERT_ON_CONFLICT: LockRule(lock_mode=LockMode.ROW_EXCLUSIVE),
    Classification.UPDATE: LockRule(lock_mode=LockMode.ROW_EXCLUSIVE),
    Classification.DELETE: LockRule(lock_mode=LockMode.ROW_EXCLUSIVE),
    Classification.MERGE: LockRule(lock_mode=LockMode.ROW_EXCLUSIVE),
    Classification.COPY_TO: LockRule(lock_mode=LockMode.ACCESS_SHARE),
    Classification.COPY_FROM: LockRule(lock_mode=LockMode.ROW_EXCLUSIVE),
    Classification.EXPLAIN: LockRule(lock_mode=LockMode.ACCESS_SHARE, policy=_ALL),
    Classification.TRUNCATE: LockRule(
        lock_mode=LockMode.ACCESS_EXCLUSIVE, policy=_ALL
    ),
    Classification.DROP_TABLE: LockRule(
        lock_mode=LockMode.ACCESS_EXCLUSIVE, policy=_ALL
    ),
    Classification.CREATE_INDEX: LockRule(lock_mode=LockMode.SHARE),
    Classification.CREATE_INDEX_CONCURRENTLY: LockRule(
        lock_mode=LockMode.SHARE_UPDATE_EXCLUSIVE
    ),
    Classification.REINDEX: LockRule(lock_mode=LockMode.ACCESS_EXCLUSIVE),
    Classification.REINDEX_CONCURRENTLY: LockRule(
        lock_mode=LockMode.SHARE_UPDATE_EXCLUSIVE
    ),
    Classification.CLUSTER: LockRule(lock_mode=LockMode.ACCESS_EXCLUSIVE),
    Classification.VACUUM: LockRule(
        lock_mode=LockMode.SHARE_UPDATE_EXCLUSIVE, policy=_ALL
    ),
    Classification.VACUUM_FULL: LockRule(
        lock_mode=LockMode.ACCESS_EXCLUSIVE, policy=_ALL
    ),
    Classification.ANALYZE: LockRule(
        lock_mode=LockMode.SHARE_UPDATE_EXCLUSIVE, policy=_ALL
    ),
    Classification.ALTER_TABLE: LockRule(lock_mode=LockMode.ACCESS_EXCLUSIVE),
    Classification.ALTER_TABLE_ADD_COLUMN: LockRule(
        lock_mode=LockMode.SHARE_UPDATE_EXCLUSIVE
    ),
    Classification.ALTER_TABLE_ADD_FOREIGN_KEY: LockRule(
        lock_mode=LockMode.SHARE_ROW_EXCLUSIVE, policy=_DUAL
    ),
    Classification.ALTER_TABLE_VALIDATE_CONSTRAINT: LockRule(
        lock_mode=LockMode.SHARE_UPDATE_EXCLUSIVE
    ),
    Classification.ALTER_TABLE_ATTACH_PARTITION: LockRule(
        lock_mode=LockMode.SHARE_UPDATE_EXCLUSIVE, policy=_DUAL
    ),
    Classification.ALTER_TABLE_SET_TABLESPACE: LockRule(
        lock_mode=LockMode.ACCESS_EXCLUSIVE
    ),
    Classification.ALTER_TABLE_DISABLE_TRIGGER: LockRule(
        lock_mode=LockMode.SHARE_ROW_EXCLUSIVE
    ),
    Classification.CREATE_TRIGGER: LockRule(lock_mode=LockMode.SHARE_ROW_EXCLUSIVE),
    Classification.REFRESH_MATERIALIZED_VIEW: LockRule(
        lock_mode=LockMode.ACCESS_EXCLUSIVE
    ),
    Classification.REFRESH_MATERIALIZED_VIEW_CONCURRENTLY: LockRule(
        lock_mode=LockMode.EXCLUSIVE
    ),
}

_missing = [
    c.value
    for c in Classification
    if c is not Classification.UNKNOWN and c not in COMMAND_LOCKS
]
if _missing:
    raise RuntimeError(f"No lock rule defined for: {', '.join(_missing)}")


def get_lock_rule(classification: Classification) -> Optional[LockRule]:
    """Return the lock rule for ``classification``, or None for UNKNOWN."""
    return COMMAND_LOCKS.get(classification)


def get_command_lock_mode(classification: Classification) -> Optional[LockMode]:
    """Return the lock mode a classification takes on its primary table."""
    rule = COMMAND_LOCKS.get(classification)
    return rule.lock_mode if rule else None


def strongest(*classifications: Classification) -> Classification:
    """Pick the classification whose lock mode is strongest.

    Ties keep the earliest argument. UNKNOWN never wins over a known
    classification.
    """
    best = Classification.UNKNOWN
    best_strength = -1
    for classification in classifications:
        rule = COMMAND_LOCKS.get(classification)
        if rule is None:
            continue
        rank = strength(rule.lock_mode)
        if rank > best_strength:
            best, best_strength = classification, rank
    return best
