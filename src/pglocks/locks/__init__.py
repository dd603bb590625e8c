"""Lock mode knowledge base for pglocks."""

from pglocks.locks.registry import (
    LockMode,
    LockModeInfo,
    all_mode_infos,
    all_modes,
    compatibility_matrix,
    conflict_set,
    conflicts_with,
    describe,
    get_mode_info,
    self_conflicting,
    strength,
)

__all__ = [
    "LockMode",
    "LockModeInfo",
    "all_mode_infos",
    "all_modes",
    "compatibility_matrix",
    "conflict_set",
    "conflicts_with",
    "describe",
    "get_mode_info",
    "self_conflicting",
    "strength",
]
