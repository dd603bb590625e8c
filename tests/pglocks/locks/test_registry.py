"""Tests for the lock mode registry."""

import pytest

from pglocks.locks.registry import (
    LockMode,
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


class TestLockModeOrder:
    """Tests for mode ordering and lookup."""

    def test_eight_modes_weakest_first(self):
        """All eight modes are listed from weakest to strongest."""
        assert [mode.value for mode in all_modes()] == [
            "ACCESS SHARE",
            "ROW SHARE",
            "ROW EXCLUSIVE",
            "SHARE UPDATE EXCLUSIVE",
            "SHARE",
            "SHARE ROW EXCLUSIVE",
            "EXCLUSIVE",
            "ACCESS EXCLUSIVE",
        ]

    def test_strength_follows_order(self):
        """Strength is the position in the ordering."""
        assert strength(LockMode.ACCESS_SHARE) == 0
        assert strength(LockMode.ACCESS_EXCLUSIVE) == 7
        assert strength(LockMode.SHARE) > strength(LockMode.ROW_EXCLUSIVE)

    def test_mode_from_display_string(self):
        """Modes parse from their display strings."""
        assert LockMode("ROW SHARE") is LockMode.ROW_SHARE

    def test_unknown_display_string_rejected(self):
        """Unknown mode text is rejected instead of looked up loosely."""
        with pytest.raises(ValueError):
            LockMode("ROW SHARED")


class TestConflictRelation:
    """Tests for the conflict relation."""

    @pytest.mark.parametrize("mode_a", list(LockMode))
    def test_symmetric(self, mode_a):
        """If A conflicts with B then B conflicts with A."""
        for mode_b in LockMode:
            assert conflicts_with(mode_a, mode_b) == conflicts_with(mode_b, mode_a)

    def test_access_share_only_conflicts_with_access_exclusive(self):
        """ACCESS SHARE is blocked only by ACCESS EXCLUSIVE."""
        assert conflict_set(LockMode.ACCESS_SHARE) == [LockMode.ACCESS_EXCLUSIVE]

    def test_access_exclusive_conflicts_with_everything(self):
        """ACCESS EXCLUSIVE conflicts with every mode, itself included."""
        assert conflict_set(LockMode.ACCESS_EXCLUSIVE) == all_modes()

    def test_row_exclusive_conflict_set(self):
        """ROW EXCLUSIVE conflicts with SHARE and stronger."""
        assert conflict_set(LockMode.ROW_EXCLUSIVE) == [
            LockMode.SHARE,
            LockMode.SHARE_ROW_EXCLUSIVE,
            LockMode.EXCLUSIVE,
            LockMode.ACCESS_EXCLUSIVE,
        ]

    def test_row_exclusive_compatible_with_share_update_exclusive(self):
        """Row modifications can run alongside concurrent index builds."""
        assert not conflicts_with(
            LockMode.ROW_EXCLUSIVE, LockMode.SHARE_UPDATE_EXCLUSIVE
        )

    def test_self_conflicting_modes(self):
        """Exactly four modes conflict with themselves."""
        assert {mode for mode in LockMode if self_conflicting(mode)} == {
            LockMode.SHARE_UPDATE_EXCLUSIVE,
            LockMode.SHARE_ROW_EXCLUSIVE,
            LockMode.EXCLUSIVE,
            LockMode.ACCESS_EXCLUSIVE,
        }

    def test_share_does_not_conflict_with_itself(self):
        """Two CREATE INDEX statements can share a table."""
        assert not self_conflicting(LockMode.SHARE)


class TestModeInfo:
    """Tests for descriptive mode information."""

    def test_every_mode_described(self):
        """Every mode has a non-empty description."""
        for mode in LockMode:
            assert describe(mode)

    def test_get_mode_info(self):
        """Mode info carries conflicts and acquiring statements."""
        info = get_mode_info(LockMode.SHARE)
        assert info.mode is LockMode.SHARE
        assert info.conflicts == conflict_set(LockMode.SHARE)
        assert any("CREATE INDEX" in statement for statement in info.statements)
        assert info.details

    def test_all_mode_infos_in_order(self):
        """Mode infos follow the strength order."""
        assert [info.mode for info in all_mode_infos()] == all_modes()


class TestCompatibilityMatrix:
    """Tests for the compatibility matrix."""

    def test_matrix_is_complement_of_conflicts(self):
        """A pair is compatible exactly when it does not conflict."""
        matrix = compatibility_matrix()
        for mode_a in LockMode:
            for mode_b in LockMode:
                assert matrix[mode_a][mode_b] is not conflicts_with(mode_a, mode_b)

    def test_matrix_covers_all_pairs(self):
        """The matrix has 8 rows of 8 entries."""
        matrix = compatibility_matrix()
        assert len(matrix) == 8
        assert all(len(row) == 8 for row in matrix.values())
