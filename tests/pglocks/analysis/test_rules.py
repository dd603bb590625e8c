"""Tests for the classification lock rules."""

import pytest

from pglocks.analysis.models import Classification, LockPolicy
from pglocks.analysis.rules import (
    COMMAND_LOCKS,
    get_command_lock_mode,
    get_lock_rule,
    strongest,
)
from pglocks.locks.registry import LockMode


class TestCommandLocks:
    """Tests for the rule table."""

    def test_every_classification_has_a_rule(self):
        """Only UNKNOWN lacks a rule."""
        missing = [c for c in Classification if c not in COMMAND_LOCKS]
        assert missing == [Classification.UNKNOWN]

    @pytest.mark.parametrize(
        "classification,mode",
        [
            (Classification.SELECT, LockMode.ACCESS_SHARE),
            (Classification.SELECT_FOR_KEY_SHARE, LockMode.ROW_SHARE),
            (Classification.UPDATE, LockMode.ROW_EXCLUSIVE),
            (Classification.COPY_FROM, LockMode.ROW_EXCLUSIVE),
            (Classification.CREATE_INDEX_CONCURRENTLY, LockMode.SHARE_UPDATE_EXCLUSIVE),
            (Classification.CREATE_INDEX, LockMode.SHARE),
            (Classification.CREATE_TRIGGER, LockMode.SHARE_ROW_EXCLUSIVE),
            (
                Classification.REFRESH_MATERIALIZED_VIEW_CONCURRENTLY,
                LockMode.EXCLUSIVE,
            ),
            (Classification.VACUUM_FULL, LockMode.ACCESS_EXCLUSIVE),
            (Classification.ALTER_TABLE, LockMode.ACCESS_EXCLUSIVE),
        ],
    )
    def test_lock_modes(self, classification, mode):
        """Representative classifications map to their modes."""
        assert get_command_lock_mode(classification) is mode

    @pytest.mark.parametrize(
        "classification,policy",
        [
            (Classification.SELECT, LockPolicy.SINGLE_PRIMARY),
            (Classification.SELECT_FOR_UPDATE, LockPolicy.ALL_PRIMARY),
            (Classification.TRUNCATE, LockPolicy.ALL_PRIMARY),
            (Classification.VACUUM, LockPolicy.ALL_PRIMARY),
            (Classification.EXPLAIN, LockPolicy.ALL_PRIMARY),
            (Classification.ALTER_TABLE_ADD_FOREIGN_KEY, LockPolicy.DUAL_PRIMARY),
            (Classification.ALTER_TABLE_ATTACH_PARTITION, LockPolicy.DUAL_PRIMARY),
            (Classification.UPDATE, LockPolicy.SINGLE_PRIMARY),
        ],
    )
    def test_policies(self, classification, policy):
        """Representative classifications use their assignment policy."""
        assert get_lock_rule(classification).policy is policy

    def test_unknown_has_no_rule(self):
        assert get_lock_rule(Classification.UNKNOWN) is None
        assert get_command_lock_mode(Classification.UNKNOWN) is None


class TestStrongest:
    """Tests for picking the strongest classification."""

    def test_picks_stronger_lock(self):
        assert (
            strongest(
                Classification.ALTER_TABLE_ADD_COLUMN,
                Classification.ALTER_TABLE_SET_TABLESPACE,
            )
            is Classification.ALTER_TABLE_SET_TABLESPACE
        )

    def test_tie_keeps_first(self):
        assert (
            strongest(
                Classification.ALTER_TABLE_ADD_COLUMN,
                Classification.ALTER_TABLE_VALIDATE_CONSTRAINT,
            )
            is Classification.ALTER_TABLE_ADD_COLUMN
        )

    def test_unknown_never_wins(self):
        assert (
            strongest(Classification.UNKNOWN, Classification.SELECT)
            is Classification.SELECT
        )

    def test_nothing_known(self):
        assert strongest() is Classification.UNKNOWN
