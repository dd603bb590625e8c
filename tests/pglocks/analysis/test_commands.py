"""Tests for reading raw command statements."""

import pytest
from sqlglot import exp

from pglocks.analysis.commands import (
    CommandStatement,
    classify_alter_action,
    read_command,
    tokenize_words,
)
from pglocks.analysis.models import Classification


def command(keyword: str, body: str) -> exp.Command:
    """Build a Command node the way the tokenizer produces it."""
    return exp.Command(this=keyword, expression=exp.Literal.string(body))


class TestCommandStatement:
    """Tests for splitting commands into keyword and body."""

    def test_from_tokenizer_command(self):
        """String-literal bodies are unwrapped."""
        stmt = CommandStatement.from_expression(command("VACUUM", "FULL users"))
        assert stmt.keyword == "VACUUM"
        assert stmt.text == "FULL users"

    def test_from_parser_fallback(self):
        """Plain-string bodies keep their text; the keyword is uppercased."""
        fallback = exp.Command(this="alter", expression=" TABLE orders OWNER TO bob")
        stmt = CommandStatement.from_expression(fallback)
        assert stmt.keyword == "ALTER"
        assert stmt.text == "TABLE orders OWNER TO bob"

    def test_empty_body(self):
        """A bare keyword has no tokens."""
        stmt = CommandStatement.from_expression(exp.Command(this="VACUUM"))
        assert stmt.tokens == []
        assert stmt.at_end

    def test_read_qualified_name(self):
        """Dotted names are joined."""
        stmt = CommandStatement("VACUUM", "analytics.public.events")
        assert stmt.read_name() == "analytics.public.events"

    def test_read_quoted_name(self):
        """Quoted identifiers keep their case without quotes."""
        stmt = CommandStatement("VACUUM", '"UserEvents"')
        assert stmt.read_name() == "UserEvents"

    def test_tokenize_words_drops_punctuation(self):
        """Only words survive, uppercased."""
        assert tokenize_words("SET TABLESPACE fast;") == ["SET", "TABLESPACE", "FAST"]

    def test_tokenize_words_splits_keyword_pairs(self):
        """Multi-word keyword tokens come back as separate words."""
        assert tokenize_words("ADD PRIMARY KEY (id)") == ["ADD", "PRIMARY", "KEY", "ID"]

    def test_alter_add_primary_key_is_not_a_column(self):
        """ADD PRIMARY KEY is a generic alteration."""
        result = read_command(
            exp.Command(this="ALTER", expression=" TABLE users ADD PRIMARY KEY (id)")
        )
        assert result.classification is Classification.ALTER_TABLE


class TestVacuumAndAnalyze:
    """Tests for VACUUM and ANALYZE."""

    def test_vacuum(self):
        """Plain VACUUM of one table."""
        result = read_command(command("VACUUM", "users"))
        assert result.classification is Classification.VACUUM
        assert result.tables == ["users"]
        assert result.target_table == "users"

    def test_vacuum_full(self):
        """The FULL keyword selects VACUUM FULL."""
        result = read_command(command("VACUUM", "FULL users"))
        assert result.classification is Classification.VACUUM_FULL
        assert result.tables == ["users"]

    def test_vacuum_full_option_list(self):
        """FULL inside the option list selects VACUUM FULL."""
        result = read_command(command("VACUUM", "(FULL, ANALYZE) orders, items"))
        assert result.classification is Classification.VACUUM_FULL
        assert result.tables == ["orders", "items"]

    def test_vacuum_full_disabled(self):
        """FULL false is a plain VACUUM."""
        result = read_command(command("VACUUM", "(FULL false, VERBOSE) users"))
        assert result.classification is Classification.VACUUM

    def test_vacuum_analyze_with_columns(self):
        """Legacy flags and column lists are skipped."""
        result = read_command(command("VACUUM", "VERBOSE ANALYZE users (email, name)"))
        assert result.classification is Classification.VACUUM
        assert result.tables == ["users"]

    def test_vacuum_without_tables(self):
        """A database-wide VACUUM names no tables."""
        result = read_command(exp.Command(this="VACUUM"))
        assert result.classification is Classification.VACUUM
        assert result.tables == []
        assert result.target_table is None

    @pytest.mark.parametrize("keyword", ["ANALYZE", "ANALYSE"])
    def test_analyze(self, keyword):
        """Both spellings classify as ANALYZE."""
        result = read_command(command(keyword, "VERBOSE users, orders"))
        assert result.classification is Classification.ANALYZE
        assert result.tables == ["users", "orders"]


class TestMaintenanceCommands:
    """Tests for CLUSTER, REINDEX and REFRESH."""

    def test_cluster_using(self):
        """CLUSTER table USING index names the table."""
        result = read_command(command("CLUSTER", "users USING users_pkey"))
        assert result.classification is Classification.CLUSTER
        assert result.tables == ["users"]

    def test_cluster_legacy_form(self):
        """CLUSTER index ON table names the table."""
        result = read_command(command("CLUSTER", "users_pkey ON users"))
        assert result.tables == ["users"]

    def test_reindex_table(self):
        """REINDEX TABLE names the table."""
        result = read_command(command("REINDEX", "TABLE users"))
        assert result.classification is Classification.REINDEX
        assert result.tables == ["users"]

    def test_reindex_concurrently(self):
        """CONCURRENTLY selects the non-blocking variant."""
        result = read_command(command("REINDEX", "(VERBOSE) TABLE CONCURRENTLY users"))
        assert result.classification is Classification.REINDEX_CONCURRENTLY
        assert result.tables == ["users"]

    def test_reindex_index_has_no_table(self):
        """REINDEX INDEX names an index, not a table."""
        result = read_command(command("REINDEX", "INDEX users_pkey"))
        assert result.classification is Classification.REINDEX
        assert result.tables == []

    def test_reindex_without_kind_unknown(self):
        """REINDEX without an object kind is not understood."""
        assert read_command(command("REINDEX", "users")).classification is (
            Classification.UNKNOWN
        )

    def test_refresh(self):
        """REFRESH MATERIALIZED VIEW names the view."""
        result = read_command(command("REFRESH", "MATERIALIZED VIEW sales_summary"))
        assert result.classification is Classification.REFRESH_MATERIALIZED_VIEW
        assert result.tables == ["sales_summary"]

    def test_refresh_concurrently(self):
        """CONCURRENTLY selects the concurrent refresh."""
        result = read_command(
            command("REFRESH", "MATERIALIZED VIEW CONCURRENTLY sales_summary WITH DATA")
        )
        assert result.classification is (
            Classification.REFRESH_MATERIALIZED_VIEW_CONCURRENTLY
        )
        assert result.tables == ["sales_summary"]


class TestParserFallbacks:
    """Tests for statements the grammar hands back as commands."""

    def test_create_trigger(self):
        """CREATE TRIGGER names the table after ON."""
        body = (
            " TRIGGER audit_update AFTER UPDATE OF balance ON accounts "
            "FOR EACH ROW EXECUTE FUNCTION log_change()"
        )
        result = read_command(exp.Command(this="CREATE", expression=body))
        assert result.classification is Classification.CREATE_TRIGGER
        assert result.tables == ["accounts"]

    def test_create_or_replace_constraint_trigger(self):
        """OR REPLACE and CONSTRAINT are accepted."""
        body = (
            " OR REPLACE CONSTRAINT TRIGGER check_owner AFTER INSERT ON public.docs "
            "FOR EACH ROW EXECUTE FUNCTION check_owner()"
        )
        result = read_command(exp.Command(this="CREATE", expression=body))
        assert result.classification is Classification.CREATE_TRIGGER
        assert result.tables == ["public.docs"]

    def test_other_create_unknown(self):
        """Other CREATE forms are not understood."""
        result = read_command(exp.Command(this="CREATE", expression=" EXTENSION pg_trgm"))
        assert result.classification is Classification.UNKNOWN

    def test_alter_validate_constraint(self):
        """VALIDATE CONSTRAINT is recognized."""
        result = read_command(
            exp.Command(this="ALTER", expression=" TABLE orders VALIDATE CONSTRAINT fk")
        )
        assert result.classification is Classification.ALTER_TABLE_VALIDATE_CONSTRAINT
        assert result.tables == ["orders"]
        assert result.target_table == "orders"

    def test_alter_attach_partition(self):
        """ATTACH PARTITION names the partition as the second target."""
        body = (
            " TABLE measurements ATTACH PARTITION measurements_2024 "
            "FOR VALUES FROM ('2024-01-01') TO ('2025-01-01')"
        )
        result = read_command(exp.Command(this="ALTER", expression=body))
        assert result.classification is Classification.ALTER_TABLE_ATTACH_PARTITION
        assert result.tables == ["measurements", "measurements_2024"]
        assert result.secondary_table == "measurements_2024"

    def test_alter_add_foreign_key_not_valid(self):
        """A NOT VALID foreign key names the referenced table."""
        body = (
            " TABLE ONLY orders ADD CONSTRAINT fk_user FOREIGN KEY (user_id) "
            "REFERENCES users (id) NOT VALID"
        )
        result = read_command(exp.Command(this="ALTER", expression=body))
        assert result.classification is Classification.ALTER_TABLE_ADD_FOREIGN_KEY
        assert result.tables == ["orders", "users"]
        assert result.target_table == "orders"
        assert result.secondary_table == "users"

    def test_alter_disable_trigger(self):
        """DISABLE TRIGGER is recognized."""
        result = read_command(
            exp.Command(this="ALTER", expression=" TABLE IF EXISTS users DISABLE TRIGGER ALL")
        )
        assert result.classification is Classification.ALTER_TABLE_DISABLE_TRIGGER
        assert result.tables == ["users"]

    def test_alter_strongest_action_wins(self):
        """With several actions the strongest lock decides."""
        body = " TABLE users ADD COLUMN nickname text, SET TABLESPACE fast"
        result = read_command(exp.Command(this="ALTER", expression=body))
        assert result.classification is Classification.ALTER_TABLE_SET_TABLESPACE

    def test_alter_other_action(self):
        """Unrecognized actions fall into the ALTER TABLE catch-all."""
        result = read_command(
            exp.Command(this="ALTER", expression=" TABLE orders OWNER TO reporting")
        )
        assert result.classification is Classification.ALTER_TABLE
        assert result.secondary_table is None

    def test_alter_rename_keeps_old_name(self):
        """RENAME TO does not add the new name as a table."""
        result = read_command(
            exp.Command(this="ALTER", expression=" TABLE users RENAME TO people")
        )
        assert result.classification is Classification.ALTER_TABLE
        assert result.tables == ["users"]
        assert result.target_table == "users"

    def test_drop_many(self):
        """DROP TABLE names every table."""
        result = read_command(
            exp.Command(
                this="DROP", expression=" TABLE IF EXISTS logs, audit_trail CASCADE"
            )
        )
        assert result.classification is Classification.DROP_TABLE
        assert result.tables == ["logs", "audit_trail"]
        assert result.target_table == "logs"

    def test_drop_view_unknown(self):
        """Only DROP TABLE is understood."""
        result = read_command(exp.Command(this="DROP", expression=" VIEW a, b"))
        assert result.classification is Classification.UNKNOWN
        assert result.tables == []

    def test_unquoted_names_lowered(self):
        result = read_command(exp.Command(this="VACUUM", expression=" Public.Users"))
        assert result.tables == ["public.users"]

    def test_alter_index_unknown(self):
        """Only ALTER TABLE is understood."""
        result = read_command(
            exp.Command(this="ALTER", expression=" INDEX idx RENAME TO idx2")
        )
        assert result.classification is Classification.UNKNOWN

    def test_truncate(self):
        """TRUNCATE names every table."""
        result = read_command(
            exp.Command(this="TRUNCATE", expression=" TABLE ONLY logs, audit_trail CASCADE")
        )
        assert result.classification is Classification.TRUNCATE
        assert result.tables == ["logs", "audit_trail"]

    def test_copy_from(self):
        """COPY table FROM loads data."""
        result = read_command(
            exp.Command(this="COPY", expression=" users (id, name) FROM STDIN")
        )
        assert result.classification is Classification.COPY_FROM
        assert result.tables == ["users"]

    def test_copy_query_to(self):
        """COPY (query) TO carries the nested query."""
        result = read_command(
            exp.Command(
                this="COPY",
                expression=" (SELECT * FROM users WHERE active) TO STDOUT",
            )
        )
        assert result.classification is Classification.COPY_TO
        assert result.tables == []
        assert result.embedded_sql == "SELECT * FROM users WHERE active"


class TestExplain:
    """Tests for EXPLAIN."""

    @pytest.mark.parametrize(
        "body",
        [
            "SELECT * FROM users",
            "ANALYZE SELECT * FROM users",
            "ANALYZE VERBOSE SELECT * FROM users",
            "(ANALYZE, BUFFERS) SELECT * FROM users",
            "(FORMAT json, SETTINGS (true)) SELECT * FROM users",
        ],
    )
    def test_explained_statement(self, body):
        """The options are stripped from the explained statement."""
        result = read_command(command("EXPLAIN", body))
        assert result.classification is Classification.EXPLAIN
        assert result.embedded_sql == "SELECT * FROM users"


class TestUnknownCommands:
    """Tests for commands without a known footprint."""

    def test_unknown_keyword(self):
        """Unrecognized keywords classify as UNKNOWN."""
        result = read_command(command("LISTEN", "channel"))
        assert result.classification is Classification.UNKNOWN
        assert result.tables == []


class TestClassifyAlterAction:
    """Tests for classifying ALTER TABLE actions by keyword."""

    @pytest.mark.parametrize(
        "words,expected",
        [
            (["ADD", "COLUMN", "EMAIL", "TEXT"], Classification.ALTER_TABLE_ADD_COLUMN),
            (["ADD", "EMAIL", "TEXT"], Classification.ALTER_TABLE_ADD_COLUMN),
            (
                ["ADD", "CONSTRAINT", "FK", "FOREIGN", "KEY", "REFERENCES", "USERS"],
                Classification.ALTER_TABLE_ADD_FOREIGN_KEY,
            ),
            (
                ["ADD", "COLUMN", "USER_ID", "INT", "REFERENCES", "USERS"],
                Classification.ALTER_TABLE_ADD_FOREIGN_KEY,
            ),
            (["ADD", "CONSTRAINT", "U", "UNIQUE"], Classification.ALTER_TABLE),
            (["ADD", "PRIMARY", "KEY"], Classification.ALTER_TABLE),
            (
                ["VALIDATE", "CONSTRAINT", "FK"],
                Classification.ALTER_TABLE_VALIDATE_CONSTRAINT,
            ),
            (["ATTACH", "PARTITION", "P1"], Classification.ALTER_TABLE_ATTACH_PARTITION),
            (["SET", "TABLESPACE", "FAST"], Classification.ALTER_TABLE_SET_TABLESPACE),
            (["DISABLE", "TRIGGER", "ALL"], Classification.ALTER_TABLE_DISABLE_TRIGGER),
            (["DROP", "COLUMN", "EMAIL"], Classification.ALTER_TABLE),
            ([], Classification.ALTER_TABLE),
        ],
    )
    def test_action_words(self, words, expected):
        """Each keyword form maps to its classification."""
        assert classify_alter_action(words) is expected
