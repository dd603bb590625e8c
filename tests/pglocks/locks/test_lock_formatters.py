"""Tests for lock mode reference formatters."""

import csv
import json
from io import StringIO

from rich.console import Console

from pglocks.locks.formatters import CsvFormatter, JsonFormatter, TextFormatter
from pglocks.locks.registry import all_mode_infos


def _console():
    buffer = StringIO()
    return Console(file=buffer, force_terminal=False, width=200), buffer


class TestTextFormatter:
    """Tests for Rich rendering of lock modes."""

    def test_lists_every_mode(self):
        """Every mode name appears in the table."""
        console, buffer = _console()
        TextFormatter.format(all_mode_infos(), console)
        output = buffer.getvalue()
        assert "ACCESS SHARE" in output
        assert "SHARE UPDATE EXCLUSIVE" in output
        assert "ACCESS EXCLUSIVE" in output

    def test_matrix_has_legend(self):
        """The matrix prints its abbreviation legend."""
        console, buffer = _console()
        TextFormatter.format_matrix(console)
        output = buffer.getvalue()
        assert "Lock Compatibility" in output
        assert "SUE=SHARE UPDATE EXCLUSIVE" in output


class TestJsonFormatter:
    """Tests for JSON rendering of lock modes."""

    def test_modes_json(self):
        """Modes serialize with their display strings."""
        data = json.loads(JsonFormatter.format(all_mode_infos()))
        assert len(data["modes"]) == 8
        first = data["modes"][0]
        assert first["mode"] == "ACCESS SHARE"
        assert first["conflicts"] == ["ACCESS EXCLUSIVE"]

    def test_matrix_json(self):
        """Matrix JSON is keyed by display strings."""
        data = json.loads(JsonFormatter.format_matrix())
        matrix = data["compatibility"]
        assert matrix["ROW EXCLUSIVE"]["ROW EXCLUSIVE"] is True
        assert matrix["ROW EXCLUSIVE"]["SHARE"] is False


class TestCsvFormatter:
    """Tests for CSV rendering of lock modes."""

    def test_modes_csv(self):
        """One row per mode after the header."""
        rows = list(csv.reader(StringIO(CsvFormatter.format(all_mode_infos()))))
        assert rows[0] == ["mode", "description", "conflicts"]
        assert len(rows) == 9
        assert rows[1][2] == "ACCESS EXCLUSIVE"

    def test_matrix_csv(self):
        """Matrix CSV holds lowercase booleans."""
        rows = list(csv.reader(StringIO(CsvFormatter.format_matrix())))
        assert rows[0][0] == "held"
        assert rows[1][0] == "ACCESS SHARE"
        assert rows[1][1] == "true"
        assert rows[1][8] == "false"
