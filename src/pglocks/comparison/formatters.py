"""Output formatters for lock comparison results."""

import csv
import json
from io import StringIO
from typing import Any, Dict

from rich.console import Console
from rich.table import Table

from pglocks.comparison.comparator import comparison_summary
from pglocks.comparison.models import ComparisonResult


def comparison_to_dict(result: ComparisonResult) -> Dict[str, Any]:
    """Serialize a comparison to plain JSON-ready data."""
    return {
        "is_compatible": result.is_compatible,
        "summary": comparison_summary(result),
        "conflicting_tables": [
            {
                "table": conflict.table,
                "lock_a": conflict.lock_a.value,
                "lock_b": conflict.lock_b.value,
                "reason": conflict.reason,
            }
            for conflict in result.conflicting_tables
        ],
        "compatible_tables": [
            {
                "table": table.table,
                "lock_a": table.lock_a.value,
                "lock_b": table.lock_b.value,
            }
            for table in result.compatible_tables
        ],
        "unique_tables": {
            "side_a_only": list(result.unique_tables.side_a_only),
            "side_b_only": list(result.unique_tables.side_b_only),
        },
    }


class TextFormatter:
    """Format a comparison as a Rich table for terminal display."""

    @staticmethod
    def format(result: ComparisonResult, console: Console) -> None:
        """
        Print the comparison summary followed by one row per table.

        Args:
            result: ComparisonResult to display
            console: Rich Console instance for output
        """
        style = "green" if result.is_compatible else "red"
        console.print(f"[bold {style}]{comparison_summary(result)}[/bold {style}]")

        rows = (
            len(result.conflicting_tables)
            + len(result.compatible_tables)
            + len(result.unique_tables.side_a_only)
            + len(result.unique_tables.side_b_only)
        )
        if rows == 0:
            return

        table = Table(title="Table Locks", title_style="bold")
        table.add_column("Table", style="cyan")
        table.add_column("Query A")
        table.add_column("Query B")
        table.add_column("Status")

        for conflict in result.conflicting_tables:
            table.add_row(
                conflict.table,
                conflict.lock_a.value,
                conflict.lock_b.value,
                f"[red]{conflict.reason}[/red]",
            )
        for compatible in result.compatible_tables:
            table.add_row(
                compatible.table,
                compatible.lock_a.value,
                compatible.lock_b.value,
                "[green]compatible[/green]",
            )
        for name in result.unique_tables.side_a_only:
            table.add_row(name, "", "[dim]-[/dim]", "[dim]only in A[/dim]")
        for name in result.unique_tables.side_b_only:
            table.add_row(name, "[dim]-[/dim]", "", "[dim]only in B[/dim]")

        console.print(table)


class JsonFormatter:
    """Format a comparison as JSON."""

    @staticmethod
    def format(result: ComparisonResult) -> str:
        """
        Format a comparison as JSON.

        Output format:
        {
          "is_compatible": false,
          "summary": "Queries will conflict - 1 table has incompatible locks",
          "conflicting_tables": [
            {"table": "users", "lock_a": "ROW EXCLUSIVE", "lock_b": "SHARE",
             "reason": "ROW EXCLUSIVE conflicts with SHARE"}
          ],
          "compatible_tables": [],
          "unique_tables": {"side_a_only": [], "side_b_only": []}
        }
        """
        return json.dumps(comparison_to_dict(result), indent=2)


class CsvFormatter:
    """Format a comparison as CSV."""

    @staticmethod
    def format(result: ComparisonResult) -> str:
        """
        Format a comparison as CSV, one row per table.

        Output format:
        table,lock_a,lock_b,status
        users,ROW EXCLUSIVE,SHARE,conflict
        orders,ACCESS SHARE,,side_a_only
        """
        output = StringIO()
        writer = csv.writer(output)
        writer.writerow(["table", "lock_a", "lock_b", "status"])

        for conflict in result.conflicting_tables:
            writer.writerow(
                [conflict.table, conflict.lock_a.value, conflict.lock_b.value, "conflict"]
            )
        for compatible in result.compatible_tables:
            writer.writerow(
                [
                    compatible.table,
                    compatible.lock_a.value,
                    compatible.lock_b.value,
                    "compatible",
                ]
            )
        for name in result.unique_tables.side_a_only:
            writer.writerow([name, "", "", "side_a_only"])
        for name in result.unique_tables.side_b_only:
            writer.writerow([name, "", "", "side_b_only"])

        return output.getvalue()
