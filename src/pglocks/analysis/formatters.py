"""Output formatters for lock analysis results."""

import csv
import json
from io import StringIO
from pathlib import Path
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text

from pglocks.analysis.models import QueryLockResult, TableRole


def result_to_dict(result: QueryLockResult) -> Dict[str, Any]:
    """Serialize one statement's analysis to plain JSON-ready data."""
    analysis = result.analysis
    return {
        "query_index": result.metadata.query_index,
        "query_preview": result.metadata.query_preview,
        "classification": analysis.classification.value,
        "tables": list(analysis.tables),
        "valid": analysis.valid,
        "error": analysis.error,
        "locks": [
            {
                "table": lock.table,
                "lock_mode": lock.lock_mode.value,
                "description": lock.description,
                "conflicts": [mode.value for mode in lock.conflicts],
            }
            for lock in result.locks
        ],
    }


class TextFormatter:
    """Format lock analysis results as Rich tables for terminal display."""

    @staticmethod
    def format(results: List[QueryLockResult], console: Console) -> None:
        """
        Format and print lock analysis results as Rich tables.

        One table per statement, titled with the statement preview and its
        classification. Invalid statements print their error instead.

        Args:
            results: List of QueryLockResult objects
            console: Rich Console instance for output
        """
        if not results:
            console.print("[yellow]No statements found.[/yellow]")
            return

        for i, result in enumerate(results):
            if i > 0:
                console.print()

            analysis = result.analysis
            header = (
                f"Query {result.metadata.query_index}: {result.metadata.query_preview}"
            )
            if not result.is_valid:
                console.print(f"[bold]{header}[/bold]")
                console.print(f"[red]Error:[/red] {analysis.error}")
                if analysis.tables:
                    console.print(
                        f"[dim]Tables: {', '.join(analysis.tables)}[/dim]"
                    )
                continue

            table = Table(
                title=f"{header}\n[cyan]{analysis.classification.value}[/cyan]",
                title_style="bold",
            )
            table.add_column("Table", style="cyan")
            table.add_column("Role", style="magenta")
            table.add_column("Lock Mode", style="green")
            table.add_column("Conflicts With")

            for lock in result.locks:
                conflicts = ", ".join(mode.value for mode in lock.conflicts)
                role_style = "bold" if lock.role is TableRole.PRIMARY else "dim"
                table.add_row(
                    lock.table,
                    Text(lock.role.value, style=role_style),
                    lock.lock_mode.value,
                    conflicts,
                )

            console.print(table)
            console.print(f"[dim]Total: {len(result.locks)} table(s)[/dim]")


class JsonFormatter:
    """Format lock analysis results as JSON."""

    @staticmethod
    def format(results: List[QueryLockResult]) -> str:
        """
        Format lock analysis results as JSON.

        Output format:
        {
          "queries": [
            {
              "query_index": 0,
              "query_preview": "UPDATE users ...",
              "classification": "UPDATE",
              "tables": ["users"],
              "valid": true,
              "error": null,
              "locks": [
                {
                  "table": "users",
                  "lock_mode": "ROW EXCLUSIVE",
                  "description": "...",
                  "conflicts": ["SHARE", "..."]
                }
              ]
            }
          ]
        }

        Args:
            results: List of QueryLockResult objects

        Returns:
            JSON-formatted string
        """
        queries = [result_to_dict(result) for result in results]
        return json.dumps({"queries": queries}, indent=2)


class CsvFormatter:
    """Format lock analysis results as CSV."""

    @staticmethod
    def format(results: List[QueryLockResult]) -> str:
        """
        Format lock analysis results as CSV.

        Output format:
        query_index,classification,table,role,lock_mode,error
        0,UPDATE,users,primary,ROW EXCLUSIVE,
        0,UPDATE,orders,referenced,ACCESS SHARE,
        1,UNKNOWN,,,,Unable to identify SQL command

        Args:
            results: List of QueryLockResult objects

        Returns:
            CSV-formatted string
        """
        if not results:
            return ""

        output = StringIO()
        writer = csv.writer(output)
        writer.writerow(
            ["query_index", "classification", "table", "role", "lock_mode", "error"]
        )

        for result in results:
            query_index = result.metadata.query_index
            classification = result.analysis.classification.value
            if not result.locks:
                writer.writerow(
                    [query_index, classification, "", "", "", result.analysis.error]
                )
                continue
            for lock in result.locks:
                writer.writerow(
                    [
                        query_index,
                        classification,
                        lock.table,
                        lock.role.value,
                        lock.lock_mode.value,
                        "",
                    ]
                )

        return output.getvalue()


class OutputWriter:
    """Write formatted output to file or stdout."""

    @staticmethod
    def write(content: str, output_file: Optional[Path] = None) -> None:
        """
        Write content to file or stdout.

        Args:
            content: The content to write
            output_file: Optional file path. If None, writes to stdout.
        """
        if output_file:
            output_file.write_text(content, encoding="utf-8")
        else:
            print(content)
