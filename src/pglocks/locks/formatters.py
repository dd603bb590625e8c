"""Output formatters for the lock mode reference."""

import csv
import json
from io import StringIO
from typing import List

from rich.console import Console
from rich.table import Table

from pglocks.locks.registry import (
    LockModeInfo,
    all_modes,
    compatibility_matrix,
)

# Column headers for the matrix, weakest mode first
_ABBREVIATIONS = ["AS", "RS", "RE", "SUE", "S", "SRE", "E", "AE"]


class TextFormatter:
    """Render lock modes and the compatibility matrix with Rich."""

    @staticmethod
    def format(infos: List[LockModeInfo], console: Console) -> None:
        """Print one row per lock mode with its conflicts and statements."""
        table = Table(title="PostgreSQL Table Lock Modes", title_style="bold")
        table.add_column("Mode", style="cyan", no_wrap=True)
        table.add_column("Description")
        table.add_column("Conflicts With", style="red")
        table.add_column("Acquired By", style="green")

        for info in infos:
            table.add_row(
                info.mode.value,
                info.description,
                "\n".join(mode.value for mode in info.conflicts),
                "\n".join(info.statements),
            )
        console.print(table)

    @staticmethod
    def format_matrix(console: Console) -> None:
        """Print the mode-by-mode compatibility matrix."""
        matrix = compatibility_matrix()
        modes = all_modes()

        table = Table(title="Lock Compatibility", title_style="bold")
        table.add_column("Held \\ Requested", style="cyan", no_wrap=True)
        for abbreviation in _ABBREVIATIONS:
            table.add_column(abbreviation, justify="center")

        for held in modes:
            cells = [
                "[green]ok[/green]" if matrix[held][requested] else "[red]X[/red]"
                for requested in modes
            ]
            table.add_row(held.value, *cells)

        console.print(table)
        legend = ", ".join(
            f"{abbreviation}={mode.value}"
            for abbreviation, mode in zip(_ABBREVIATIONS, modes)
        )
        console.print(f"[dim]{legend}[/dim]")


class JsonFormatter:
    """Format the lock mode reference as JSON."""

    @staticmethod
    def format(infos: List[LockModeInfo]) -> str:
        return json.dumps(
            {"modes": [info.model_dump(mode="json") for info in infos]}, indent=2
        )

    @staticmethod
    def format_matrix() -> str:
        matrix = {
            held.value: {requested.value: ok for requested, ok in row.items()}
            for held, row in compatibility_matrix().items()
        }
        return json.dumps({"compatibility": matrix}, indent=2)


class CsvFormatter:
    """Format the lock mode reference as CSV."""

    @staticmethod
    def format(infos: List[LockModeInfo]) -> str:
        output = StringIO()
        writer = csv.writer(output)
        writer.writerow(["mode", "description", "conflicts"])
        for info in infos:
            writer.writerow(
                [
                    info.mode.value,
                    info.description,
                    ";".join(mode.value for mode in info.conflicts),
                ]
            )
        return output.getvalue()

    @staticmethod
    def format_matrix() -> str:
        modes = all_modes()
        matrix = compatibility_matrix()
        output = StringIO()
        writer = csv.writer(output)
        writer.writerow(["held"] + [mode.value for mode in modes])
        for held in modes:
            writer.writerow(
                [held.value] + [str(matrix[held][requested]).lower() for requested in modes]
            )
        return output.getvalue()
