"""CLI entry point for pglocks."""

from io import StringIO
from pathlib import Path
from typing import Callable, List, Optional

import typer
from rich.console import Console

from pglocks.analysis.analyzer import LockAnalyzer
from pglocks.analysis.formatters import (
    CsvFormatter,
    JsonFormatter,
    OutputWriter,
    TextFormatter,
)
from pglocks.analysis.models import QueryLockResult
from pglocks.comparison import formatters as comparison_formatters
from pglocks.comparison.comparator import compare_queries
from pglocks.global_models import OutputFormat
from pglocks.locks import formatters as lock_formatters
from pglocks.locks.registry import all_mode_infos
from pglocks.parser.dialect import DIALECT_NAME
from pglocks.utils.config import ConfigSettings, load_config
from pglocks.utils.file_utils import resolve_sql

app = typer.Typer(
    name="pglocks",
    help="Find out which PostgreSQL table locks your SQL statements take.",
    invoke_without_command=False,
)
console = Console()
err_console = Console(stderr=True)


@app.callback()
def main():
    """pglocks - PostgreSQL table lock analysis."""
    pass


def _resolve_output_format(
    output_format: Optional[str], config: ConfigSettings
) -> OutputFormat:
    """Apply CLI > config > default for the output format, or exit."""
    value = output_format or (config.output_format and config.output_format.value)
    value = value or OutputFormat.TEXT.value
    try:
        return OutputFormat(value)
    except ValueError:
        err_console.print(
            f"[red]Error:[/red] Invalid output format '{value}'. "
            "Use 'text', 'json', or 'csv'."
        )
        raise typer.Exit(1)


def _emit(
    output_format: OutputFormat,
    output_file: Optional[Path],
    render_text: Callable[[Console], None],
    render_json: Callable[[], str],
    render_csv: Callable[[], str],
    what: str,
) -> None:
    """Render in the chosen format to stdout or ``output_file``."""
    if output_format is OutputFormat.TEXT:
        if output_file:
            string_buffer = StringIO()
            render_text(Console(file=string_buffer, force_terminal=False))
            output_file.write_text(string_buffer.getvalue(), encoding="utf-8")
        else:
            render_text(console)
    elif output_format is OutputFormat.JSON:
        OutputWriter.write(render_json(), output_file)
    else:
        OutputWriter.write(render_csv(), output_file)

    if output_file:
        console.print(f"[green]Success:[/green] {what} written to {output_file}")


def _warn_invalid(results: List[QueryLockResult], label: str = "Query") -> None:
    for result in results:
        if not result.is_valid:
            err_console.print(
                f"[yellow]Warning:[/yellow] {label} {result.metadata.query_index}: "
                f"{result.analysis.error}"
            )


@app.command()
def analyze(
    sql_file: Optional[Path] = typer.Argument(
        None,
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
        help="Path to SQL file to analyze",
    ),
    sql: Optional[str] = typer.Option(
        None,
        "--sql",
        "-s",
        help="SQL text to analyze instead of a file",
    ),
    primary_table: Optional[str] = typer.Option(
        None,
        "--primary-table",
        "-p",
        help="Table to treat as the one acted upon, when a statement touches it",
    ),
    dialect: Optional[str] = typer.Option(
        None,
        "--dialect",
        "-d",
        help=f"sqlglot dialect (default: {DIALECT_NAME}, or from config)",
    ),
    output_format: Optional[str] = typer.Option(
        None,
        "--output-format",
        "-f",
        help="Output format: 'text', 'json', or 'csv' (default: text, or from config)",
    ),
    output_file: Optional[Path] = typer.Option(
        None,
        "--output-file",
        "-o",
        help="Write output to file instead of stdout",
    ),
) -> None:
    """
    Show the table locks taken by every statement of a SQL script.

    Configuration can be set in pglocks.toml in the current directory.
    CLI arguments override configuration file values.

    Examples:

        # Analyze a migration file
        pglocks analyze migration.sql

        # Analyze inline SQL
        pglocks analyze --sql "ALTER TABLE users ADD COLUMN email text"

        # Export to JSON
        pglocks analyze migration.sql --output-format json --output-file locks.json
    """
    config = load_config()
    dialect = dialect or config.dialect or DIALECT_NAME
    fmt = _resolve_output_format(output_format, config)

    try:
        text = resolve_sql(sql_file, sql)
        results = LockAnalyzer(text, dialect=dialect).analyze_queries(primary_table)

        if fmt is not OutputFormat.TEXT:
            _warn_invalid(results)

        _emit(
            fmt,
            output_file,
            lambda target: TextFormatter.format(results, target),
            lambda: JsonFormatter.format(results),
            lambda: CsvFormatter.format(results),
            "Lock analysis",
        )

    except FileNotFoundError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    except ValueError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    except OSError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def compare(
    file_a: Optional[Path] = typer.Argument(
        None,
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
        help="SQL file holding the first statement",
    ),
    file_b: Optional[Path] = typer.Argument(
        None,
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
        help="SQL file holding the second statement",
    ),
    sql_a: Optional[str] = typer.Option(
        None, "--sql-a", help="First statement as inline SQL"
    ),
    sql_b: Optional[str] = typer.Option(
        None, "--sql-b", help="Second statement as inline SQL"
    ),
    dialect: Optional[str] = typer.Option(
        None,
        "--dialect",
        "-d",
        help=f"sqlglot dialect (default: {DIALECT_NAME}, or from config)",
    ),
    output_format: Optional[str] = typer.Option(
        None,
        "--output-format",
        "-f",
        help="Output format: 'text', 'json', or 'csv' (default: text, or from config)",
    ),
    output_file: Optional[Path] = typer.Option(
        None,
        "--output-file",
        "-o",
        help="Write output to file instead of stdout",
    ),
) -> None:
    """
    Check whether two statements can run concurrently without lock waits.

    Exits with status 1 when the statements take conflicting locks on a
    shared table, or when either cannot be analyzed.

    Examples:

        pglocks compare --sql-a "UPDATE users SET active = true" \\
            --sql-b "CREATE INDEX idx ON users (email)"

        pglocks compare backfill.sql migration.sql --output-format json
    """
    config = load_config()
    dialect = dialect or config.dialect or DIALECT_NAME
    fmt = _resolve_output_format(output_format, config)

    try:
        text_a = resolve_sql(file_a, sql_a, label="query A")
        text_b = resolve_sql(file_b, sql_b, label="query B")

        result_a = LockAnalyzer(text_a, dialect=dialect).analyze_query()
        result_b = LockAnalyzer(text_b, dialect=dialect).analyze_query()
        _warn_invalid([result_a], label="Query A")
        _warn_invalid([result_b], label="Query B")

        comparison = compare_queries(result_a, result_b)
        _emit(
            fmt,
            output_file,
            lambda target: comparison_formatters.TextFormatter.format(
                comparison, target
            ),
            lambda: comparison_formatters.JsonFormatter.format(comparison),
            lambda: comparison_formatters.CsvFormatter.format(comparison),
            "Comparison",
        )

    except FileNotFoundError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    except ValueError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    except OSError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if not comparison.is_compatible:
        raise typer.Exit(1)


@app.command()
def modes(
    matrix: bool = typer.Option(
        False,
        "--matrix",
        "-m",
        help="Show the mode-by-mode compatibility matrix instead",
    ),
    output_format: Optional[str] = typer.Option(
        None,
        "--output-format",
        "-f",
        help="Output format: 'text', 'json', or 'csv' (default: text, or from config)",
    ),
    output_file: Optional[Path] = typer.Option(
        None,
        "--output-file",
        "-o",
        help="Write output to file instead of stdout",
    ),
) -> None:
    """
    List PostgreSQL table lock modes and what conflicts with them.

    Examples:

        pglocks modes

        pglocks modes --matrix
    """
    config = load_config()
    fmt = _resolve_output_format(output_format, config)

    try:
        if matrix:
            _emit(
                fmt,
                output_file,
                lock_formatters.TextFormatter.format_matrix,
                lock_formatters.JsonFormatter.format_matrix,
                lock_formatters.CsvFormatter.format_matrix,
                "Compatibility matrix",
            )
        else:
            infos = all_mode_infos()
            _emit(
                fmt,
                output_file,
                lambda target: lock_formatters.TextFormatter.format(infos, target),
                lambda: lock_formatters.JsonFormatter.format(infos),
                lambda: lock_formatters.CsvFormatter.format(infos),
                "Lock modes",
            )

    except OSError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
