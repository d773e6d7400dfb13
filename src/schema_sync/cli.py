"""
Command-line interface for schema_sync.

Provides introspect and show commands for capturing and inspecting schema
snapshots.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table

from schema_sync import __version__
from schema_sync.config import ConnectionConfig, IntrospectionConfig, Settings
from schema_sync.errors import SchemaSyncError
from schema_sync.models import DatabaseModel

console = Console()


def setup_logging(verbose: bool = False) -> None:
    """Configure logging with Rich handler."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


@click.group()
@click.version_option(version=__version__, prog_name="schema-sync")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
def cli(verbose: bool) -> None:
    """
    Schema Sync - Relational Schema Introspection

    Capture a deterministic model of a MySQL schema's tables, columns and indexes.
    """
    setup_logging(verbose)


@cli.command()
@click.option(
    "--conn",
    type=str,
    default=None,
    help="Connection string (user:pwd@host:port/database)",
)
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="YAML settings file",
)
@click.option(
    "--output",
    type=click.Path(path_type=Path),
    default=None,
    help="Write the snapshot as JSON to this path",
)
@click.option(
    "--on-error",
    type=click.Choice(["abort", "isolate"]),
    default=None,
    help="Abort on any catalog failure, or drop the failing table and continue",
)
@click.option(
    "--column-details",
    is_flag=True,
    default=False,
    help="Also read information_schema column details",
)
def introspect(
    conn: Optional[str],
    config_file: Optional[Path],
    output: Optional[Path],
    on_error: Optional[str],
    column_details: bool,
) -> None:
    """
    Introspect a live database and print a summary.

    Examples:

        # Capture a snapshot
        schema-sync introspect --conn "reader:secret@localhost:3306/shop" \\
            --output snapshots/shop.json

        # Use a settings file, keep going past broken tables
        schema-sync introspect --config configs/shop.yaml --on-error isolate
    """
    from schema_sync.builder import SchemaBuilder
    from schema_sync.connection import MySQLConnection

    try:
        settings = Settings.load(config_file) if config_file else Settings()
        if conn:
            settings.connection = ConnectionConfig.from_string(conn)
        if on_error or column_details:
            settings.introspection = IntrospectionConfig(
                on_error=on_error or settings.introspection.on_error,
                column_details=column_details or settings.introspection.column_details,
            )
        if output:
            settings.output = output
    except SchemaSyncError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    if settings.connection is None:
        console.print("[red]Error: No connection given. Use --conn or a --config with a connection section[/red]")
        sys.exit(1)

    console.print("[bold blue]Schema Sync Introspection[/bold blue]")
    console.print(
        f"Database: {settings.connection.host}:{settings.connection.port}/"
        f"{settings.connection.database}"
    )

    try:
        with MySQLConnection(settings.connection) as connection:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                TextColumn("{task.completed}/{task.total}"),
                console=console,
            ) as progress:
                task = progress.add_task("Connecting...", total=None)

                def on_progress(phase: str, table_name: str, done: int, total: int) -> None:
                    progress.update(
                        task,
                        description=f"{phase}: {table_name}",
                        completed=done,
                        total=total,
                    )

                builder = SchemaBuilder(
                    connection,
                    config=settings.introspection,
                    progress_callback=on_progress,
                )
                model = builder.build()
    except SchemaSyncError as e:
        console.print(f"[red]Introspection failed: {e}[/red]")
        sys.exit(1)

    print_summary(model)

    if model.errors:
        print_errors(model)

    if settings.output:
        model.save(settings.output)
        console.print(f"\n[green]Snapshot saved to: {settings.output}[/green]")


@cli.command()
@click.argument("snapshot", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--table",
    "table_name",
    type=str,
    default=None,
    help="Show columns and indexes of a single table",
)
def show(snapshot: Path, table_name: Optional[str]) -> None:
    """
    Display a saved snapshot.

    Examples:

        schema-sync show snapshots/shop.json

        schema-sync show snapshots/shop.json --table users
    """
    try:
        model = DatabaseModel.load(snapshot)
    except (ValueError, KeyError) as e:
        console.print(f"[red]Error: Invalid snapshot {snapshot}: {e}[/red]")
        sys.exit(1)

    if table_name is None:
        print_summary(model)
        if model.errors:
            print_errors(model)
        return

    table = model.get_table(table_name)
    if table is None:
        console.print(f"[red]Error: Table not found: {table_name}[/red]")
        sys.exit(1)

    columns = Table(title=f"{table.name} columns")
    columns.add_column("Column", style="cyan")
    columns.add_column("Type", style="green")
    columns.add_column("Nullable", style="yellow")
    columns.add_column("Default")
    for col in table.columns:
        columns.add_row(
            col.name,
            col.sql_type,
            "YES" if col.nullable else "NO",
            col.default_value if col.default_value is not None else "",
        )
    console.print(columns)

    indexes = Table(title=f"{table.name} indexes")
    indexes.add_column("Index", style="cyan")
    indexes.add_column("Type", style="green")
    indexes.add_column("Unique", style="yellow")
    indexes.add_column("Columns")
    for idx in table.indexes:
        indexes.add_row(
            idx.name,
            idx.index_type.value,
            "YES" if idx.unique else "NO",
            ", ".join(idx.columns),
        )
    console.print(indexes)


def print_summary(model: DatabaseModel) -> None:
    """Print one row per table."""
    table = Table(title=f"Schema {model.schema_name or ''}".strip())
    table.add_column("Table", style="cyan")
    table.add_column("Columns", style="green", justify="right")
    table.add_column("Indexes", style="yellow", justify="right")

    for tbl in model.tables:
        table.add_row(tbl.name, str(len(tbl.columns)), str(len(tbl.indexes)))

    console.print(table)
    console.print(f"Tables: {len(model.tables)}")


def print_errors(model: DatabaseModel) -> None:
    """Print tables dropped by isolated failures."""
    table = Table(title="Isolated Failures")
    table.add_column("Phase", style="cyan")
    table.add_column("Table", style="red")
    table.add_column("Error")

    for err in model.errors:
        table.add_row(err.phase, err.table_name, err.message)

    console.print(table)


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
