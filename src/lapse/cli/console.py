"""Shared console utilities for CLI commands."""

from rich.console import Console
from rich.table import Table

# Shared console instance for all CLI commands
console = Console()


def error(msg: str) -> None:
    """Print an error message in red."""
    console.print(f"[red]{msg}[/red]")


def success(msg: str) -> None:
    """Print a success message in green."""
    console.print(f"[green]{msg}[/green]")


def create_table(title: str, columns: list[tuple[str, str]]) -> Table:
    """Create a table from (name, style) column pairs."""
    table = Table(title=title)
    for name, style in columns:
        table.add_column(name, style=style)
    return table
