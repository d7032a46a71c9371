#!/usr/bin/env python3

from rich.console import Console as RichConsole
from rich.table import Table


class Console:
    """Simple console wrapper focused on output."""

    def __init__(self, stderr: bool = False):
        self._rich = RichConsole(stderr=stderr)

    def print(self, *args, **kwargs):
        """Print using Rich console."""
        return self._rich.print(*args, **kwargs)

    def status(self, *args, **kwargs):
        """Create Rich status context."""
        return self._rich.status(*args, **kwargs)

    def table(self, title: str, columns: list[str], rows: list[list[str]]):
        """Print rows as a Rich table."""
        table = Table(title=title)
        for column in columns:
            table.add_column(column)
        for row in rows:
            table.add_row(*row)
        return self._rich.print(table)
