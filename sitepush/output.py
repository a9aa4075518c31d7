"""Output formatting for the sitepush CLI."""

import json
from typing import Any, Optional

from rich.console import Console
from rich.table import Table


class OutputFormatter:
    """Writes the human-readable run transcript or JSON output.

    Informational messages go to stdout and are suppressed in quiet or JSON
    mode. Warnings and errors always go to stderr.
    """

    def __init__(
        self,
        json_output: bool = False,
        quiet: bool = False,
        verbose: bool = False,
        console: Optional[Console] = None,
        err_console: Optional[Console] = None,
    ):
        """Initialize output formatter.

        Args:
            json_output: Emit machine-readable JSON instead of text
            quiet: Suppress non-essential output
            verbose: Also print per-file detail lines
            console: Console for regular output
            err_console: Console for warnings and errors
        """
        self.json_output = json_output
        self.quiet = quiet or json_output
        self.verbose = verbose
        self.console = console or Console(highlight=False)
        self.err_console = err_console or Console(stderr=True, highlight=False)

    def print(self, message: str = "") -> None:
        """Print a plain line."""
        if not self.quiet:
            self.console.print(message, markup=False)

    def info(self, message: str) -> None:
        """Print an informational message."""
        if not self.quiet:
            self.console.print(message, style="cyan", markup=False)

    def detail(self, message: str) -> None:
        """Print a per-file detail line (verbose mode only)."""
        if self.verbose and not self.quiet:
            self.console.print(message, style="dim", markup=False)

    def success(self, message: str) -> None:
        """Print a success message."""
        if not self.quiet:
            self.console.print(message, style="green", markup=False)

    def warning(self, message: str) -> None:
        """Print a warning message."""
        self.err_console.print(message, style="yellow", markup=False)

    def error(self, message: str) -> None:
        """Print an error message."""
        self.err_console.print(message, style="bold red", markup=False)

    def output_json(self, data: Any) -> None:
        """Print data as JSON on stdout (ignores quiet mode)."""
        self.console.print_json(json.dumps(data))

    def print_summary(self, title: str, items: list[tuple[str, str]]) -> None:
        """Print a two-column summary table.

        Args:
            title: Table title
            items: (label, value) rows
        """
        if self.quiet:
            return
        table = Table(title=title, show_header=False)
        table.add_column("Field", style="bold")
        table.add_column("Value")
        for label, value in items:
            table.add_row(label, value)
        self.console.print(table)
