"""
Simple logging system: timestamped console lines rendered with Rich, mirrored
as plain text to an optional append-only log file.
"""

from __future__ import annotations

import sys
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table


class SimpleLogger:
    """Simple logger that writes to console and file."""

    def __init__(
        self,
        log_file: Path | None = None,
        *,
        verbose: bool = True,
        console: Console | None = None,
        err_console: Console | None = None,
    ) -> None:
        self.log_file = log_file
        self.verbose = verbose
        self.console = console or Console(file=sys.stdout, highlight=False)
        self.err_console = err_console or Console(file=sys.stderr, highlight=False)

        if self.log_file:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.log_file, "a", encoding="utf-8") as f:
                f.write(f"\n{'=' * 60}\n")
                f.write(f"Session started: {datetime.now().isoformat()}\n")
                f.write(f"{'=' * 60}\n")

    def log(self, message: str, prefix: str = "", error: bool = False, style: str | None = None) -> None:
        """Log a message to console and file.

        Args:
            message: The message to log
            prefix: Optional prefix like [INFO], [ERROR], etc.
            error: Whether to write to stderr instead of stdout
            style: Rich style applied to the console rendering only
        """
        timestamp = datetime.now().strftime("%H:%M:%S")
        formatted = f"[{timestamp}] {prefix} {message}" if prefix else f"[{timestamp}] {message}"

        console = self.err_console if error else self.console
        console.print(escape(formatted), style=style, soft_wrap=True)
        self._write_file(formatted)

    def _write_file(self, line: str) -> None:
        if not self.log_file:
            return
        with open(self.log_file, "a", encoding="utf-8") as f:
            f.write(line + "\n")

    def table(self, headers: list[str], rows: list[list[str]], title: str | None = None) -> None:
        """Print a table to the console and its plain-text form to the log file."""
        if not headers or not rows:
            return

        table = Table(title=title, show_lines=False)
        for h in headers:
            table.add_column(h)
        for row in rows:
            table.add_row(*[escape(str(cell)) for cell in row])
        self.console.print(table)

        widths = [len(h) for h in headers]
        for row in rows:
            for i, cell in enumerate(row):
                if i < len(widths):
                    widths[i] = max(widths[i], len(str(cell)))
        separator = "+" + "+".join("-" * (w + 2) for w in widths) + "+"
        self._write_file(separator)
        self._write_file("|" + "|".join(f" {h:<{w}} " for h, w in zip(headers, widths)) + "|")
        self._write_file(separator)
        for row in rows:
            self._write_file("|" + "|".join(f" {str(cell):<{w}} " for cell, w in zip(row, widths)) + "|")
        self._write_file(separator)

    def section(self, title: str) -> None:
        """Print a section header."""
        self.log("")
        self.log("=" * 60, style="bold")
        self.log(title.center(60), style="bold")
        self.log("=" * 60, style="bold")

    def command(self, pretty: str) -> None:
        """Log an external command line before it runs."""
        if self.verbose:
            self.log(pretty, prefix="[ffmpeg]", style="dim")
        else:
            self._write_file(f"[ffmpeg] {pretty}")

    def success(self, message: str) -> None:
        """Log a success message."""
        self.log(message, prefix="[SUCCESS]", style="green")

    def error(self, message: str) -> None:
        """Log an error message."""
        self.log(message, prefix="[ERROR]", error=True, style="bold red")

    def warning(self, message: str) -> None:
        """Log a warning message."""
        self.log(message, prefix="[WARNING]", style="yellow")

    def info(self, message: str) -> None:
        """Log an info message."""
        self.log(message, prefix="[INFO]")
