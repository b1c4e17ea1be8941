"""
Rich-based console UI for downscale (sequential mode).

Renders severity-tagged messages and a transient progress bar for the file
being encoded.

Respects:
- NO_COLOR environment variable
- DOWNSCALE_SCRIPT_MODE environment variable
- sys.stdout.isatty() for automatic detection
"""

import os
import sys
from typing import Dict, Optional

from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)
from rich.table import Table

from downscale.ui.legacy_ui import fmt_hms
from downscale.ui.severity import Severity

_STYLES: Dict[Severity, str] = {
    Severity.INFO: "cyan",
    Severity.WARNING: "yellow",
    Severity.ERROR: "bold red",
}


def _should_use_color() -> bool:
    """Check if color output should be used."""
    # Check NO_COLOR environment variable (https://no-color.org/)
    if os.getenv("NO_COLOR"):
        return False
    if os.getenv("DOWNSCALE_SCRIPT_MODE"):
        return False
    try:
        if not sys.stdout.isatty():
            return False
    except (AttributeError, ValueError):
        return False
    return True


class SimpleRichUI:
    """Rich UI for sequential file processing."""

    def __init__(self, progress_enabled: bool = True, console: Optional[Console] = None):
        use_color = _should_use_color()
        if console is None:
            console = Console(
                force_terminal=use_color if use_color else None,
                no_color=not use_color,
                highlight=False,
                soft_wrap=True,
            )
        self.console = console
        self.enabled = progress_enabled and use_color

        self._progress: Optional[Progress] = None
        self._task: Optional[TaskID] = None

    def message(self, severity: Severity, msg: str) -> None:
        """Print a message in the color of its severity."""
        self.endline()
        self.console.print(escape(msg), style=_STYLES[severity])

    def log(self, msg: str, style: str = "") -> None:
        """Print a log message."""
        self.endline()
        if style:
            self.console.print(escape(msg), style=style)
        else:
            self.console.print(escape(msg))

    def info(self, msg: str) -> None:
        self.message(Severity.INFO, msg)

    def warning(self, msg: str) -> None:
        self.message(Severity.WARNING, msg)

    def error(self, msg: str) -> None:
        self.message(Severity.ERROR, msg)

    def progress(self, pct: float, label: str = "") -> None:
        """Update the progress bar of the current file, creating it on first use."""
        if not self.enabled:
            return
        if self._progress is None:
            self._progress = Progress(
                SpinnerColumn(),
                TextColumn("[bold blue]{task.description}[/bold blue]"),
                BarColumn(bar_width=40),
                TextColumn("[progress.percentage]{task.percentage:>5.1f}%"),
                TextColumn("•"),
                TimeElapsedColumn(),
                TextColumn("→"),
                TimeRemainingColumn(),
                console=self.console,
                transient=True,
            )
            self._progress.start()
            self._task = self._progress.add_task(escape(label or "Encoding"), total=100)
        assert self._task is not None
        self._progress.update(self._task, completed=pct)

    def endline(self) -> None:
        """Remove the progress bar, if one is shown."""
        if self._progress is not None:
            self._progress.stop()
            self._progress = None
            self._task = None

    def ask(self, prompt: str) -> str:
        """Read one line from stdin. Raises EOFError when stdin is closed."""
        self.endline()
        return self.console.input(escape(prompt))

    def print_summary(self, converted: int, failed: int, total_time: float) -> None:
        """Print final summary."""
        self.console.print()

        table = Table(title="Summary", box=None, show_header=False)
        table.add_column("Metric", style="bold")
        table.add_column("Value", justify="right")

        table.add_row("✓ Converted", f"[green]{converted}[/green]")
        table.add_row("✗ Failed", f"[red]{failed}[/red]")
        table.add_row("⏱ Total time", fmt_hms(total_time))

        self.console.print(table)
