"""
Plain-text UI for downscale.

Used when rich is not available. Colors are plain ANSI codes and are only
emitted on a TTY without NO_COLOR.
"""

import os
import shutil
import sys
from typing import Optional, TextIO

from downscale.ui.severity import Severity

_ANSI = {
    Severity.INFO: "\033[36m",
    Severity.WARNING: "\033[33m",
    Severity.ERROR: "\033[31m",
}
_RESET = "\033[0m"


def term_width() -> int:
    """Get terminal width."""
    try:
        return shutil.get_terminal_size((120, 20)).columns
    except (OSError, ValueError):
        return 120


def mkbar(pct: int, width: int = 26) -> str:
    """Create a simple progress bar string."""
    pct = max(0, min(100, pct))
    filled = int(pct * width / 100)
    empty = width - filled
    return "#" * filled + "-" * empty


def shorten(s: str, maxlen: int) -> str:
    """Shorten a string with ellipsis if too long."""
    if maxlen <= 0:
        return ""
    if len(s) <= maxlen:
        return s
    if maxlen <= 3:
        return s[:maxlen]
    return s[: maxlen - 3] + "..."


def fmt_hms(seconds: float) -> str:
    """Format seconds as HH:MM:SS."""
    if seconds < 0:
        seconds = 0
    s = int(round(seconds))
    h = s // 3600
    m = (s % 3600) // 60
    r = s % 60
    return f"{h:02d}:{m:02d}:{r:02d}"


class LegacyUI:
    """Fallback UI when rich is not available."""

    def __init__(self, progress: bool = True, bar_width: int = 26, stream: Optional[TextIO] = None):
        self.stream = stream if stream is not None else sys.stdout
        is_tty = hasattr(self.stream, "isatty") and self.stream.isatty()
        self.enabled = progress and is_tty
        self.color = is_tty and not os.getenv("NO_COLOR")
        self.bar_width = bar_width
        self._last_render: Optional[str] = None

    def message(self, severity: Severity, msg: str) -> None:
        """Print a message, clearing the progress line first."""
        self.endline()
        if self.color:
            msg = f"{_ANSI[severity]}{msg}{_RESET}"
        print(msg, file=self.stream, flush=True)

    def log(self, msg: str) -> None:
        """Print an uncolored line."""
        self.endline()
        print(msg, file=self.stream, flush=True)

    def info(self, msg: str) -> None:
        self.message(Severity.INFO, msg)

    def warning(self, msg: str) -> None:
        self.message(Severity.WARNING, msg)

    def error(self, msg: str) -> None:
        self.message(Severity.ERROR, msg)

    def progress(self, pct: float, label: str = "") -> None:
        """Rewrite the progress line in place."""
        if not self.enabled:
            return
        bar = mkbar(int(pct), self.bar_width)
        left = f"[{bar}] {pct:5.1f}% "
        name = shorten(label, max(10, term_width() - len(left) - 1))
        line = f"{left}{name}".rstrip()
        pad = ""
        if self._last_render is not None and len(self._last_render) > len(line):
            pad = " " * (len(self._last_render) - len(line))
        if line != self._last_render:
            self.stream.write("\r" + line + pad)
            self.stream.flush()
            self._last_render = line

    def endline(self) -> None:
        """Clear the current progress line."""
        if self._last_render is None:
            return
        self.stream.write("\r" + " " * len(self._last_render) + "\r")
        self.stream.flush()
        self._last_render = None

    def ask(self, prompt: str) -> str:
        """Read one line from stdin. Raises EOFError when stdin is closed."""
        self.endline()
        return input(prompt)

    def print_summary(self, converted: int, failed: int, total_time: float) -> None:
        """Print final summary."""
        self.log("")
        self.log("=== Summary ===")
        self.log(f"Converted: {converted}")
        self.log(f"Failed: {failed}")
        self.log(f"Total time: {fmt_hms(total_time)}")
