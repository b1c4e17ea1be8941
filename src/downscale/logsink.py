"""
Append-only timestamped log files.

Every line is written as ``[YYYY-MM-DDTHH:MM:SSZ] message`` in UTC, UTF-8,
and flushed immediately so a crash never loses what was already logged.
"""

import datetime
from pathlib import Path
from typing import Optional, TextIO


def utc_timestamp(now: Optional[datetime.datetime] = None) -> str:
    """Format a time as ISO-8601 UTC with second precision."""
    if now is None:
        now = datetime.datetime.now(datetime.timezone.utc)
    return now.astimezone(datetime.timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class LogSink:
    """A log file opened in append mode.

    Use it as a context manager to guarantee the file is closed:

        >>> with LogSink(Path("/tmp/job.log")) as sink:
        ...     sink.log("hello")
    """

    def __init__(self, path: Path):
        self.path = path
        path.parent.mkdir(parents=True, exist_ok=True)
        self._fh: Optional[TextIO] = path.open("a", encoding="utf-8", errors="replace")

    @property
    def closed(self) -> bool:
        return self._fh is None

    def log(self, message: str) -> None:
        """Append one timestamped line. Multi-line messages keep their newlines."""
        if self._fh is None:
            raise ValueError(f"Log sink already closed: {self.path}")
        self._fh.write(f"[{utc_timestamp()}] {message.rstrip()}\n")
        self._fh.flush()

    def close(self) -> None:
        if self._fh is not None:
            self._fh.close()
            self._fh = None

    def __enter__(self) -> "LogSink":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
