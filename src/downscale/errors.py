"""
Error types for downscale.

File-scoped errors (NoVideoStreamError, EngineExecutionError) are caught by
the batch loop and never stop the batch. Run-scoped errors
(ConfigurationError) abort the whole run.
"""

from pathlib import Path
from typing import Optional


class DownscaleError(Exception):
    """Base class for all downscale errors."""


class InvalidArgumentError(DownscaleError, ValueError):
    """A path that must be absolute is not."""


class MediaNotFoundError(DownscaleError, FileNotFoundError):
    """A referenced input file does not exist."""


class ConfigurationError(DownscaleError):
    """A batch-wide setting (output directory, preset) is unusable."""


class NoVideoStreamError(DownscaleError):
    """The file has no usable video stream at conversion time."""

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"No video stream found in file: {path}")


class EngineExecutionError(DownscaleError):
    """ffmpeg could not be launched or exited with a non-zero code."""

    def __init__(self, path: Path, returncode: Optional[int] = None, reason: str = ""):
        self.path = path
        self.returncode = returncode
        if returncode is not None:
            msg = f"ffmpeg error (rc={returncode}) for {path.name}"
        else:
            msg = f"ffmpeg could not be started for {path.name}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)
