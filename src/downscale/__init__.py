"""
downscale - Batch video re-encoder with bounded resolution.

Probes a list of videos, re-encodes each one with ffmpeg using an H.264 or
H.265 quality preset, and bounds the long edge of the picture to 1920 pixels.
Every step is written to a session log; ffmpeg's own output goes to a log
file next to each converted video.

Example usage:
    # As a command-line tool
    $ downscale /videos/holiday.mov /videos/party.mp4
    $ downscale -p h265-high -o /archive -y /videos/*.mov

    # As a Python module
    from downscale import Config, Preset, probe, build_convert_args

    config = Config.for_library()
    media = probe("/videos/holiday.mov", config)
"""

__version__ = "1.0.0"
__author__ = "downscale contributors"
__license__ = "GPL-3.0"
__description__ = "Batch video re-encoder with bounded resolution"

# Public API exports
from downscale.batch import BatchOrchestrator, BatchResult, BatchStatus
from downscale.config import Config, get_app_dirs, load_config_file
from downscale.converter import (
    ConversionJob,
    ConversionResult,
    build_convert_args,
    build_engine_cmd,
    convert_file,
)
from downscale.errors import (
    ConfigurationError,
    DownscaleError,
    EngineExecutionError,
    InvalidArgumentError,
    MediaNotFoundError,
    NoVideoStreamError,
)
from downscale.logsink import LogSink
from downscale.presets import Preset, PresetParams, parameters
from downscale.probe import MediaFile, MediaMetadata, probe, probe_all

__all__ = [
    # Version info
    "__version__",
    "__author__",
    "__license__",
    # Config
    "Config",
    "get_app_dirs",
    "load_config_file",
    # Presets
    "Preset",
    "PresetParams",
    "parameters",
    # Probe
    "MediaFile",
    "MediaMetadata",
    "probe",
    "probe_all",
    # Converter
    "ConversionJob",
    "ConversionResult",
    "build_convert_args",
    "build_engine_cmd",
    "convert_file",
    # Batch
    "BatchOrchestrator",
    "BatchResult",
    "BatchStatus",
    # Logging
    "LogSink",
    # Errors
    "DownscaleError",
    "InvalidArgumentError",
    "MediaNotFoundError",
    "ConfigurationError",
    "NoVideoStreamError",
    "EngineExecutionError",
]
