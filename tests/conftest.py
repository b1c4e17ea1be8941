"""
Pytest configuration and shared fixtures for downscale tests.
"""

import io
import stat
import sys
import tempfile
from pathlib import Path
from typing import Generator

import pytest

# Add src to path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


# Stand-in for ffmpeg. Reports progress on stdout the way "-progress pipe:1"
# does, writes diagnostics to stderr and creates the output file (last arg).
# An input path containing ENGINE_FAIL makes it exit 1. Every invocation is
# appended to $FAKE_ENGINE_CALLS when that variable is set.
FAKE_FFMPEG = """#!/bin/sh
for last; do :; done
if [ -n "$FAKE_ENGINE_CALLS" ]; then
    echo "$*" >> "$FAKE_ENGINE_CALLS"
fi
echo "ffmpeg version fake" >&2
echo "" >&2
echo "Input #0, mov,mp4 from input" >&2
case "$*" in
    *ENGINE_FAIL*)
        echo "Invalid data found when processing input" >&2
        exit 1
        ;;
esac
echo "out_time_us=500000"
echo "progress=continue"
echo "out_time_us=1000000"
echo "progress=continue"
echo "out_time_us=2000000"
echo "progress=end"
: > "$last"
exit 0
"""

# Stand-in for ffprobe. The input file name selects the answer:
# *NOTVIDEO* has audio only, *CORRUPT* fails, *4K* is 3840x2160,
# anything else is 800x600. Every file lasts 2 seconds.
FAKE_FFPROBE = """#!/bin/sh
for last; do :; done
case "$last" in
    *CORRUPT*)
        echo "Invalid data found when processing input" >&2
        exit 1
        ;;
    *NOTVIDEO*)
        echo '{"streams": [{"codec_type": "audio"}], "format": {"duration": "2.000000"}}'
        ;;
    *4K*)
        echo '{"streams": [{"codec_type": "video", "width": 3840, "height": 2160, "pix_fmt": "yuv420p"}], "format": {"duration": "2.000000"}}'
        ;;
    *)
        echo '{"streams": [{"codec_type": "video", "width": 800, "height": 600, "pix_fmt": "yuv420p"}, {"codec_type": "audio"}], "format": {"duration": "2.000000"}}'
        ;;
esac
"""


def _write_script(path: Path, body: str) -> Path:
    path.write_text(body)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test outputs."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_config_dir(temp_dir: Path) -> Path:
    """Create a temporary config directory."""
    config_dir = temp_dir / "config"
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


@pytest.fixture
def mock_xdg_dirs(temp_dir: Path, monkeypatch):
    """Mock XDG directories to use temporary paths."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(temp_dir / "config"))
    monkeypatch.setenv("XDG_STATE_HOME", str(temp_dir / "state"))


@pytest.fixture
def default_config():
    """Return a default Config instance for testing."""
    from downscale.config import Config

    return Config()


@pytest.fixture
def fake_ffmpeg(tmp_path: Path) -> Path:
    """Path to an executable that behaves like ffmpeg for the driver."""
    bindir = tmp_path / "bin"
    bindir.mkdir(exist_ok=True)
    return _write_script(bindir / "ffmpeg", FAKE_FFMPEG)


@pytest.fixture
def fake_ffprobe(tmp_path: Path) -> Path:
    """Path to an executable that answers like ffprobe -print_format json."""
    bindir = tmp_path / "bin"
    bindir.mkdir(exist_ok=True)
    return _write_script(bindir / "ffprobe", FAKE_FFPROBE)


@pytest.fixture
def engine_calls(tmp_path: Path, monkeypatch) -> Path:
    """File the fake ffmpeg appends its command lines to."""
    calls = tmp_path / "engine_calls.txt"
    monkeypatch.setenv("FAKE_ENGINE_CALLS", str(calls))
    return calls


@pytest.fixture
def engine_config(fake_ffmpeg: Path, fake_ffprobe: Path):
    """Library-mode Config wired to the fake engine."""
    from downscale.config import Config

    return Config.for_library(ffmpeg=str(fake_ffmpeg), ffprobe=str(fake_ffprobe))


@pytest.fixture
def media_dir(tmp_path: Path) -> Path:
    """Directory holding dummy input files."""
    d = tmp_path / "media"
    d.mkdir()
    return d


@pytest.fixture
def make_media(media_dir: Path):
    """Create a dummy input file and return its absolute path."""

    def _make(name: str) -> Path:
        p = media_dir / name
        p.write_bytes(b"\x00" * 16)
        return p

    return _make


@pytest.fixture
def session_log(tmp_path: Path):
    """Session log sink in a temp directory, closed after the test."""
    from downscale.logsink import LogSink

    sink = LogSink(tmp_path / "logs" / "session.log")
    yield sink
    sink.close()


@pytest.fixture
def plain_ui():
    """LegacyUI writing to a StringIO (no TTY: no color, no progress line)."""
    from downscale.ui import LegacyUI

    return LegacyUI(progress=True, stream=io.StringIO())
