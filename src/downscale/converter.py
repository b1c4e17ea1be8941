"""
Core conversion logic for downscale.

Contains:
- FFmpeg argument building for a preset
- Parsing of ffmpeg's ``-progress`` key=value stream
- The per-file conversion driver
"""

import re
import shlex
import subprocess
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Callable, Dict, List, Optional

from downscale.config import CFG, Config
from downscale.errors import EngineExecutionError, NoVideoStreamError
from downscale.logsink import LogSink
from downscale.presets import Preset, parameters
from downscale.probe import MediaFile

LOG_EXTENSION = ".log"
DEFAULT_MAX_EDGE = 1920

# Type alias for progress callback (percent 0-100)
ProgressCallback = Callable[[float], None]


# -------------------- COMMAND BUILDING --------------------


def scale_filter(max_edge: int = DEFAULT_MAX_EDGE) -> str:
    """
    Fit the frame inside a ``max_edge`` square, keeping the aspect ratio.

    ffmpeg autorotates before filters run, so portrait and landscape sources
    both come out upright with their long edge bounded.
    """
    return f"scale={max_edge}:{max_edge}:force_original_aspect_ratio=decrease:force_divisible_by=2"


def build_convert_args(
    input_path: Path,
    output_path: Path,
    preset: Preset,
    max_edge: int = DEFAULT_MAX_EDGE,
    encoder_speed: str = "slow",
) -> List[str]:
    """
    Build the ffmpeg arguments converting one file.

    The result does not include the executable or global options; see
    build_engine_cmd.

    Args:
        input_path: Source file.
        output_path: Destination file.
        preset: Quality preset.
        max_edge: Upper bound for the long edge of the output frame.
        encoder_speed: x264/x265 speed preset.

    Returns:
        Argument list, always in the same order for the same inputs.
    """
    p = parameters(preset)
    return [
        "-i",
        str(input_path),
        # Keep every stream, global metadata and chapters; the default
        # stream selection drops secondary audio and subtitle tracks.
        "-map",
        "0",
        "-map_metadata",
        "0",
        "-map_chapters",
        "0",
        "-c:v",
        p.codec,
        "-crf",
        str(p.crf),
        "-preset",
        encoder_speed,
        "-vf",
        scale_filter(max_edge),
        # Stereo downmix, sample rate left as is.
        "-c:a",
        "aac",
        "-b:a",
        p.audio_bitrate,
        "-ac",
        "2",
        "-movflags",
        "+faststart",
        str(output_path),
    ]


def build_engine_cmd(args: List[str], cfg: Optional[Config] = None) -> List[str]:
    """Prepend the ffmpeg executable and the global options the driver relies on."""
    if cfg is None:
        cfg = CFG
    return [
        cfg.ffmpeg,
        "-hide_banner",
        "-nostdin",
        "-y" if cfg.overwrite else "-n",
        "-progress",
        "pipe:1",
        "-nostats",
    ] + args


# -------------------- PROGRESS PARSING --------------------

_PROGRESS_KV = re.compile(r"^([a-z_]+)=(.*)$")
_OUT_TIME = re.compile(r"^(\d+):(\d+):(\d+)(?:\.(\d+))?$")


def compute_percent(out_ms: int, dur_ms: Optional[int]) -> float:
    """Percent complete, clamped to 0-100. Unknown duration gives 0."""
    if not dur_ms or dur_ms <= 0 or out_ms <= 0:
        return 0.0
    return min(100.0, out_ms * 100.0 / dur_ms)


def parse_progress_line(line: str) -> Optional[Dict[str, int]]:
    """
    Parse one line of ``-progress`` output.

    Returns:
        ``{"out_ms": n}`` for a position update, ``{"end": 1}`` when ffmpeg
        reports ``progress=end``, or None for anything else.
    """
    m = _PROGRESS_KV.match(line.strip())
    if not m:
        return None
    k, v = m.group(1), m.group(2).strip()

    # out_time_ms is in microseconds despite the name
    if k in ("out_time_us", "out_time_ms"):
        try:
            return {"out_ms": int(v) // 1000}
        except ValueError:
            return None
    if k == "out_time":
        mm = _OUT_TIME.match(v)
        if not mm:
            return None
        h, mi, se = int(mm.group(1)), int(mm.group(2)), int(mm.group(3))
        ms = int(((mm.group(4) or "0") + "000")[:3])
        return {"out_ms": (h * 3600 + mi * 60 + se) * 1000 + ms}
    if k == "progress" and v == "end":
        return {"end": 1}
    return None


# -------------------- CONVERSION DRIVER --------------------


@dataclass(frozen=True)
class ConversionJob:
    """One file, its preset and where its output and log go."""

    media: MediaFile
    preset: Preset
    output_path: Path
    log_path: Path


@dataclass(frozen=True)
class ConversionResult:
    """Outcome of convert_file when no error was raised."""

    output_path: Optional[Path] = None
    cancelled: bool = False
    dryrun: bool = False


def output_path_for(input_path: Path, output_dir: Path, container: str = "mp4") -> Path:
    """Output file for an input: same stem, target extension, in ``output_dir``."""
    return output_dir / f"{input_path.stem}.{container}"


def make_job(media: MediaFile, output_dir: Path, preset: Preset, cfg: Optional[Config] = None) -> ConversionJob:
    if cfg is None:
        cfg = CFG
    out = output_path_for(media.path, output_dir, cfg.container)
    return ConversionJob(media=media, preset=preset, output_path=out, log_path=out.with_suffix(LOG_EXTENSION))


def _pump_diagnostics(stream: IO[str], sink: LogSink) -> None:
    """Copy every non-blank engine line to the job log, in arrival order."""
    for line in stream:
        if line.strip():
            sink.log(line)


def _pump_progress(stream: IO[str], dur_ms: Optional[int], on_progress: Optional[ProgressCallback]) -> None:
    last_pct = -1.0
    out_ms_max = 0
    for line in stream:
        parsed = parse_progress_line(line)
        if parsed is None or on_progress is None:
            continue
        if "end" in parsed:
            pct = 100.0
        else:
            # ffmpeg occasionally reports a smaller position after a larger one
            out_ms_max = max(out_ms_max, parsed["out_ms"])
            pct = compute_percent(out_ms_max, dur_ms)
        if pct != last_pct:
            last_pct = pct
            on_progress(pct)


def run_engine(
    cmd: List[str],
    job: ConversionJob,
    job_log: LogSink,
    on_progress: Optional[ProgressCallback] = None,
) -> int:
    """
    Run ffmpeg, feeding progress to ``on_progress`` and diagnostics to ``job_log``.

    stderr is drained on a separate thread so neither pipe can fill up and
    stall the other.

    Returns:
        The process exit code.
    """
    try:
        proc = subprocess.Popen(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            bufsize=1,
        )
    except OSError as e:
        raise EngineExecutionError(job.media.path, None, str(e)) from e

    with proc:
        assert proc.stdout is not None and proc.stderr is not None
        reader = threading.Thread(
            target=_pump_diagnostics,
            args=(proc.stderr, job_log),
            name=f"ffmpeg-stderr-{job.media.name}",
            daemon=True,
        )
        reader.start()
        try:
            _pump_progress(proc.stdout, job.media.duration_ms, on_progress)
        finally:
            proc.wait()
            reader.join()
    return proc.returncode


def convert_file(
    media: MediaFile,
    output_dir: Path,
    preset: Preset,
    session_log: LogSink,
    cancel_event: Optional[threading.Event] = None,
    cfg: Optional[Config] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> ConversionResult:
    """
    Convert a single file.

    Args:
        media: Probed input file.
        output_dir: Absolute output directory shared by the whole batch.
        preset: Quality preset.
        session_log: Session log; the full command is written there before launch.
        cancel_event: If already set, nothing is done.
        cfg: Config instance (uses global CFG if not provided).
        on_progress: Called with the percent complete as ffmpeg reports it.

    Returns:
        ConversionResult describing what happened.

    Raises:
        NoVideoStreamError: If the file has no video stream.
        EngineExecutionError: If ffmpeg cannot start or exits non-zero.

    Example:
        >>> with LogSink(Path("/tmp/session.log")) as session:
        ...     convert_file(media, Path("/tmp/out"), Preset.H264_STANDARD, session)
    """
    if cancel_event is not None and cancel_event.is_set():
        return ConversionResult(cancelled=True)

    if cfg is None:
        cfg = CFG

    if not media.is_video:
        raise NoVideoStreamError(media.path)

    job = make_job(media, output_dir, preset, cfg)
    args = build_convert_args(media.path, job.output_path, preset, cfg.max_edge, cfg.encoder_speed)
    cmd = build_engine_cmd(args, cfg)

    session_log.log(f"Command: {shlex.join(cmd)}")

    if cfg.dryrun:
        return ConversionResult(dryrun=True)

    output_dir.mkdir(parents=True, exist_ok=True)

    with LogSink(job.log_path) as job_log:
        rc = run_engine(cmd, job, job_log, on_progress)

    if rc != 0:
        raise EngineExecutionError(media.path, rc)

    return ConversionResult(output_path=job.output_path)
