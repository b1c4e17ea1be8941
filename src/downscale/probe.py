"""
Media probing for downscale.

Wraps ffprobe to read the stream layout of an input file. A file ffprobe
cannot parse is not an error here: it comes back as a MediaFile without
metadata so the batch can report which inputs are unusable.
"""

import json
import os
import subprocess
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from downscale.config import CFG, Config
from downscale.errors import DownscaleError, InvalidArgumentError, MediaNotFoundError


@dataclass(frozen=True)
class MediaMetadata:
    """Stream properties read from ffprobe."""

    has_video: bool
    width: int = 0
    height: int = 0
    pix_fmt: str = ""
    duration_ms: Optional[int] = None


@dataclass(frozen=True)
class MediaFile:
    """An input file and its probe result (None when probing failed)."""

    path: Path
    metadata: Optional[MediaMetadata] = None

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def is_video(self) -> bool:
        return self.metadata is not None and self.metadata.has_video

    @property
    def duration_ms(self) -> Optional[int]:
        return self.metadata.duration_ms if self.metadata is not None else None


@dataclass(frozen=True)
class ProbeOutcome:
    """Result of probing one path inside a batch."""

    path: Path
    media: Optional[MediaFile] = None
    error: Optional[DownscaleError] = None

    @property
    def is_video(self) -> bool:
        return self.media is not None and self.media.is_video


# -------------------- FFPROBE --------------------


def ffprobe_json(path: Path, cfg: Optional[Config] = None) -> Dict[str, Any]:
    """Run ffprobe and return its JSON output."""
    if cfg is None:
        cfg = CFG
    cmd = [cfg.ffprobe, "-v", "error", "-print_format", "json", "-show_streams", "-show_format", str(path)]
    out = subprocess.check_output(cmd, stderr=subprocess.DEVNULL)
    result: Dict[str, Any] = json.loads(out)
    return result


def _to_float(value: Any) -> Optional[float]:
    try:
        f = float(value)
    except (TypeError, ValueError):
        return None
    return f if f > 0 else None


def metadata_from_ffprobe(data: Dict[str, Any]) -> MediaMetadata:
    """
    Build MediaMetadata from ffprobe JSON.

    The first video stream gives the frame size and pixel format. Duration
    comes from the container, falling back to the video stream.
    """
    streams = data.get("streams") or []
    video = next((s for s in streams if s.get("codec_type") == "video"), None)

    dur = _to_float((data.get("format") or {}).get("duration"))
    if dur is None and video is not None:
        dur = _to_float(video.get("duration"))
    duration_ms = int(dur * 1000) if dur is not None else None

    if video is None:
        return MediaMetadata(has_video=False, duration_ms=duration_ms)

    return MediaMetadata(
        has_video=True,
        width=int(video.get("width") or 0),
        height=int(video.get("height") or 0),
        pix_fmt=str(video.get("pix_fmt") or ""),
        duration_ms=duration_ms,
    )


def probe(path: Union[str, Path], cfg: Optional[Config] = None) -> MediaFile:
    """
    Probe a media file.

    Args:
        path: Absolute path to the file.
        cfg: Config instance (uses global CFG if not provided).

    Returns:
        MediaFile with metadata, or with ``metadata=None`` if ffprobe could
        not read the file.

    Raises:
        InvalidArgumentError: If ``path`` is not absolute. Nothing is touched.
        MediaNotFoundError: If the file does not exist.
    """
    p = Path(path)
    if not p.is_absolute():
        raise InvalidArgumentError(f"Path is not fully qualified: {path}")
    if not p.is_file():
        raise MediaNotFoundError(f"File does not exist: {p}")

    try:
        data = ffprobe_json(p, cfg)
    except (subprocess.CalledProcessError, OSError, ValueError):
        return MediaFile(path=p, metadata=None)

    return MediaFile(path=p, metadata=metadata_from_ffprobe(data))


def _probe_one(path: Path, cfg: Optional[Config]) -> ProbeOutcome:
    try:
        return ProbeOutcome(path=path, media=probe(path, cfg))
    except (InvalidArgumentError, MediaNotFoundError) as e:
        return ProbeOutcome(path=path, error=e)


def sort_key(path: Path) -> str:
    """Case-insensitive ordering used everywhere files are listed."""
    return str(path).casefold()


def probe_all(
    paths: Sequence[Union[str, Path]],
    cfg: Optional[Config] = None,
    max_workers: int = 0,
) -> List[ProbeOutcome]:
    """
    Probe many files concurrently.

    Path errors are captured per file in ``ProbeOutcome.error`` rather than
    raised. The result is sorted case-insensitively by path whatever order
    the probes finish in.
    """
    if cfg is None:
        cfg = CFG
    items = [Path(p) for p in paths]
    if not items:
        return []

    if max_workers <= 0:
        max_workers = cfg.probe_workers if cfg.probe_workers > 0 else min(8, os.cpu_count() or 1)
    max_workers = max(1, min(max_workers, len(items)))

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        outcomes = list(executor.map(lambda p: _probe_one(p, cfg), items))

    return sorted(outcomes, key=lambda o: sort_key(o.path))
