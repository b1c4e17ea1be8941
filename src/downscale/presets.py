"""
Encoding presets for downscale.

Each preset pairs a video codec with a CRF value and an AAC bitrate.
Lower CRF means higher quality on both codecs, but the two scales are not
aligned: libx265 CRF 28 looks roughly like libx264 CRF 23, and libx265 CRF 23
roughly like libx264 CRF 18. The values below are a lookup table and must
stay one; there is no formula converting a quality level into a CRF.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional


class Preset(Enum):
    """Quality presets offered to the user, in menu order."""

    H264_STANDARD = "h264-standard"
    H264_HIGH = "h264-high"
    H265_STANDARD = "h265-standard"
    H265_HIGH = "h265-high"


@dataclass(frozen=True)
class PresetParams:
    """Concrete encoder settings for a preset."""

    codec: str
    crf: int
    audio_bitrate_kbps: int

    @property
    def audio_bitrate(self) -> str:
        """Bitrate as ffmpeg expects it, e.g. ``128k``."""
        return f"{self.audio_bitrate_kbps}k"


# -------------------- CATALOG --------------------

_CATALOG: Dict[Preset, PresetParams] = {
    Preset.H264_STANDARD: PresetParams(codec="libx264", crf=23, audio_bitrate_kbps=128),
    Preset.H264_HIGH: PresetParams(codec="libx264", crf=18, audio_bitrate_kbps=192),
    Preset.H265_STANDARD: PresetParams(codec="libx265", crf=28, audio_bitrate_kbps=128),
    Preset.H265_HIGH: PresetParams(codec="libx265", crf=23, audio_bitrate_kbps=192),
}

_DESCRIPTIONS: Dict[Preset, str] = {
    Preset.H264_STANDARD: "H.264 standard quality, best compatibility",
    Preset.H264_HIGH: "H.264 high quality, larger files",
    Preset.H265_STANDARD: "H.265 standard quality, smaller files",
    Preset.H265_HIGH: "H.265 high quality, archival",
}


def parameters(preset: Preset) -> PresetParams:
    """
    Return the encoder settings for a preset.

    Raises:
        KeyError: If ``preset`` is not one of the four catalog entries.
    """
    return _CATALOG[preset]


def all_presets() -> List[Preset]:
    """Presets in menu order."""
    return list(Preset)


def describe(preset: Preset) -> str:
    """Menu label, e.g. ``H.264 standard quality, best compatibility (libx264, CRF 23, AAC 128k)``."""
    p = parameters(preset)
    return f"{_DESCRIPTIONS[preset]} ({p.codec}, CRF {p.crf}, AAC {p.audio_bitrate})"


def preset_from_choice(choice: str) -> Optional[Preset]:
    """Map a 1-based menu answer to a preset, or None if it is not valid."""
    choice = choice.strip()
    if not choice.isdigit():
        return None
    idx = int(choice)
    presets = all_presets()
    if 1 <= idx <= len(presets):
        return presets[idx - 1]
    return None


def preset_from_name(name: str) -> Preset:
    """Look up a preset by its CLI name (``h264-standard`` ...)."""
    return Preset(name.strip().lower())
