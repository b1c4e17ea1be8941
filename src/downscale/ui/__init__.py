"""
User interface components for downscale.

Messages carry an explicit Severity; each UI owns its own color handling.
Provides both a Rich-based and a plain-text console.
"""

import importlib.util

from downscale.ui.legacy_ui import LegacyUI, fmt_hms
from downscale.ui.severity import Severity

# Check if Rich is available using importlib
RICH_AVAILABLE = importlib.util.find_spec("rich") is not None

__all__ = [
    "RICH_AVAILABLE",
    "LegacyUI",
    "Severity",
    "fmt_hms",
    "make_ui",
]

# Conditionally export Rich UI classes
if RICH_AVAILABLE:
    from downscale.ui.simple_rich import SimpleRichUI  # noqa: F401

    __all__.append("SimpleRichUI")


def make_ui(progress_enabled: bool = True):
    """Rich UI when available, else the plain one."""
    if RICH_AVAILABLE:
        return SimpleRichUI(progress_enabled)
    return LegacyUI(progress_enabled)
