"""
Configuration management for downscale.

Handles:
- XDG Base Directory compliance
- TOML/INI configuration file loading
- Config dataclass with all options
- Configuration merging (system -> user -> CLI)
- Automatic script mode detection
"""

import configparser
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

# -------------------- SCRIPT MODE DETECTION --------------------


def is_script_mode() -> bool:
    """
    Detect if running without an interactive terminal.

    Returns True if:
    - stdout is not a TTY (piped or redirected)
    - NO_COLOR environment variable is set
    - DOWNSCALE_SCRIPT_MODE environment variable is set

    Returns:
        True if running in script mode, False otherwise.
    """
    try:
        if not sys.stdout.isatty():
            return True
    except (AttributeError, ValueError):
        return True

    if os.getenv("NO_COLOR") or os.getenv("DOWNSCALE_SCRIPT_MODE"):
        return True

    return False


# Try TOML support (Python 3.11+ or tomli package)
try:
    import tomllib  # Python 3.11+

    TOML_AVAILABLE = True
except ImportError:
    try:
        import tomli as tomllib  # pip install tomli

        TOML_AVAILABLE = True
    except ImportError:
        TOML_AVAILABLE = False


# -------------------- XDG DIRECTORIES --------------------


def get_xdg_config_home() -> Path:
    """Get XDG config home directory."""
    return Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))


def get_xdg_state_home() -> Path:
    """Get XDG state home directory."""
    return Path(os.environ.get("XDG_STATE_HOME", Path.home() / ".local" / "state"))


def get_app_dirs() -> Dict[str, Path]:
    """Return all application directories, creating them if needed."""
    dirs = {
        "config": get_xdg_config_home() / "downscale",
        "state": get_xdg_state_home() / "downscale",
        "logs": get_xdg_state_home() / "downscale" / "logs",
    }
    for d in dirs.values():
        d.mkdir(parents=True, exist_ok=True)
    return dirs


def default_output_root() -> Path:
    """The Desktop folder if there is one, else the home directory."""
    desktop = Path.home() / "Desktop"
    return desktop if desktop.is_dir() else Path.home()


# -------------------- CONFIGURATION DATACLASS --------------------


@dataclass
class Config:
    """All configuration options for downscale."""

    # Engine
    ffmpeg: str = "ffmpeg"
    ffprobe: str = "ffprobe"

    # Output
    container: str = "mp4"
    max_edge: int = 1920
    encoder_speed: str = "slow"
    overwrite: bool = False
    output_root: Optional[str] = None

    # Debug/test
    debug: bool = False
    dryrun: bool = False

    # UI
    progress: bool = True

    # Chime and desktop notification
    chime: bool = True
    chime_file: Optional[str] = None
    notify: bool = True

    # Logging
    session_log: Optional[str] = None

    # Probing (0 = auto)
    probe_workers: int = 0

    def apply_script_mode(self) -> None:
        """
        Disable interactive niceties when output is not a terminal.

        Disables:
        - progress: No in-place progress line
        - notify: No desktop notifications
        """
        if is_script_mode():
            self.progress = False
            self.notify = False

    @classmethod
    def for_library(cls, **kwargs) -> "Config":
        """
        Create a Config instance for library usage.

        Progress, chime and notifications are off unless overridden.

        Example:
            >>> config = Config.for_library(max_edge=1280)
            >>> media = probe(Path("/videos/clip.mov"), config)
        """
        defaults: Dict[str, Any] = {
            "progress": False,
            "chime": False,
            "notify": False,
        }
        defaults.update(kwargs)
        return cls(**defaults)


# Global config instance (set by main in cli.py)
CFG = Config()


# -------------------- CONFIG FILE LOADING --------------------


def _parse_ini_value(value: str):
    """Parse INI value: bool, int, float or string."""
    v = value.strip()
    if not v:
        return ""
    if v.lower() in ("true", "yes", "on"):
        return True
    if v.lower() in ("false", "no", "off"):
        return False
    try:
        return int(v)
    except ValueError:
        pass
    try:
        return float(v)
    except ValueError:
        pass
    return v


def _load_ini_config(path: Path) -> Dict[str, Any]:
    """Load INI file and convert to nested dict."""
    cp = configparser.ConfigParser()
    cp.read(path, encoding="utf-8")
    result: Dict[str, Any] = {}
    for section in cp.sections():
        result[section] = {}
        for key, value in cp.items(section):
            result[section][key] = _parse_ini_value(value)
    return result


def _load_single_config(config_dir: Path) -> Dict[str, Any]:
    """Load config from a single directory (TOML or INI file)."""
    toml_path = config_dir / "config.toml"
    ini_path = config_dir / "config.ini"

    if TOML_AVAILABLE and toml_path.exists():
        try:
            with toml_path.open("rb") as f:
                return dict(tomllib.load(f))
        except (OSError, tomllib.TOMLDecodeError) as e:
            print(f"Warning: Failed to load {toml_path}: {e}", file=sys.stderr)
            return {}
    elif ini_path.exists():
        try:
            return _load_ini_config(ini_path)
        except (OSError, configparser.Error) as e:
            print(f"Warning: Failed to load {ini_path}: {e}", file=sys.stderr)
            return {}
    return {}


def _deep_merge_dicts(base: dict, override: dict) -> dict:
    """Deep merge two dicts, with override taking precedence."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge_dicts(result[key], value)
        else:
            result[key] = value
    return result


def load_config_file(config_dir: Path, system_config_dir: Path = Path("/etc/downscale")) -> dict:
    """
    Load config with priority:
    1. User config: ~/.config/downscale/config.toml (highest priority)
    2. System config: /etc/downscale/config.toml (lowest priority, optional)
    """
    system_config: Dict[str, Any] = {}
    if system_config_dir.exists():
        system_config = _load_single_config(system_config_dir)

    user_config = _load_single_config(config_dir)

    if system_config and user_config:
        return _deep_merge_dicts(system_config, user_config)
    return user_config or system_config


def _get_default_config_toml() -> str:
    """Return default config as TOML string."""
    return """# downscale configuration file
# This file is auto-generated on first run

[engine]
ffmpeg = "ffmpeg"
ffprobe = "ffprobe"

[output]
container = "mp4"
max_edge = 1920
encoder_speed = "slow"
overwrite = false
# Parent folder of the default output directory (Desktop if not set)
# root = "/data/videos"

[probe]
# 0 = auto
workers = 0

[chime]
enabled = true
# WAV file played after each converted file (first *.wav in this folder if not set)
# file = "/home/me/sounds/done.wav"

[notifications]
enabled = true

[logging]
# Session log (default: ~/.local/state/downscale/logs/downscale.log)
# session_log = "/var/log/downscale.log"
"""


def _get_default_config_ini() -> str:
    """Return default config as INI string."""
    return """# downscale configuration file
# This file is auto-generated on first run

[engine]
ffmpeg = ffmpeg
ffprobe = ffprobe

[output]
container = mp4
max_edge = 1920
encoder_speed = slow
overwrite = false
# root = /data/videos

[probe]
workers = 0

[chime]
enabled = true
# file = /home/me/sounds/done.wav

[notifications]
enabled = true

[logging]
# session_log = /var/log/downscale.log
"""


def save_default_config(config_dir: Path) -> Path:
    """Create default config file (TOML if available, else INI). Returns path."""
    config_dir.mkdir(parents=True, exist_ok=True)

    if TOML_AVAILABLE:
        path = config_dir / "config.toml"
        if not path.exists():
            path.write_text(_get_default_config_toml(), encoding="utf-8")
        return path
    else:
        path = config_dir / "config.ini"
        if not path.exists():
            path.write_text(_get_default_config_ini(), encoding="utf-8")
        return path


# Map config file keys to Config attribute names
CONFIG_FILE_MAPPINGS = {
    ("engine", "ffmpeg"): "ffmpeg",
    ("engine", "ffprobe"): "ffprobe",
    ("output", "container"): "container",
    ("output", "max_edge"): "max_edge",
    ("output", "encoder_speed"): "encoder_speed",
    ("output", "overwrite"): "overwrite",
    ("output", "root"): "output_root",
    ("probe", "workers"): "probe_workers",
    ("chime", "enabled"): "chime",
    ("chime", "file"): "chime_file",
    ("notifications", "enabled"): "notify",
    ("logging", "session_log"): "session_log",
}


def apply_config_to_args(file_config: dict, cfg: Config) -> None:
    """
    Apply file config values to a Config instance.

    A value is only taken from the file when the CLI left the attribute at
    its default, so CLI arguments keep priority over the config file.
    """
    default_cfg = Config()

    for (section, key), attr_name in CONFIG_FILE_MAPPINGS.items():
        if section in file_config and key in file_config[section]:
            file_val = file_config[section][key]
            if getattr(cfg, attr_name) != getattr(default_cfg, attr_name):
                continue
            setattr(cfg, attr_name, file_val)
