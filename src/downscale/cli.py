"""
Command-line interface for downscale.

This is the main entry point for the application.
"""

import argparse
import shutil
import sys
import threading
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from downscale import __author__, __license__, __version__
from downscale.batch import BatchOrchestrator
from downscale.config import (
    TOML_AVAILABLE,
    Config,
    apply_config_to_args,
    get_app_dirs,
    load_config_file,
    save_default_config,
)
from downscale.logsink import LogSink
from downscale.notifications import ChimePlayer, check_notification_support, find_chime_file
from downscale.presets import Preset, preset_from_name
from downscale.ui import RICH_AVAILABLE, make_ui

# Global app directories (initialized in main)
APP_DIRS: Dict[str, Path] = {}


# -------------------- ARGUMENT PARSING --------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="downscale",
        description="Batch re-encode videos to H.264/H.265 MP4 with the long edge bounded to 1920 pixels.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s /videos/a.mov /videos/b.mp4          # Interactive: pick output dir and preset
  %(prog)s -p h265-high -o /archive -y /v/*.mov # No prompts
  %(prog)s --dryrun /videos/a.mov               # Log ffmpeg commands without running them
  %(prog)s --show-dirs                          # Show config/log directories
        """,
    )

    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}\nAuthor: {__author__}\nLicense: {__license__}",
    )

    parser.add_argument("files", nargs="*", metavar="FILE", help="Absolute paths of the videos to convert")

    # Batch settings
    batch_group = parser.add_argument_group("Batch settings")
    batch_group.add_argument("-o", "--output-dir", default=None, help="Absolute output directory (skips the prompt)")
    batch_group.add_argument(
        "-p",
        "--preset",
        choices=[p.value for p in Preset],
        default=None,
        help="Quality preset (skips the prompt)",
    )
    batch_group.add_argument("-y", "--yes", action="store_true", help="Start without asking for confirmation")
    batch_group.add_argument("--overwrite", action="store_true", help="Overwrite existing output files")

    # Engine
    engine_group = parser.add_argument_group("Engine")
    engine_group.add_argument("--ffmpeg", default="ffmpeg", metavar="PATH", help="ffmpeg executable")
    engine_group.add_argument("--ffprobe", default="ffprobe", metavar="PATH", help="ffprobe executable")

    # Debug/test
    debug_group = parser.add_argument_group("Debug/test")
    debug_group.add_argument("-d", "--debug", action="store_true", help="Enable debug output")
    debug_group.add_argument("-n", "--dryrun", action="store_true", help="Log commands without running ffmpeg")

    # UI, chime, notifications
    ui_group = parser.add_argument_group("UI settings")
    ui_group.add_argument("--no-progress", action="store_false", dest="progress")
    ui_group.add_argument("--no-chime", action="store_false", dest="chime", help="Do not play a sound per file")
    ui_group.add_argument("--chime", dest="chime_file", default=None, metavar="WAV", help="WAV file to play")
    ui_group.add_argument("--no-notify", action="store_false", dest="notify", help="Disable desktop notification")

    # Logging
    log_group = parser.add_argument_group("Logging")
    log_group.add_argument("--log-file", default=None, metavar="PATH", help="Session log file")

    # Utility commands
    util_group = parser.add_argument_group("Utility commands")
    util_group.add_argument("--show-dirs", action="store_true")
    util_group.add_argument("--check-requirements", action="store_true")

    return parser


def parse_args(args: Optional[List[str]] = None) -> Tuple[Config, argparse.Namespace]:
    """Parse command-line arguments and return config + the raw namespace."""
    parsed = build_parser().parse_args(args)

    cfg = Config(
        ffmpeg=parsed.ffmpeg,
        ffprobe=parsed.ffprobe,
        overwrite=parsed.overwrite,
        debug=parsed.debug,
        dryrun=parsed.dryrun,
        progress=parsed.progress,
        chime=parsed.chime,
        chime_file=parsed.chime_file,
        notify=parsed.notify,
        session_log=parsed.log_file,
    )
    return cfg, parsed


# -------------------- HELPERS --------------------


def session_log_path(cfg: Config) -> Path:
    """Session log location: configured path, else the XDG logs directory."""
    if cfg.session_log:
        return Path(cfg.session_log).expanduser()
    logs_dir = APP_DIRS.get("logs", Path.home() / ".local" / "state" / "downscale" / "logs")
    return logs_dir / "downscale.log"


def make_chime(cfg: Config) -> Optional[ChimePlayer]:
    """ChimePlayer for the configured WAV, or the first one found in the config dir."""
    if not cfg.chime:
        return None
    if cfg.chime_file:
        path: Optional[Path] = Path(cfg.chime_file).expanduser()
    else:
        search = [APP_DIRS["config"]] if "config" in APP_DIRS else []
        path = find_chime_file(search)
    if path is None:
        return None
    return ChimePlayer(path)


def check_requirements(cfg: Config) -> int:
    """Print availability of external tools and optional packages."""
    print(f"downscale v{__version__}")
    print()
    ok = True
    for name in (cfg.ffmpeg, cfg.ffprobe):
        found = shutil.which(name)
        ok = ok and found is not None
        print(f"  {'✓' if found else '✗'} {name}: {found or 'NOT FOUND'}")
    print(f"  {'✓' if RICH_AVAILABLE else '○'} rich: {'installed' if RICH_AVAILABLE else 'NOT INSTALLED'}")
    print(f"  {'✓' if TOML_AVAILABLE else '○'} TOML config: {'available' if TOML_AVAILABLE else 'INI only'}")
    support = check_notification_support()
    print(f"  {'✓' if support['audio_player'] else '○'} audio player: {'found' if support['audio_player'] else 'none'}")
    print(f"  {'✓' if support['any'] else '○'} desktop notifications: {'available' if support['any'] else 'none'}")
    return 0 if ok else 1


def show_dirs(cfg: Config) -> int:
    for key, path in APP_DIRS.items():
        print(f"{key:8s} {path}")
    print(f"{'session':8s} {session_log_path(cfg)}")
    return 0


# -------------------- MAIN --------------------


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    global APP_DIRS

    cfg, args = parse_args(argv)

    APP_DIRS = get_app_dirs()
    save_default_config(APP_DIRS["config"])
    file_config = load_config_file(APP_DIRS["config"])
    if file_config:
        apply_config_to_args(file_config, cfg)
    cfg.apply_script_mode()

    from downscale.config import CFG as global_cfg

    global_cfg.__dict__.update(cfg.__dict__)

    if args.show_dirs:
        return show_dirs(cfg)
    if args.check_requirements:
        return check_requirements(cfg)

    ui = make_ui(cfg.progress)

    log_path = session_log_path(cfg)
    try:
        session_log = LogSink(log_path)
    except OSError as e:
        ui.error(f"ERROR: Cannot open session log {log_path}: {e}")
        return 1

    if cfg.debug:
        ui.log(f"Session log: {log_path}")
    session_log.log(f"downscale v{__version__} started")

    chime = make_chime(cfg)
    if chime is not None and not chime.path.is_file():
        ui.warning(f"Chime file not found: {chime.path}")

    orchestrator = BatchOrchestrator(
        ui=ui,
        session_log=session_log,
        cfg=cfg,
        chime=chime,
        cancel_event=threading.Event(),
        output_dir=args.output_dir,
        preset=preset_from_name(args.preset) if args.preset else None,
        assume_yes=args.yes,
    )

    try:
        result = orchestrator.run(args.files)
    except KeyboardInterrupt:
        ui.endline()
        ui.warning("Interrupted")
        return 130

    return result.exit_code


if __name__ == "__main__":
    sys.exit(main())
