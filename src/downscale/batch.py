"""
Batch orchestration for downscale.

Runs the whole session for a list of input paths:

    collect inputs -> validate -> report and classify -> resolve output dir
    -> select preset -> confirm start -> convert loop -> done

A single file that is not a usable video stops the batch before anything is
converted. Once conversions start, a failing file is reported and the loop
moves on to the next one.
"""

import datetime
import threading
import time
import traceback
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple, Union

from downscale.config import CFG, Config, default_output_root
from downscale.converter import convert_file
from downscale.errors import ConfigurationError, DownscaleError
from downscale.logsink import LogSink
from downscale.notifications import ChimePlayer, notify_batch_done
from downscale.presets import Preset, all_presets, describe, preset_from_choice
from downscale.probe import MediaFile, ProbeOutcome, probe_all
from downscale.ui import Severity, fmt_hms

USAGE = "Usage: downscale <video file paths>"


class BatchStatus(Enum):
    """How a run ended."""

    USAGE = "usage"
    ABORTED = "aborted"
    CANCELLED = "cancelled"
    INTERRUPTED = "interrupted"
    COMPLETED = "completed"


@dataclass
class BatchResult:
    """Summary of a run."""

    status: BatchStatus
    converted: List[Path] = field(default_factory=list)
    failed: List[Tuple[Path, str]] = field(default_factory=list)
    invalid: List[Path] = field(default_factory=list)
    output_dir: Optional[Path] = None
    preset: Optional[Preset] = None
    elapsed: float = 0.0

    @property
    def exit_code(self) -> int:
        if self.status == BatchStatus.ABORTED:
            return 1
        if self.status == BatchStatus.INTERRUPTED:
            return 130
        if self.failed:
            return 2
        return 0


def format_duration(duration_ms: Optional[int]) -> str:
    """``HH:MM:SS`` for a duration in milliseconds, ``--:--:--`` if unknown."""
    if duration_ms is None:
        return "--:--:--"
    return fmt_hms(duration_ms / 1000.0)


def default_output_dir(root: Path, now: Optional[datetime.datetime] = None) -> Path:
    """``<root>/downscale-YYYYMMDDTHHMMSSZ`` using the current UTC time."""
    if now is None:
        now = datetime.datetime.now(datetime.timezone.utc)
    return root / f"downscale-{now.astimezone(datetime.timezone.utc):%Y%m%dT%H%M%SZ}"


class BatchOrchestrator:
    """
    Drives one batch run.

    The session log and the chime player are owned by the orchestrator and
    closed when run() returns, whatever happened.

    Args:
        ui: SimpleRichUI or LegacyUI.
        session_log: Session-wide log sink.
        cfg: Config instance (uses global CFG if not provided).
        chime: Optional chime played after each converted file.
        cancel_event: Shared cancellation flag, checked before each file.
        ask: Reads one answer from the user (defaults to ``ui.ask``).
        output_dir: Preselected output directory; skips the prompt.
        preset: Preselected preset; skips the prompt.
        assume_yes: Skip the start confirmation.
        probe_fn: Batch probe function, for substitution in tests.
        convert_fn: Per-file conversion function, for substitution in tests.
        notify_fn: End-of-batch desktop notification.
    """

    def __init__(
        self,
        ui,
        session_log: LogSink,
        cfg: Optional[Config] = None,
        chime: Optional[ChimePlayer] = None,
        cancel_event: Optional[threading.Event] = None,
        ask: Optional[Callable[[str], str]] = None,
        output_dir: Optional[Union[str, Path]] = None,
        preset: Optional[Preset] = None,
        assume_yes: bool = False,
        probe_fn: Callable[..., List[ProbeOutcome]] = probe_all,
        convert_fn: Callable = convert_file,
        notify_fn: Callable[[int, int, str], bool] = notify_batch_done,
    ):
        self.ui = ui
        self.session_log = session_log
        self.cfg = cfg if cfg is not None else CFG
        self.chime = chime
        self.cancel_event = cancel_event if cancel_event is not None else threading.Event()
        self.ask = ask if ask is not None else ui.ask
        self.requested_output_dir = output_dir
        self.requested_preset = preset
        self.assume_yes = assume_yes
        self.probe_fn = probe_fn
        self.convert_fn = convert_fn
        self.notify_fn = notify_fn

    # -------------------- REPORTING --------------------

    def report(self, severity: Severity, msg: str) -> None:
        """Write to the session log, then show the message."""
        self.session_log.log(msg)
        self.ui.message(severity, msg)

    def _ask(self, prompt: str) -> Optional[str]:
        """Ask the user; None when stdin is closed."""
        try:
            return self.ask(prompt)
        except EOFError:
            return None

    # -------------------- STATES --------------------

    def validate(self, paths: Sequence[Union[str, Path]]) -> Tuple[List[MediaFile], List[ProbeOutcome]]:
        """Probe all inputs; return (valid media, invalid outcomes), both in report order."""
        outcomes = self.probe_fn(paths, self.cfg)
        valid = [o.media for o in outcomes if o.is_video and o.media is not None]
        invalid = [o for o in outcomes if not o.is_video]
        return valid, invalid

    def report_invalid(self, invalid: List[ProbeOutcome]) -> None:
        for o in invalid:
            if o.error is not None:
                self.report(Severity.ERROR, f"ERROR: {o.error}")
            else:
                self.report(Severity.ERROR, f"ERROR: Not a video file: {o.path.name}")

    def report_inputs(self, valid: List[MediaFile]) -> None:
        self.ui.log("Input video files:")
        for media in valid:
            dur = format_duration(media.duration_ms)
            self.session_log.log(f"Input video file: {media.name} ({dur})")
            if self.cfg.debug and media.metadata is not None:
                m = media.metadata
                self.ui.log(f"    {media.name} ({dur}) {m.width}x{m.height} {m.pix_fmt}")
            else:
                self.ui.log(f"    {media.name} ({dur})")

    def resolve_output_dir(self) -> Path:
        """
        Decide the output directory and create it.

        Raises:
            ConfigurationError: If the answer is not an absolute path or the
                directory cannot be created.
        """
        if self.requested_output_dir is not None:
            answer: Optional[str] = str(self.requested_output_dir)
        else:
            root = Path(self.cfg.output_root).expanduser() if self.cfg.output_root else default_output_root()
            default = default_output_dir(root)
            self.ui.log(f"Default output directory: {default}")
            answer = self._ask("Enter output directory or just press Enter for default: ")
            if answer is None or not answer.strip():
                answer = str(default)

        out = Path(answer.strip()).expanduser()
        if not out.is_absolute():
            raise ConfigurationError(f"Output path must be fully qualified: {answer.strip()!r}")

        try:
            out.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigurationError(f"Cannot create output directory {out}: {e}") from e

        self.session_log.log(f"Output directory: {out}")
        return out

    def select_preset(self) -> Preset:
        """
        Ask for a preset until a valid one is given.

        Raises:
            ConfigurationError: If stdin closes before a valid answer.
        """
        if self.requested_preset is not None:
            preset = self.requested_preset
        else:
            presets = all_presets()
            self.ui.log("Presets:")
            for idx, p in enumerate(presets, start=1):
                self.ui.log(f"  {idx}) {describe(p)}")
            while True:
                answer = self._ask(f"Select preset [1-{len(presets)}]: ")
                if answer is None:
                    raise ConfigurationError("No preset selected")
                choice = preset_from_choice(answer)
                if choice is not None:
                    preset = choice
                    break
                self.ui.error(f"Invalid choice: {answer.strip()!r}")

        self.session_log.log(f"Preset: {preset.value} ({describe(preset)})")
        return preset

    def confirm_start(self) -> bool:
        """Wait for the go-ahead. Returns False if the user quits."""
        if self.assume_yes:
            return True

        chime_ok = self.chime is not None and self.chime.available
        if chime_ok:
            assert self.chime is not None
            self.ui.log(f"Audio file: {self.chime.path.name}")
            prompt = "Press Enter to start conversion, 't' to test the chime, 'q' to quit: "
        else:
            prompt = "Press Enter to start conversion or 'q' to quit: "

        while True:
            answer = self._ask(prompt)
            if answer is None:
                return False
            answer = answer.strip().lower()
            if not answer:
                return True
            if answer == "q":
                return False
            if answer == "t" and chime_ok:
                assert self.chime is not None
                self.chime.play()

    def convert_all(self, valid: List[MediaFile], output_dir: Path, preset: Preset, result: BatchResult) -> None:
        """Convert files one at a time, continuing past failures."""
        for media in valid:
            if self.cancel_event.is_set():
                result.status = BatchStatus.INTERRUPTED
                break

            self.ui.log(f"Converting {media.name}...")
            try:
                outcome = self.convert_fn(
                    media,
                    output_dir,
                    preset,
                    self.session_log,
                    self.cancel_event,
                    self.cfg,
                    on_progress=lambda pct, name=media.name: self.ui.progress(pct, name),
                )
            except KeyboardInterrupt:
                self.ui.endline()
                self.cancel_event.set()
                self.report(Severity.WARNING, f"Interrupted while converting {media.name}")
                result.status = BatchStatus.INTERRUPTED
                break
            except DownscaleError as e:
                self.ui.endline()
                self.report(Severity.ERROR, f"ERROR converting {media.name}: {e}")
                result.failed.append((media.path, str(e)))
                continue
            except Exception as e:  # one broken file must not stop the batch
                self.ui.endline()
                self.session_log.log(traceback.format_exc())
                self.report(Severity.ERROR, f"ERROR converting {media.name}: {type(e).__name__}: {e}")
                result.failed.append((media.path, str(e)))
                continue

            self.ui.endline()
            if outcome.cancelled:
                result.status = BatchStatus.INTERRUPTED
                break
            if outcome.dryrun:
                self.report(Severity.INFO, f"Dry run, not converted: {media.name}")
                continue

            self.report(Severity.INFO, f"Converted {media.name}")
            result.converted.append(media.path)
            if self.chime is not None:
                self.chime.play()

    # -------------------- RUN --------------------

    def run(self, paths: Sequence[Union[str, Path]]) -> BatchResult:
        """Run the batch. Never raises except for KeyboardInterrupt outside the convert loop."""
        start = time.time()
        result = BatchResult(status=BatchStatus.ABORTED)
        try:
            self._run(paths, result)
        except ConfigurationError as e:
            result.status = BatchStatus.ABORTED
            self.report(Severity.ERROR, f"ERROR: {e}")
        except Exception as e:  # top-level guard: log and exit non-zero
            result.status = BatchStatus.ABORTED
            self.session_log.log(traceback.format_exc())
            self.report(Severity.ERROR, f"ERROR: {type(e).__name__}: {e}")
        finally:
            result.elapsed = time.time() - start
            self.close()
        return result

    def _run(self, paths: Sequence[Union[str, Path]], result: BatchResult) -> None:
        if not paths:
            result.status = BatchStatus.USAGE
            self.ui.log(USAGE)
            return

        self.session_log.log(f"Session started with {len(paths)} input file(s)")

        valid, invalid = self.validate(paths)
        if invalid:
            result.invalid = [o.path for o in invalid]
            self.report_invalid(invalid)
            return

        self.report_inputs(valid)

        result.output_dir = self.resolve_output_dir()
        result.preset = self.select_preset()

        if not self.confirm_start():
            result.status = BatchStatus.CANCELLED
            self.report(Severity.WARNING, "Conversion cancelled")
            return

        self.ui.log("")
        result.status = BatchStatus.COMPLETED
        start = time.time()
        self.convert_all(valid, result.output_dir, result.preset, result)
        elapsed = time.time() - start

        self.session_log.log(
            f"Session finished: {len(result.converted)} converted, {len(result.failed)} failed in {fmt_hms(elapsed)}"
        )
        self.ui.print_summary(len(result.converted), len(result.failed), elapsed)
        if self.cfg.notify:
            self.notify_fn(len(result.converted), len(result.failed), fmt_hms(elapsed))

    def close(self) -> None:
        """Release the chime player and the session log."""
        try:
            if self.chime is not None:
                self.chime.close()
        finally:
            self.session_log.close()
