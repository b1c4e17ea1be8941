"""
Chime and desktop notification support for downscale.

The chime is a WAV file played after each converted file through whatever
command-line player the system has (paplay, aplay or afplay). Desktop
notifications use notify-send (libnotify) with plyer as fallback.
"""

import shutil
import subprocess
from pathlib import Path
from typing import Iterable, List, Literal, Optional


# -------------------- CHIME --------------------

# Players tried in order; the WAV path is appended.
_PLAYER_COMMANDS: List[List[str]] = [
    ["paplay"],
    ["aplay", "-q"],
    ["afplay"],
]


def find_player() -> Optional[List[str]]:
    """Return the first available audio player command, or None."""
    for cmd in _PLAYER_COMMANDS:
        if shutil.which(cmd[0]) is not None:
            return list(cmd)
    return None


def find_chime_file(search_dirs: Iterable[Path]) -> Optional[Path]:
    """Return the first ``*.wav`` file (sorted by name) found in the given directories."""
    for d in search_dirs:
        if not d.is_dir():
            continue
        wavs = sorted(p for p in d.iterdir() if p.is_file() and p.suffix.lower() == ".wav")
        if wavs:
            return wavs[0]
    return None


class ChimePlayer:
    """
    Plays a WAV file asynchronously.

    Each play() restarts the sound from the beginning. close() stops any
    playback still running. Use as a context manager to guarantee that.
    """

    def __init__(self, path: Path, player: Optional[List[str]] = None):
        self.path = path
        self.player = player if player is not None else find_player()
        self._proc: Optional[subprocess.Popen] = None

    @property
    def available(self) -> bool:
        return self.player is not None and self.path.is_file()

    def play(self) -> bool:
        """Start playback. Returns False if there is no player or it failed to start."""
        if not self.available:
            return False
        self.stop()
        assert self.player is not None
        try:
            self._proc = subprocess.Popen(
                self.player + [str(self.path)],
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError:
            self._proc = None
            return False
        return True

    def stop(self) -> None:
        """Stop playback if it is still running."""
        proc, self._proc = self._proc, None
        if proc is None:
            return
        if proc.poll() is None:
            proc.terminate()
            try:
                proc.wait(timeout=2)
            except subprocess.TimeoutExpired:
                proc.kill()
                proc.wait()

    def close(self) -> None:
        self.stop()

    def __enter__(self) -> "ChimePlayer":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


# -------------------- DESKTOP NOTIFICATIONS --------------------


def _has_notify_send() -> bool:
    """Check if notify-send is available."""
    return shutil.which("notify-send") is not None


def _has_plyer() -> bool:
    """Check if plyer is available."""
    try:
        from plyer import notification  # noqa: F401

        return True
    except ImportError:
        return False


NOTIFY_SEND_AVAILABLE = _has_notify_send()
PLYER_AVAILABLE = _has_plyer()


def send_notification(
    title: str,
    message: str,
    urgency: Literal["low", "normal", "critical"] = "normal",
    icon: str = "video-x-generic",
    timeout: int = 10,
) -> bool:
    """
    Send a desktop notification.

    Tries notify-send first (Linux standard), then falls back to plyer
    if available.

    Args:
        title: Notification title.
        message: Notification body text.
        urgency: Urgency level - "low", "normal", or "critical".
        icon: Icon name (XDG icon spec) or path.
        timeout: Notification timeout in seconds.

    Returns:
        True if notification was sent successfully, False otherwise.
    """
    if NOTIFY_SEND_AVAILABLE:
        try:
            cmd = [
                "notify-send",
                "--urgency",
                urgency,
                "--app-name",
                "downscale",
                "--icon",
                icon,
                "--expire-time",
                str(timeout * 1000),
                title,
                message,
            ]
            subprocess.run(cmd, check=True, capture_output=True, timeout=5)
            return True
        except (subprocess.CalledProcessError, subprocess.TimeoutExpired, OSError):
            pass

    if PLYER_AVAILABLE:
        try:
            from plyer import notification

            notification.notify(
                title=title,
                message=message,
                app_name="downscale",
                app_icon=icon if icon.startswith("/") else None,
                timeout=timeout,
            )
            return True
        except Exception:  # plyer backends raise arbitrary platform errors
            pass

    return False


def notify_batch_done(converted: int, failed: int, total_time: str) -> bool:
    """
    Send the end-of-batch notification.

    Args:
        converted: Number of files converted.
        failed: Number of files that failed.
        total_time: Total processing time as formatted string.

    Returns:
        True if notification sent successfully.
    """
    if failed == 0:
        title = "downscale - Conversion Complete"
        noun = "file" if converted == 1 else "files"
        message = f"Converted {converted} {noun} in {total_time}"
        return send_notification(title, message, urgency="normal", icon="dialog-information")

    title = "downscale - Conversion Finished With Errors"
    message = f"{converted} converted, {failed} failed ({total_time})"
    return send_notification(title, message, urgency="critical", icon="dialog-warning")


def check_notification_support() -> dict:
    """
    Check available notification methods.

    Returns:
        Dict with 'notify_send', 'plyer', 'any' and 'audio_player' keys.
    """
    return {
        "notify_send": NOTIFY_SEND_AVAILABLE,
        "plyer": PLYER_AVAILABLE,
        "any": NOTIFY_SEND_AVAILABLE or PLYER_AVAILABLE,
        "audio_player": find_player() is not None,
    }
