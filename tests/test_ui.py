"""Tests for UI modules."""

import io

import pytest


class TestLegacyHelpers:
    """Tests for legacy UI helpers."""

    def test_fmt_hms(self):
        """Test fmt_hms time formatting."""
        from downscale.ui.legacy_ui import fmt_hms

        assert fmt_hms(0) == "00:00:00"
        assert fmt_hms(59) == "00:00:59"
        assert fmt_hms(60) == "00:01:00"
        assert fmt_hms(3661) == "01:01:01"
        assert fmt_hms(-5) == "00:00:00"  # Negative should be 0

    def test_shorten(self):
        """Test shorten string truncation."""
        from downscale.ui.legacy_ui import shorten

        assert shorten("short", 10) == "short"
        assert shorten("verylongstring", 10) == "verylon..."  # 7 chars + ...
        assert shorten("abc", 3) == "abc"
        assert shorten("abcdef", 0) == ""

    def test_mkbar(self):
        """Test mkbar progress bar generation."""
        from downscale.ui.legacy_ui import mkbar

        assert mkbar(0, 10) == "-" * 10
        assert mkbar(100, 10) == "#" * 10
        assert mkbar(50, 10) == "#" * 5 + "-" * 5
        assert mkbar(150, 10) == "#" * 10

    def test_term_width(self):
        """Test term_width returns reasonable value."""
        from downscale.ui.legacy_ui import term_width

        width = term_width()
        assert isinstance(width, int)
        assert width > 0


class _TTY(io.StringIO):
    def isatty(self):
        return True


class TestLegacyUI:
    """Tests for the plain-text console."""

    def test_non_tty_has_no_color_or_progress(self):
        from downscale.ui import LegacyUI, Severity

        stream = io.StringIO()
        ui = LegacyUI(progress=True, stream=stream)
        assert ui.enabled is False
        assert ui.color is False

        ui.message(Severity.ERROR, "ERROR: broken")
        ui.progress(50.0, "clip.mov")
        assert stream.getvalue() == "ERROR: broken\n"

    def test_tty_colors_by_severity(self, monkeypatch):
        from downscale.ui import LegacyUI

        monkeypatch.delenv("NO_COLOR", raising=False)
        stream = _TTY()
        ui = LegacyUI(stream=stream)
        ui.info("a")
        ui.warning("b")
        ui.error("c")

        out = stream.getvalue()
        assert "\033[36ma\033[0m" in out
        assert "\033[33mb\033[0m" in out
        assert "\033[31mc\033[0m" in out

    def test_no_color_env(self, monkeypatch):
        from downscale.ui import LegacyUI

        monkeypatch.setenv("NO_COLOR", "1")
        stream = _TTY()
        LegacyUI(stream=stream).error("plain")
        assert stream.getvalue() == "plain\n"

    def test_progress_line_rewritten_and_cleared(self, monkeypatch):
        from downscale.ui import LegacyUI

        monkeypatch.setenv("NO_COLOR", "1")
        stream = _TTY()
        ui = LegacyUI(progress=True, bar_width=10, stream=stream)

        ui.progress(50.0, "clip.mov")
        ui.progress(50.0, "clip.mov")
        assert stream.getvalue().count("\r") == 1
        assert "[#####-----]  50.0% clip.mov" in stream.getvalue()

        ui.log("done")
        assert stream.getvalue().endswith("\rdone\n")

    def test_print_summary(self):
        from downscale.ui import LegacyUI

        stream = io.StringIO()
        LegacyUI(stream=stream).print_summary(3, 1, 3725)
        out = stream.getvalue()
        assert "Converted: 3" in out
        assert "Failed: 1" in out
        assert "01:02:05" in out

    def test_ask(self, monkeypatch):
        from downscale.ui import LegacyUI

        monkeypatch.setattr("builtins.input", lambda prompt: "2")
        assert LegacyUI(stream=io.StringIO()).ask("Select preset [1-4]: ") == "2"


class TestSimpleRichUI:
    """Tests for the rich console."""

    @pytest.fixture
    def console_ui(self):
        pytest.importorskip("rich")
        from rich.console import Console

        from downscale.ui.simple_rich import SimpleRichUI

        console = Console(file=io.StringIO(), force_terminal=False, width=120)
        return SimpleRichUI(progress_enabled=False, console=console)

    def test_rich_available(self):
        from downscale.ui import RICH_AVAILABLE

        try:
            import rich  # noqa: F401

            assert RICH_AVAILABLE is True
        except ImportError:
            assert RICH_AVAILABLE is False

    def test_messages(self, console_ui):
        console_ui.info("Converted a.mov")
        console_ui.error("ERROR: [bad] file")

        out = console_ui.console.file.getvalue()
        assert "Converted a.mov" in out
        # markup in file names is printed literally
        assert "ERROR: [bad] file" in out

    def test_progress_disabled_is_noop(self, console_ui):
        console_ui.progress(42.0, "a.mov")
        console_ui.endline()
        assert console_ui._progress is None

    def test_print_summary(self, console_ui):
        console_ui.print_summary(2, 0, 61)
        out = console_ui.console.file.getvalue()
        assert "Summary" in out
        assert "00:01:01" in out

    def test_make_ui(self):
        from downscale.ui import RICH_AVAILABLE, LegacyUI, make_ui

        ui = make_ui(progress_enabled=False)
        if RICH_AVAILABLE:
            from downscale.ui.simple_rich import SimpleRichUI

            assert isinstance(ui, SimpleRichUI)
        else:
            assert isinstance(ui, LegacyUI)
