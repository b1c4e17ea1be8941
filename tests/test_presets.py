"""
Tests for the preset catalog.
"""

import pytest


class TestPresetCatalog:
    """Tests for preset parameters."""

    @pytest.mark.parametrize(
        "name,codec,crf,bitrate",
        [
            ("H264_STANDARD", "libx264", 23, "128k"),
            ("H264_HIGH", "libx264", 18, "192k"),
            ("H265_STANDARD", "libx265", 28, "128k"),
            ("H265_HIGH", "libx265", 23, "192k"),
        ],
    )
    def test_parameters(self, name, codec, crf, bitrate):
        """Each preset maps to a fixed codec, CRF and audio bitrate."""
        from downscale.presets import Preset, parameters

        p = parameters(Preset[name])
        assert p.codec == codec
        assert p.crf == crf
        assert p.audio_bitrate == bitrate

    def test_parameters_unknown(self):
        """Anything outside the catalog is rejected."""
        from downscale.presets import parameters

        with pytest.raises(KeyError):
            parameters("h264-standard")

    def test_crf_scales_differ_between_codecs(self):
        """The same CRF does not mean the same quality on both codecs."""
        from downscale.presets import Preset, parameters

        assert parameters(Preset.H264_HIGH).crf < parameters(Preset.H264_STANDARD).crf
        assert parameters(Preset.H265_HIGH).crf < parameters(Preset.H265_STANDARD).crf
        assert parameters(Preset.H265_HIGH).crf == parameters(Preset.H264_STANDARD).crf

    def test_all_presets_menu_order(self):
        """Menu order is H.264 first, standard before high."""
        from downscale.presets import Preset, all_presets

        assert all_presets() == [
            Preset.H264_STANDARD,
            Preset.H264_HIGH,
            Preset.H265_STANDARD,
            Preset.H265_HIGH,
        ]

    def test_describe(self):
        """Menu labels include the encoder settings."""
        from downscale.presets import Preset, describe

        label = describe(Preset.H265_STANDARD)
        assert "libx265" in label
        assert "CRF 28" in label
        assert "128k" in label


class TestPresetLookup:
    """Tests for turning user input into presets."""

    def test_preset_from_choice_valid(self):
        from downscale.presets import Preset, preset_from_choice

        assert preset_from_choice("1") == Preset.H264_STANDARD
        assert preset_from_choice(" 4 \n") == Preset.H265_HIGH

    @pytest.mark.parametrize("answer", ["", "0", "5", "-1", "x", "1.5"])
    def test_preset_from_choice_invalid(self, answer):
        from downscale.presets import preset_from_choice

        assert preset_from_choice(answer) is None

    def test_preset_from_name(self):
        from downscale.presets import Preset, preset_from_name

        assert preset_from_name("h265-high") == Preset.H265_HIGH
        assert preset_from_name("H264-Standard") == Preset.H264_STANDARD

        with pytest.raises(ValueError):
            preset_from_name("vp9")
