"""Tests for environment-driven configuration.

WHY: Deployments retune the detection and alignment heuristics through
environment variables. A typo in one must fail loudly with the variable
name rather than silently fall back to a default.

HOW: monkeypatch sets and clears variables around the private readers;
the load_*() helpers are checked against the module constants.
"""

import pytest

from narration_aligner import config
from narration_aligner.core.ir import AlignmentSettings, PCMSplitConfig


class TestEnvReaders:
    """_env_int / _env_float read, default, and reject bad values."""

    def test_int_default_when_unset(self, monkeypatch):
        monkeypatch.delenv("NARRATION_TEST_VALUE", raising=False)
        assert config._env_int("NARRATION_TEST_VALUE", 7) == 7

    def test_int_default_when_blank(self, monkeypatch):
        monkeypatch.setenv("NARRATION_TEST_VALUE", "   ")
        assert config._env_int("NARRATION_TEST_VALUE", 7) == 7

    def test_int_override(self, monkeypatch):
        monkeypatch.setenv("NARRATION_TEST_VALUE", "48000")
        assert config._env_int("NARRATION_TEST_VALUE", 7) == 48000

    def test_int_rejects_garbage(self, monkeypatch):
        monkeypatch.setenv("NARRATION_TEST_VALUE", "24k")
        with pytest.raises(ValueError, match="NARRATION_TEST_VALUE"):
            config._env_int("NARRATION_TEST_VALUE", 7)

    def test_float_override(self, monkeypatch):
        monkeypatch.setenv("NARRATION_TEST_VALUE", "-42.5")
        assert config._env_float("NARRATION_TEST_VALUE", 0.0) == pytest.approx(-42.5)

    def test_float_rejects_garbage(self, monkeypatch):
        monkeypatch.setenv("NARRATION_TEST_VALUE", "loud")
        with pytest.raises(ValueError, match="must be a number"):
            config._env_float("NARRATION_TEST_VALUE", 0.0)


class TestLoaders:
    """load_split_config / load_alignment_settings use the module defaults."""

    def test_split_config(self):
        result = config.load_split_config(expected_segments=4)

        assert isinstance(result, PCMSplitConfig)
        assert result.sample_rate == config.DEFAULT_SAMPLE_RATE
        assert result.channels == config.DEFAULT_CHANNELS
        assert result.bytes_per_sample == config.DEFAULT_BYTES_PER_SAMPLE
        assert result.noise_floor_db == config.DEFAULT_NOISE_DB
        assert result.min_silence_s == config.DEFAULT_MIN_SILENCE_S
        assert result.expected_segments == 4

    def test_alignment_settings(self):
        result = config.load_alignment_settings()

        assert isinstance(result, AlignmentSettings)
        assert result.min_cut_gap_s == config.DEFAULT_MIN_CUT_GAP_S
        assert result.lookahead_words == config.DEFAULT_LOOKAHEAD_WORDS
        assert result.max_divergence == config.DEFAULT_MAX_DIVERGENCE


class TestSplitConfigValidation:
    """PCMSplitConfig rejects impossible layouts."""

    @pytest.mark.parametrize("field", ["sample_rate", "channels", "bytes_per_sample"])
    def test_rejects_non_positive(self, field):
        with pytest.raises(ValueError, match=field):
            PCMSplitConfig(**{field: 0})

    def test_rejects_negative_min_silence(self):
        with pytest.raises(ValueError):
            PCMSplitConfig(min_silence_s=-0.1)

    def test_derived_sizes(self):
        layout = PCMSplitConfig(sample_rate=48000, channels=2, bytes_per_sample=3)
        assert layout.block_align == 6
        assert layout.bytes_per_second == 288000
