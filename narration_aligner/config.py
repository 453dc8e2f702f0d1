"""Configuration defaults, environment overrides, and .env loading.

WHY: The narration format (24 kHz mono s16le) and the detection and
alignment heuristics were tuned empirically and get retuned per voice.
Centralizing them keeps the numbers out of the algorithms and lets a
deployment override them without code changes.

HOW: python-dotenv loads the .env file on import. Each default is a
module-level constant read from the environment with a fallback. The
load_*() helpers assemble the frozen config dataclasses.

RULES:
- Every default can be overridden via an environment variable
- A malformed numeric value raises ValueError naming the variable
- Alignment heuristics: 80 ms cut gap, 4-word lookahead, 0.3 divergence
- Silence detection: -30 dB noise floor, 0.2 s minimum, 0.5 s snap distance
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

from narration_aligner.core.ir import AlignmentSettings, PCMSplitConfig

# Load .env from the project root (where the tool is run from)
load_dotenv()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError("{} must be an integer, got {!r}".format(name, raw)) from None


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError("{} must be a number, got {!r}".format(name, raw)) from None


# ---------------------------------------------------------------------------
# PCM layout of synthesized narration
# ---------------------------------------------------------------------------

DEFAULT_SAMPLE_RATE = _env_int("NARRATION_SAMPLE_RATE", 24000)
DEFAULT_CHANNELS = _env_int("NARRATION_CHANNELS", 1)
DEFAULT_BYTES_PER_SAMPLE = _env_int("NARRATION_BYTES_PER_SAMPLE", 2)

# ---------------------------------------------------------------------------
# Silence detection and snapping
# ---------------------------------------------------------------------------

DEFAULT_NOISE_DB = _env_float("NARRATION_NOISE_DB", -30.0)
DEFAULT_MIN_SILENCE_S = _env_float("NARRATION_MIN_SILENCE_S", 0.2)
DEFAULT_SNAP_DISTANCE_S = _env_float("NARRATION_SNAP_DISTANCE_S", 0.5)
DEFAULT_PADDING_MS = _env_int("NARRATION_PADDING_MS", 200)
FFMPEG_BINARY = os.getenv("FFMPEG_BINARY", "ffmpeg")

# ---------------------------------------------------------------------------
# Character aligner heuristics
# ---------------------------------------------------------------------------

DEFAULT_MIN_CUT_GAP_S = _env_float("NARRATION_MIN_CUT_GAP_S", 0.08)
DEFAULT_LOOKAHEAD_WORDS = _env_int("NARRATION_LOOKAHEAD_WORDS", 4)
DEFAULT_MAX_DIVERGENCE = _env_float("NARRATION_MAX_DIVERGENCE", 0.3)


def load_split_config(expected_segments: int = 0) -> PCMSplitConfig:
    """Build a PCMSplitConfig from the environment defaults.

    Args:
        expected_segments: Target segment count for script-less splitting.
    """
    return PCMSplitConfig(
        sample_rate=DEFAULT_SAMPLE_RATE,
        channels=DEFAULT_CHANNELS,
        bytes_per_sample=DEFAULT_BYTES_PER_SAMPLE,
        noise_floor_db=DEFAULT_NOISE_DB,
        min_silence_s=DEFAULT_MIN_SILENCE_S,
        expected_segments=expected_segments,
    )


def load_alignment_settings() -> AlignmentSettings:
    """Build AlignmentSettings from the environment defaults."""
    return AlignmentSettings(
        min_cut_gap_s=DEFAULT_MIN_CUT_GAP_S,
        lookahead_words=DEFAULT_LOOKAHEAD_WORDS,
        max_divergence=DEFAULT_MAX_DIVERGENCE,
    )
