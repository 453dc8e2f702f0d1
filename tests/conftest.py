"""Shared test fixtures for the narration_aligner test suite.

WHY: Several test modules need the same narration samples: the two-line
greeting with its STT words, synthetic PCM with a known pause, and a
silence detector that returns canned intervals. Centralizing them keeps
the expected timings in one place.

HOW: Module-level constants hold the word lists (times in seconds).
Fixtures hand out copies, build numpy-generated PCM, and expose a stub
detector class that records its calls.

RULES:
- PCM fixtures are 24 kHz mono s16le unless stated otherwise
- The tone/pause/tone sample has its pause exactly at 1.0s - 1.3s
- The stub detector never touches ffmpeg
"""

from typing import List, Optional

import numpy as np
import pytest

from narration_aligner.core.ir import PCMSplitConfig, SilenceInterval, WordTimestamp
from narration_aligner.detectors.base import BaseSilenceDetector

SAMPLE_RATE = 24000


# ---------------------------------------------------------------------------
# STT word samples
# ---------------------------------------------------------------------------

GREETING_LINES: List[str] = ["こんにちは世界", "今日は天気が良い"]

GREETING_WORDS: List[WordTimestamp] = [
    WordTimestamp("こんにちは", 0.0, 0.5),
    WordTimestamp("世界", 0.5, 1.0),
    WordTimestamp("今日", 1.2, 1.5),
    WordTimestamp("は", 1.5, 1.6),
    WordTimestamp("天気", 1.6, 1.9),
    WordTimestamp("が", 1.9, 2.0),
    WordTimestamp("良い", 2.0, 2.5),
]

SAKEGURA_LINES: List[str] = ["わかってきました", "さけぐらにいった"]

# "きました" is recognized as "きまし" + "た" with no gap in between.
SAKEGURA_WORDS: List[WordTimestamp] = [
    WordTimestamp("わかって", 0.0, 0.4),
    WordTimestamp("きまし", 0.4, 0.7),
    WordTimestamp("た", 0.7, 0.8),
    WordTimestamp("さけぐら", 1.1, 1.4),
    WordTimestamp("いた", 1.4, 1.7),
]


@pytest.fixture
def greeting_lines():
    return list(GREETING_LINES)


@pytest.fixture
def greeting_words():
    return list(GREETING_WORDS)


@pytest.fixture
def sakegura_lines():
    return list(SAKEGURA_LINES)


@pytest.fixture
def sakegura_words():
    return list(SAKEGURA_WORDS)


# ---------------------------------------------------------------------------
# PCM samples
# ---------------------------------------------------------------------------

def tone(duration_s: float, amplitude: float = 0.5, freq: float = 440.0) -> bytes:
    """Mono s16le sine tone at SAMPLE_RATE."""
    t = np.arange(int(round(SAMPLE_RATE * duration_s))) / float(SAMPLE_RATE)
    samples = amplitude * 32767 * np.sin(2 * np.pi * freq * t)
    return samples.astype("<i2").tobytes()


def pause(duration_s: float) -> bytes:
    """Mono s16le digital silence at SAMPLE_RATE."""
    return bytes(int(round(SAMPLE_RATE * duration_s)) * 2)


@pytest.fixture
def pcm_config():
    return PCMSplitConfig(sample_rate=SAMPLE_RATE, channels=1, bytes_per_sample=2)


@pytest.fixture
def narration_pcm():
    """2.3 seconds: 1.0s tone, 0.3s silence, 1.0s tone."""
    return tone(1.0) + pause(0.3) + tone(1.0)


@pytest.fixture
def make_tone():
    return tone


@pytest.fixture
def make_pause():
    return pause


# ---------------------------------------------------------------------------
# Stub detector
# ---------------------------------------------------------------------------

class StubDetector(BaseSilenceDetector):
    """Returns canned intervals (or raises) and records every call."""

    def __init__(
        self,
        intervals: Optional[List[SilenceInterval]] = None,
        error: Optional[Exception] = None,
    ) -> None:
        self.intervals = list(intervals or [])
        self.error = error
        self.calls: List[PCMSplitConfig] = []

    @property
    def name(self) -> str:
        return "stub"

    def detect(self, pcm, config):
        self.calls.append(config)
        if self.error is not None:
            raise self.error
        return list(self.intervals)


@pytest.fixture
def stub_detector():
    """Factory: ``stub_detector([SilenceInterval(...)], error=None)``."""
    return StubDetector
