"""Value types shared by the aligner, snapper, detectors, and PCM helpers.

WHY: Every stage of the pipeline passes the same few shapes around:
STT words, line boundaries, silence intervals, and the binary layout of
the PCM buffer. Keeping them in one module gives each stage a stable,
well-typed contract and keeps stage modules free of each other.

HOW: Plain dataclasses. Inputs produced outside the package (STT words,
detector output) are frozen so no stage can mutate a caller's data.
LineBoundary is frozen too; stages build new lists instead.

RULES:
- All times are float seconds (STT milliseconds are converted at the edge)
- SilenceInterval requires end_s > start_s
- PCMSplitConfig describes layout (rate, channels, width) and detection
  sensitivity (noise floor, minimum silence, expected segment count)
- AlignmentSettings holds the empirical aligner heuristics
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class WordTimestamp:
    """One recognized word from the STT engine.

    RULES:
    - word: raw STT text (may contain punctuation; normalized by the aligner)
    - start_s / end_s: float seconds, end_s >= start_s
    - Sequences are ordered and non-overlapping
    """

    word: str
    start_s: float
    end_s: float


@dataclass(frozen=True)
class LineBoundary:
    """Time span assigned to one script line.

    After alignment the list is contiguous: ``b[i].end_s == b[i + 1].start_s``.
    Zero-length spans only appear for lines the STT stream never reached.
    """

    start_s: float
    end_s: float

    @property
    def duration_s(self) -> float:
        return self.end_s - self.start_s


@dataclass(frozen=True)
class SilenceInterval:
    """A stretch of audio below the noise floor for at least the minimum duration."""

    start_s: float
    end_s: float

    def __post_init__(self) -> None:
        if self.end_s <= self.start_s:
            raise ValueError(
                "silence interval end ({}) must be after start ({})".format(
                    self.end_s, self.start_s
                )
            )

    @property
    def duration_s(self) -> float:
        return self.end_s - self.start_s

    @property
    def midpoint_s(self) -> float:
        return (self.start_s + self.end_s) / 2.0


@dataclass(frozen=True)
class PCMSplitConfig:
    """Binary layout of a raw PCM buffer plus silence detection sensitivity.

    WHY: Raw PCM carries no header, so every byte-offset computation needs
    the sample rate, channel count, and sample width from the caller. The
    same object also carries the silence detection knobs so detectors and
    the silence splitter take a single argument.

    RULES:
    - sample_rate, channels, bytes_per_sample must be positive
    - noise_floor_db: dBFS threshold, e.g. -30.0
    - min_silence_s: minimum silence length to report, >= 0
    - expected_segments: target segment count for script-less splitting;
      0 or 1 means "cut at every detected silence"
    """

    sample_rate: int = 24000
    channels: int = 1
    bytes_per_sample: int = 2
    noise_floor_db: float = -30.0
    min_silence_s: float = 0.2
    expected_segments: int = 0

    def __post_init__(self) -> None:
        if self.sample_rate <= 0:
            raise ValueError("sample_rate must be positive")
        if self.channels <= 0:
            raise ValueError("channels must be positive")
        if self.bytes_per_sample <= 0:
            raise ValueError("bytes_per_sample must be positive")
        if self.min_silence_s < 0:
            raise ValueError("min_silence_s must not be negative")
        if self.expected_segments < 0:
            raise ValueError("expected_segments must not be negative")

    @property
    def block_align(self) -> int:
        """Bytes in one multi-channel sample frame."""
        return self.channels * self.bytes_per_sample

    @property
    def bytes_per_second(self) -> int:
        return self.sample_rate * self.block_align


@dataclass(frozen=True)
class AlignmentSettings:
    """Tunable heuristics for the character aligner.

    RULES:
    - min_cut_gap_s: a word gap shorter than this is treated as an STT
      sub-token split, not a pause (default 80 ms)
    - lookahead_words: how many following words to inspect for a real pause
    - max_divergence: allowed |stt_chars / script_chars - 1|
    """

    min_cut_gap_s: float = 0.08
    lookahead_words: int = 4
    max_divergence: float = 0.3

    def __post_init__(self) -> None:
        if self.min_cut_gap_s < 0:
            raise ValueError("min_cut_gap_s must not be negative")
        if self.lookahead_words < 0:
            raise ValueError("lookahead_words must not be negative")
        if self.max_divergence < 0:
            raise ValueError("max_divergence must not be negative")
