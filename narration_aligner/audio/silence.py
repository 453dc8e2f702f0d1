"""Silence detection entry point and script-less PCM splitting.

WHY: When no script is available (or the caller only knows how many
lines to expect), pauses in the audio are the only cue for where lines
end. Sentence and paragraph pauses are longer than the breaths and
consonant closures inside a sentence, so the widest silences are the
best cut candidates.

HOW: detect_silence() runs a detector backend (ffmpeg by default).
split_pcm_by_silence() keeps the expected_segments - 1 widest intervals
when there are more candidates than cuts, converts each interval's
midpoint to a block-aligned byte offset, and slices between accepted
offsets.

RULES:
- No intervals → the whole buffer as one segment
- expected_segments <= 1 → cut at every detected silence
- Widest-first selection, then back to chronological order
- Cut offset = round(midpoint × bytes_per_second), floored to block alignment
- A cut that does not advance past the previous one, or lands at/after the
  end of the buffer, is skipped
"""

from __future__ import annotations

import logging

from narration_aligner.core.ir import PCMSplitConfig, SilenceInterval
from narration_aligner.detectors import DEFAULT_DETECTOR, DETECTORS
from narration_aligner.detectors.base import BaseSilenceDetector

logger = logging.getLogger(__name__)


def detect_silence(
    pcm: bytes,
    config: PCMSplitConfig,
    detector: BaseSilenceDetector | None = None,
) -> list[SilenceInterval]:
    """Detect silence intervals with the given (or default) backend.

    Raises:
        ExternalToolError: Empty PCM or the backend failed.
    """
    detector = detector or DETECTORS[DEFAULT_DETECTOR]()
    intervals = detector.detect(pcm, config)
    for i, s in enumerate(intervals):
        logger.debug(
            "silence %d: %.3fs - %.3fs (mid %.3fs)", i, s.start_s, s.end_s, s.midpoint_s
        )
    return intervals


def select_top_silence_intervals(
    intervals: list[SilenceInterval],
    count: int,
) -> list[SilenceInterval]:
    """Keep the ``count`` longest intervals, returned in chronological order.

    Equal durations keep their original relative order (stable sort).
    """
    if count >= len(intervals):
        return list(intervals)
    ranked = sorted(intervals, key=lambda s: s.duration_s, reverse=True)
    return sorted(ranked[:count], key=lambda s: s.start_s)


def cut_offsets(
    intervals: list[SilenceInterval],
    config: PCMSplitConfig,
    pcm_length: int,
) -> list[int]:
    """Block-aligned byte offsets of the accepted cuts, strictly increasing."""
    block_align = config.block_align
    offsets: list[int] = []
    previous = 0
    for interval in intervals:
        offset = int(round(interval.midpoint_s * config.bytes_per_second))
        offset = (offset // block_align) * block_align
        if offset <= previous or offset >= pcm_length:
            logger.debug("Skipping cut at byte %d (previous %d)", offset, previous)
            continue
        offsets.append(offset)
        previous = offset
    return offsets


def split_pcm_by_silence(
    pcm: bytes,
    config: PCMSplitConfig,
    detector: BaseSilenceDetector | None = None,
) -> list[bytes]:
    """Split PCM at the midpoints of detected silences.

    Args:
        pcm: Raw interleaved PCM.
        config: Layout, detection sensitivity, and expected_segments.
        detector: Backend override; defaults to ffmpeg silencedetect.

    Returns:
        Non-empty PCM segments that concatenate back to ``pcm``.

    Raises:
        ExternalToolError: Detection failed (including empty PCM).
    """
    intervals = detect_silence(pcm, config, detector)
    if not intervals:
        return [pcm]

    wanted_cuts = config.expected_segments - 1
    if config.expected_segments > 1 and len(intervals) > wanted_cuts:
        intervals = select_top_silence_intervals(intervals, wanted_cuts)

    segments: list[bytes] = []
    previous = 0
    for offset in cut_offsets(intervals, config, len(pcm)):
        segments.append(pcm[previous:offset])
        previous = offset
    if previous < len(pcm):
        segments.append(pcm[previous:])

    logger.info("Split PCM into %d segment(s) at silences", len(segments))
    return segments
