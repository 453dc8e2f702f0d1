"""Narration reassembly pipeline: align, detect, snap, split, join.

WHY: Callers want per-line PCM segments from (narration PCM, script
lines, STT words), not four separate stages to wire up. The wiring also
carries policy that belongs in one place: where the outer edges go,
when snapping is worth a subprocess, and what to do when detection
fails.

HOW: NarrationSplitter holds the PCM layout, the detector backend, the
aligner settings and the snap distance. boundaries_for() aligns, then
stretches the first start to 0 and the last end to the end of the
buffer (STT timestamps never cover leading/trailing padding), then snaps
internal cuts to silence when there are at least two lines. split()
slices the PCM with those boundaries. join_segments() puts segments back
together with silence padding between them.

RULES:
- Alignment errors (InputValidationError, AlignmentDivergenceError) propagate
- A detector failure is logged and the unsnapped boundaries are used
- Single-line narrations skip silence detection entirely
- Padding goes between segments, never after the last one
"""

from __future__ import annotations

import logging

from narration_aligner.audio.pcm import (
    concat_pcm,
    generate_silence_pcm,
    pcm_duration_s,
    split_pcm_by_timestamps,
)
from narration_aligner.audio.silence import detect_silence, split_pcm_by_silence
from narration_aligner.config import DEFAULT_PADDING_MS, DEFAULT_SNAP_DISTANCE_S
from narration_aligner.core.aligner import align_text_to_timestamps
from narration_aligner.core.errors import ExternalToolError
from narration_aligner.core.ir import (
    AlignmentSettings,
    LineBoundary,
    PCMSplitConfig,
    WordTimestamp,
)
from narration_aligner.core.snapper import snap_boundaries_to_silence
from narration_aligner.detectors.base import BaseSilenceDetector

logger = logging.getLogger(__name__)


class NarrationSplitter:
    """Split one narration track into per-line PCM segments.

    RULES:
    - config: PCM layout and silence detection sensitivity
    - detector: None → ffmpeg silencedetect
    - settings: None → AlignmentSettings() defaults
    - snap_distance_s: maximum cut-to-silence distance for snapping
    """

    def __init__(
        self,
        config: PCMSplitConfig,
        detector: BaseSilenceDetector | None = None,
        settings: AlignmentSettings | None = None,
        snap_distance_s: float = DEFAULT_SNAP_DISTANCE_S,
    ) -> None:
        self.config = config
        self.detector = detector
        self.settings = settings
        self.snap_distance_s = snap_distance_s

    def boundaries_for(
        self,
        pcm: bytes,
        lines: list[str],
        words: list[WordTimestamp],
    ) -> list[LineBoundary]:
        """Compute final per-line boundaries for a narration buffer.

        Raises:
            InputValidationError: lines or words is empty.
            AlignmentDivergenceError: the transcript does not match the script.
        """
        boundaries = align_text_to_timestamps(lines, words, self.settings)
        boundaries = self._extend_to_buffer(boundaries, pcm)

        if len(lines) < 2:
            return boundaries

        try:
            silences = detect_silence(pcm, self.config, self.detector)
        except ExternalToolError as exc:
            logger.warning("Silence detection failed, using STT boundaries: %s", exc)
            return boundaries

        return snap_boundaries_to_silence(boundaries, silences, self.snap_distance_s)

    def _extend_to_buffer(
        self,
        boundaries: list[LineBoundary],
        pcm: bytes,
    ) -> list[LineBoundary]:
        duration_s = pcm_duration_s(
            pcm, self.config.sample_rate, self.config.channels, self.config.bytes_per_sample
        )
        extended = list(boundaries)
        extended[0] = LineBoundary(0.0, extended[0].end_s)
        last = extended[-1]
        extended[-1] = LineBoundary(last.start_s, max(duration_s, last.start_s))
        return extended

    def split(
        self,
        pcm: bytes,
        lines: list[str],
        words: list[WordTimestamp],
    ) -> list[bytes]:
        """Per-line PCM segments, one per script line, in script order."""
        boundaries = self.boundaries_for(pcm, lines, words)
        segments = split_pcm_by_timestamps(
            pcm,
            boundaries,
            self.config.sample_rate,
            self.config.channels,
            self.config.bytes_per_sample,
        )
        logger.info("Split narration into %d line segment(s)", len(segments))
        return segments

    def split_without_script(self, pcm: bytes) -> list[bytes]:
        """Silence-only split using config.expected_segments as the target."""
        return split_pcm_by_silence(pcm, self.config, self.detector)


def join_segments(
    segments: list[bytes],
    config: PCMSplitConfig,
    padding_ms: int = DEFAULT_PADDING_MS,
) -> bytes:
    """Concatenate segments with ``padding_ms`` of silence between each pair."""
    padding = generate_silence_pcm(
        padding_ms, config.sample_rate, config.channels, config.bytes_per_sample
    )
    parts: list[bytes] = []
    for i, segment in enumerate(segments):
        parts.append(segment)
        if i < len(segments) - 1:
            parts.append(padding)
    return concat_pcm(parts)
