"""Tests for the reassembly pipeline (NarrationSplitter, join_segments).

WHY: The pipeline carries the policy around the pure stages: edge
extension to the full buffer, when detection runs, and the fallback when
it fails. Those rules decide whether leading breath and trailing room
tone end up in the first and last clips.

HOW: A stub detector returns fixed intervals (or raises) so snapping is
deterministic. PCM buffers are zero-filled at 24 kHz mono s16le.

RULES:
- The greeting sample cuts at 1.1s before snapping
- Silence (1.0, 1.5) contains that cut and snaps it to 1.25s (byte 60000)
"""

import logging

import pytest

from narration_aligner.audio.pcm import concat_pcm
from narration_aligner.core.errors import (
    AlignmentDivergenceError,
    ExternalToolError,
    InputValidationError,
)
from narration_aligner.core.ir import PCMSplitConfig, SilenceInterval, WordTimestamp
from narration_aligner.pipeline import NarrationSplitter, join_segments

THREE_SECONDS = bytes(144000)


def _spans(boundaries):
    return [(b.start_s, b.end_s) for b in boundaries]


class TestBoundaries:
    """boundaries_for aligns, extends the edges, and snaps."""

    def test_snaps_to_detected_silence(
        self, pcm_config, stub_detector, greeting_lines, greeting_words
    ):
        detector = stub_detector([SilenceInterval(1.0, 1.5)])
        splitter = NarrationSplitter(pcm_config, detector=detector)

        boundaries = splitter.boundaries_for(THREE_SECONDS, greeting_lines, greeting_words)

        assert _spans(boundaries) == [
            (0.0, pytest.approx(1.25)),
            (pytest.approx(1.25), pytest.approx(3.0)),
        ]

    def test_extends_edges_to_buffer(self, pcm_config, stub_detector, greeting_lines):
        words = [
            WordTimestamp("こんにちは", 0.3, 0.5),
            WordTimestamp("世界", 0.5, 1.0),
            WordTimestamp("今日は天気が良い", 1.2, 2.5),
        ]
        splitter = NarrationSplitter(pcm_config, detector=stub_detector([]))

        boundaries = splitter.boundaries_for(THREE_SECONDS, greeting_lines, words)

        assert boundaries[0].start_s == 0.0
        assert boundaries[0].end_s == pytest.approx(1.1)
        assert boundaries[-1].end_s == pytest.approx(3.0)

    def test_short_buffer_pulls_last_end_in(
        self, pcm_config, stub_detector, greeting_lines, greeting_words
    ):
        splitter = NarrationSplitter(pcm_config, detector=stub_detector([]))

        boundaries = splitter.boundaries_for(bytes(96000), greeting_lines, greeting_words)

        assert boundaries[-1].end_s == pytest.approx(2.0)

    def test_detection_failure_falls_back(
        self, pcm_config, stub_detector, greeting_lines, greeting_words, caplog
    ):
        detector = stub_detector(error=ExternalToolError("ffmpeg silencedetect could not run"))
        splitter = NarrationSplitter(pcm_config, detector=detector)

        with caplog.at_level(logging.WARNING):
            boundaries = splitter.boundaries_for(THREE_SECONDS, greeting_lines, greeting_words)

        assert _spans(boundaries) == [
            (0.0, pytest.approx(1.1)),
            (pytest.approx(1.1), pytest.approx(3.0)),
        ]
        assert "Silence detection failed" in caplog.text

    def test_single_line_skips_detection(self, pcm_config, stub_detector, greeting_words):
        detector = stub_detector([SilenceInterval(1.0, 1.5)])
        splitter = NarrationSplitter(pcm_config, detector=detector)

        boundaries = splitter.boundaries_for(
            THREE_SECONDS, ["こんにちは世界今日は天気が良い"], greeting_words
        )

        assert _spans(boundaries) == [(0.0, pytest.approx(3.0))]
        assert detector.calls == []

    def test_snap_distance_is_respected(
        self, pcm_config, stub_detector, greeting_lines, greeting_words
    ):
        detector = stub_detector([SilenceInterval(1.5, 1.7)])
        splitter = NarrationSplitter(pcm_config, detector=detector, snap_distance_s=0.2)

        boundaries = splitter.boundaries_for(THREE_SECONDS, greeting_lines, greeting_words)

        assert boundaries[0].end_s == pytest.approx(1.1)

    def test_alignment_errors_propagate(self, pcm_config, stub_detector, greeting_lines):
        splitter = NarrationSplitter(pcm_config, detector=stub_detector([]))

        with pytest.raises(InputValidationError):
            splitter.boundaries_for(THREE_SECONDS, greeting_lines, [])

        with pytest.raises(AlignmentDivergenceError):
            splitter.boundaries_for(
                THREE_SECONDS, greeting_lines, [WordTimestamp("はい", 0.0, 0.5)]
            )


class TestSplit:
    """split and split_without_script return per-line PCM."""

    def test_split_by_script(self, pcm_config, stub_detector, greeting_lines, greeting_words):
        pcm = bytes(i % 256 for i in range(144000))
        splitter = NarrationSplitter(
            pcm_config, detector=stub_detector([SilenceInterval(1.0, 1.5)])
        )

        segments = splitter.split(pcm, greeting_lines, greeting_words)

        assert [len(s) for s in segments] == [60000, 84000]
        assert concat_pcm(segments) == pcm

    def test_split_without_script(self, stub_detector):
        config = PCMSplitConfig(expected_segments=2)
        detector = stub_detector([SilenceInterval(1.0, 1.5), SilenceInterval(2.0, 2.1)])
        splitter = NarrationSplitter(config, detector=detector)

        segments = splitter.split_without_script(THREE_SECONDS)

        assert [len(s) for s in segments] == [60000, 84000]


class TestJoinSegments:
    """join_segments puts padding between segments only."""

    def test_padding_between(self, pcm_config):
        first = b"\x01\x00" * 10
        second = b"\x02\x00" * 10

        joined = join_segments([first, second], pcm_config, padding_ms=200)

        assert len(joined) == 20 + 9600 + 20
        assert joined[:20] == first
        assert joined[20:9620] == bytes(9600)
        assert joined[9620:] == second

    def test_single_segment_has_no_padding(self, pcm_config):
        assert join_segments([b"\x01\x00"], pcm_config) == b"\x01\x00"

    def test_empty(self, pcm_config):
        assert join_segments([], pcm_config) == b""

    def test_default_padding(self, pcm_config):
        joined = join_segments([b"", b""], pcm_config)
        assert len(joined) == 9600
