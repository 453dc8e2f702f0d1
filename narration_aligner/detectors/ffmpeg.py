"""Silence detection through ffmpeg's ``silencedetect`` filter.

WHY: ffmpeg's silencedetect is the reference detector the narration
service was tuned against (noise floor in dB, minimum duration in
seconds). It is also what the snapping distances were calibrated with.

HOW: Write the PCM to a temporary raw file, run ffmpeg with the raw
demuxer options from the config, send output to the null muxer, and
scrape ``silence_start: <t>`` / ``silence_end: <t>`` from stderr. Starts
and ends are paired in the order they appear.

RULES:
- Empty PCM, an unsupported sample width, a missing binary, any OSError,
  or a non-zero exit → ExternalToolError (with captured stderr)
- The temporary directory is removed on every exit path
- Unmatched trailing silence_start is dropped silently
- Pairs with end <= start are dropped
- Output with no markers (or garbage) → []
- One blocking subprocess call; no timeout, no retry
"""

from __future__ import annotations

import logging
import re
import subprocess
import tempfile
from pathlib import Path

from narration_aligner.config import FFMPEG_BINARY
from narration_aligner.core.errors import ExternalToolError
from narration_aligner.core.ir import PCMSplitConfig, SilenceInterval
from narration_aligner.detectors.base import BaseSilenceDetector

logger = logging.getLogger(__name__)

_NUMBER = r"[-+]?\d+(?:\.\d+)?(?:[eE][-+]?\d+)?"
_SILENCE_START_RE = re.compile(r"silence_start:\s*(" + _NUMBER + ")")
_SILENCE_END_RE = re.compile(r"silence_end:\s*(" + _NUMBER + ")")

# ffmpeg raw demuxer format per sample width (signed little-endian, except 8-bit).
SAMPLE_FORMATS: dict[int, str] = {
    1: "u8",
    2: "s16le",
    3: "s24le",
    4: "s32le",
}


def parse_silencedetect_output(stderr: str) -> list[SilenceInterval]:
    """Pair silence_start / silence_end markers from ffmpeg's log text.

    RULES:
    - Markers are matched anywhere in the text; trailing text on the line
      (``| silence_duration: ...``) is ignored
    - Pairing is positional: n-th start with n-th end
    - Extra starts (silence running into EOF without an end) are dropped
    """
    starts = [float(m.group(1)) for m in _SILENCE_START_RE.finditer(stderr)]
    ends = [float(m.group(1)) for m in _SILENCE_END_RE.finditer(stderr)]

    intervals: list[SilenceInterval] = []
    for start_s, end_s in zip(starts, ends):
        if end_s <= start_s:
            logger.debug("Dropping degenerate silence %.3fs - %.3fs", start_s, end_s)
            continue
        intervals.append(SilenceInterval(start_s, end_s))
    return intervals


class FFmpegSilenceDetector(BaseSilenceDetector):
    """Run ffmpeg silencedetect as a subprocess over raw PCM."""

    def __init__(self, binary: str | None = None) -> None:
        self._binary = binary or FFMPEG_BINARY

    @property
    def name(self) -> str:
        return "ffmpeg silencedetect"

    def build_command(self, input_path: Path, config: PCMSplitConfig) -> list[str]:
        """Build the ffmpeg argument list for one detection run."""
        return [
            self._binary,
            "-hide_banner",
            "-nostats",
            "-f", SAMPLE_FORMATS[config.bytes_per_sample],
            "-ar", str(config.sample_rate),
            "-ac", str(config.channels),
            "-i", str(input_path),
            "-af", "silencedetect=noise={:g}dB:d={:g}".format(
                config.noise_floor_db, config.min_silence_s
            ),
            "-f", "null",
            "-",
        ]

    def detect(self, pcm: bytes, config: PCMSplitConfig) -> list[SilenceInterval]:
        if not pcm:
            raise ExternalToolError("PCM data is empty")
        if config.bytes_per_sample not in SAMPLE_FORMATS:
            raise ExternalToolError(
                "ffmpeg cannot read {}-byte samples".format(config.bytes_per_sample)
            )

        with tempfile.TemporaryDirectory(prefix="pcm-silence-") as tmp_dir:
            raw_path = Path(tmp_dir) / "input.raw"
            cmd = self.build_command(raw_path, config)
            try:
                raw_path.write_bytes(pcm)
                proc = subprocess.run(
                    cmd,
                    capture_output=True,
                    text=True,
                    errors="replace",
                    check=False,
                )
            except OSError as exc:
                raise ExternalToolError(
                    "ffmpeg silencedetect could not run: {}".format(exc)
                ) from exc

        if proc.returncode != 0:
            raise ExternalToolError(
                "ffmpeg silencedetect failed with exit code {}".format(proc.returncode),
                stderr=proc.stderr,
                returncode=proc.returncode,
            )

        intervals = parse_silencedetect_output(proc.stderr)
        logger.debug("ffmpeg silencedetect found %d interval(s)", len(intervals))
        return intervals
