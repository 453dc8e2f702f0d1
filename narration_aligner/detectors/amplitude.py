"""In-process silence detection from frame RMS levels.

WHY: Spawning ffmpeg per narration is the slowest and most fragile part
of the pipeline, and it is unavailable in some worker images. For PCM we
already hold in memory, a short-window RMS scan finds the same pauses
without leaving the process.

HOW: Decode the buffer with numpy, cut it into fixed windows (default
10 ms, all channels together), compute each window's RMS level in dBFS,
mark windows below the noise floor as silent, and report runs of silent
windows lasting at least min_silence_s.

RULES:
- Supports 8-bit unsigned, 16-bit and 32-bit signed little-endian
- A window is silent when its level is strictly below noise_floor_db
  (digital zero is -inf dBFS, always silent)
- A trailing partial window is ignored
- Interval edges are multiples of the window length
"""

from __future__ import annotations

import numpy as np

from narration_aligner.core.errors import ExternalToolError
from narration_aligner.core.ir import PCMSplitConfig, SilenceInterval
from narration_aligner.detectors.base import BaseSilenceDetector

_DTYPES = {
    1: np.dtype("u1"),
    2: np.dtype("<i2"),
    4: np.dtype("<i4"),
}

_DURATION_EPSILON = 1e-9


class AmplitudeSilenceDetector(BaseSilenceDetector):
    """Detect silence from per-window RMS without an external tool."""

    def __init__(self, window_s: float = 0.01) -> None:
        if window_s <= 0:
            raise ValueError("window_s must be positive")
        self._window_s = window_s

    @property
    def name(self) -> str:
        return "in-process RMS"

    def frame_levels_db(self, pcm: bytes, config: PCMSplitConfig) -> np.ndarray:
        """RMS level of each full window in dBFS."""
        dtype = _DTYPES.get(config.bytes_per_sample)
        if dtype is None:
            raise ExternalToolError(
                "unsupported sample width for RMS analysis: {}".format(
                    config.bytes_per_sample
                )
            )
        usable = len(pcm) - len(pcm) % config.block_align
        samples = np.frombuffer(pcm[:usable], dtype=dtype).astype(np.float64)
        if config.bytes_per_sample == 1:
            samples -= 128.0
        full_scale = float(2 ** (8 * config.bytes_per_sample - 1))

        frames_per_window = max(1, int(round(config.sample_rate * self._window_s)))
        frame_count = samples.size // config.channels
        window_count = frame_count // frames_per_window
        if window_count == 0:
            return np.empty(0, dtype=np.float64)

        values_per_window = frames_per_window * config.channels
        windows = samples[: window_count * values_per_window].reshape(
            window_count, values_per_window
        )
        rms = np.sqrt(np.mean(windows ** 2, axis=1))
        with np.errstate(divide="ignore"):
            return 20.0 * np.log10(rms / full_scale)

    def detect(self, pcm: bytes, config: PCMSplitConfig) -> list[SilenceInterval]:
        if not pcm:
            raise ExternalToolError("PCM data is empty")

        levels = self.frame_levels_db(pcm, config)
        if levels.size == 0:
            return []

        frames_per_window = max(1, int(round(config.sample_rate * self._window_s)))
        window_s = frames_per_window / float(config.sample_rate)

        silent = levels < config.noise_floor_db
        edges = np.diff(np.concatenate(([0], silent.astype(np.int8), [0])))
        run_starts = np.flatnonzero(edges == 1)
        run_ends = np.flatnonzero(edges == -1)

        intervals: list[SilenceInterval] = []
        for first, stop in zip(run_starts, run_ends):
            start_s = float(first) * window_s
            end_s = float(stop) * window_s
            if end_s - start_s + _DURATION_EPSILON >= config.min_silence_s:
                intervals.append(SilenceInterval(start_s, end_s))
        return intervals
