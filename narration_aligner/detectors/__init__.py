"""Silence detector registry: pluggable detection backends.

WHY: The pipeline, the silence splitter, and the CLI need a single
lookup to pick a backend by name. A central dict makes adding a backend
a one-line change.

HOW: DETECTORS maps string keys to detector *classes* (not instances).
Callers instantiate as needed: ``detector = DETECTORS["ffmpeg"]()``.

RULES:
- Keys are snake_case identifiers (used in CLI flags and config)
- Values are BaseSilenceDetector subclasses (not instances)
- DEFAULT_DETECTOR names the backend used when none is given
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from narration_aligner.detectors.amplitude import AmplitudeSilenceDetector
from narration_aligner.detectors.ffmpeg import FFmpegSilenceDetector

if TYPE_CHECKING:
    from narration_aligner.detectors.base import BaseSilenceDetector

DETECTORS: dict[str, type[BaseSilenceDetector]] = {
    "ffmpeg": FFmpegSilenceDetector,
    "amplitude": AmplitudeSilenceDetector,
}

DEFAULT_DETECTOR = "ffmpeg"
