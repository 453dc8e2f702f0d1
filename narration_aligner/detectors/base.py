"""Abstract silence detector interface.

WHY: Parsing ffmpeg's stderr is a brittle coupling to one tool's log
format. The snapper and the silence splitter only need a list of
SilenceInterval values, so detection sits behind a small interface and
backends can be swapped (external tool, in-process analysis, test stub)
without touching either consumer.

HOW: BaseSilenceDetector is an ABC with a ``name`` property and a
``detect()`` method.

RULES:
- detect() takes the raw PCM and a PCMSplitConfig, returns intervals in
  chronological order
- Empty PCM → ExternalToolError, regardless of backend
- "No silence found" is an empty list, never an error

To add a new backend:
1. Create a new file in detectors/
2. Subclass BaseSilenceDetector
3. Implement detect() and name
4. Register in DETECTORS in detectors/__init__.py
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from narration_aligner.core.ir import PCMSplitConfig, SilenceInterval


class BaseSilenceDetector(ABC):
    """Abstract base for all silence detection backends."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable backend name, e.g. 'ffmpeg silencedetect'."""

    @abstractmethod
    def detect(self, pcm: bytes, config: PCMSplitConfig) -> list[SilenceInterval]:
        """Find silence intervals in a raw PCM buffer.

        Args:
            pcm: Raw interleaved PCM laid out as described by ``config``.
            config: Layout plus noise floor and minimum silence length.

        Returns:
            Silence intervals in chronological order (possibly empty).

        Raises:
            ExternalToolError: Empty input or the backend failed to run.
        """
