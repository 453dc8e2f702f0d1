"""Typed exceptions raised by the alignment and segmentation stages.

WHY: Callers (the pipeline, the CLI, an outer job layer) need to tell a
bad request apart from an STT transcript that does not match the script,
and both apart from a broken external tool. Each has a different
recovery: reject, flag the audio, or fall back to unsnapped boundaries.

HOW: One base class, three concrete errors. The two input-side errors
also subclass ValueError so generic "bad input" handlers (the CLI's
included) still catch them.

RULES:
- Errors are raised to the immediate caller unmodified; nothing retries
- AlignmentDivergenceError always carries both character counts and the ratio
- ExternalToolError always carries the captured diagnostic output
"""

from __future__ import annotations


class NarrationAlignerError(Exception):
    """Base class for all narration_aligner errors."""


class InputValidationError(NarrationAlignerError, ValueError):
    """Raised when the aligner receives empty lines or an empty word list."""


class AlignmentDivergenceError(NarrationAlignerError, ValueError):
    """Raised when the STT character count is too far from the script's.

    WHY: A large mismatch means the transcript does not correspond to the
    narration (wrong audio, failed synthesis, failed recognition). Cutting
    audio from such an alignment would silently mislabel every line.

    RULES:
    - script_chars / stt_chars: normalized character counts
    - ratio: stt_chars / script_chars
    """

    def __init__(self, script_chars: int, stt_chars: int, ratio: float) -> None:
        self.script_chars = script_chars
        self.stt_chars = stt_chars
        self.ratio = ratio
        super().__init__(
            "STT transcript diverges from script: script={} chars, "
            "stt={} chars, ratio={:.2f}".format(script_chars, stt_chars, ratio)
        )


class ExternalToolError(NarrationAlignerError):
    """Raised when silence detection cannot run or the tool fails.

    RULES:
    - stderr: captured diagnostic output ("" when the tool never started)
    - returncode: process exit status, or None when it never ran
    """

    def __init__(
        self,
        message: str,
        stderr: str = "",
        returncode: int | None = None,
    ) -> None:
        self.stderr = stderr
        self.returncode = returncode
        if stderr:
            message = "{} (stderr: {})".format(message, stderr.strip())
        super().__init__(message)
