"""Character-count alignment of script lines against STT word timestamps.

WHY: The narration is synthesized from a known script, so we know what
was said but not when. The STT engine knows when, but its tokens never
line up with the script: it splits and merges words, drops particles,
and transliterates. Counting normalized characters on both sides gives a
position measure that survives all of that reasonably well.

HOW: Normalize script lines and STT words (drop whitespace, punctuation,
Japanese marks). Running sums of per-line character counts give each
line's end offset in script space. Those offsets are scaled by
stt_chars / script_chars into STT space, then the STT words are walked
with a running character count. When the count reaches a line's scaled
offset, the word just consumed is the cut candidate. If the candidate is
glued to the next word (gap < 80 ms) the STT probably split one script
token into fragments, so a few following words are checked for a real
pause and absorbed into the current line when one is found.

RULES:
- Empty lines or empty words → InputValidationError
- |stt_chars / script_chars - 1| > 0.3 → AlignmentDivergenceError
  (a ratio of exactly 1.3 or 0.7 passes)
- One line → spans first word start to last word end
- Cut lands on the midpoint of the gap after the cut word, or on the cut
  word's end when it is the last word
- A line with nothing left to count gets zero length at the current
  position, also when it comes before the first word
- Words run out before lines do → remaining lines are zero-length at the
  last word's end
- Output is always len(lines) contiguous boundaries
"""

from __future__ import annotations

import logging
import math
import unicodedata

from narration_aligner.core.errors import AlignmentDivergenceError, InputValidationError
from narration_aligner.core.ir import AlignmentSettings, LineBoundary, WordTimestamp

logger = logging.getLogger(__name__)

# Marks that differ unpredictably between script text and STT output.
# Most are already Unicode punctuation; the set pins down the ones that matter.
_JAPANESE_MARKS = frozenset("、。「」『』（）・…〜！？，．[]:：")

# Absorbs float noise when comparing millisecond gaps expressed in seconds.
_GAP_EPSILON = 1e-9


def normalize_text(text: str) -> str:
    """Strip everything that carries no timing information.

    RULES:
    - Whitespace is removed
    - Any Unicode punctuation (general category P*) is removed
    - The fixed Japanese mark set is removed
    - Letters, digits, kana, kanji and symbols are kept
    """
    return "".join(ch for ch in text if not _is_timing_neutral(ch))


def _is_timing_neutral(ch: str) -> bool:
    if ch.isspace():
        return True
    if unicodedata.category(ch).startswith("P"):
        return True
    return ch in _JAPANESE_MARKS


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def align_text_to_timestamps(
    lines: list[str],
    words: list[WordTimestamp],
    settings: AlignmentSettings | None = None,
) -> list[LineBoundary]:
    """Assign each script line a time span from the STT word stream.

    Args:
        lines: Script lines in narration order.
        words: STT words in time order.
        settings: Heuristic overrides; defaults to AlignmentSettings().

    Returns:
        Exactly len(lines) contiguous LineBoundary objects.

    Raises:
        InputValidationError: lines or words is empty.
        AlignmentDivergenceError: the character counts disagree by more
            than settings.max_divergence.
    """
    if not lines:
        raise InputValidationError("script lines are empty")
    if not words:
        raise InputValidationError("STT word list is empty")
    settings = settings or AlignmentSettings()

    line_ends: list[int] = []
    script_chars = 0
    for line in lines:
        script_chars += len(normalize_text(line))
        line_ends.append(script_chars)

    word_chars = [len(normalize_text(w.word)) for w in words]
    stt_chars = sum(word_chars)

    if script_chars > 0:
        # Integer-side comparison keeps a ratio of exactly 1 ± max_divergence inside.
        if abs(stt_chars - script_chars) > settings.max_divergence * script_chars:
            raise AlignmentDivergenceError(
                script_chars, stt_chars, stt_chars / script_chars
            )

    if len(lines) == 1:
        return [LineBoundary(words[0].start_s, words[-1].end_s)]

    scale = stt_chars / script_chars if script_chars > 0 else 1.0
    targets = [_round_half_up(end * scale) for end in line_ends]
    logger.debug(
        "Aligning %d lines against %d words (script=%d chars, stt=%d chars, scale=%.3f)",
        len(lines), len(words), script_chars, stt_chars, scale,
    )

    boundaries = _walk_words(words, word_chars, targets, settings)
    for i, b in enumerate(boundaries):
        logger.debug("line %d: %.3fs - %.3fs", i, b.start_s, b.end_s)
    return boundaries


def _walk_words(
    words: list[WordTimestamp],
    word_chars: list[int],
    targets: list[int],
    settings: AlignmentSettings,
) -> list[LineBoundary]:
    """Walk the STT words and cut each time a line's target count is reached.

    HOW: ``consumed`` is the running normalized character count. A line is
    closed when consumed >= its target; the cut word may move forward by
    sub-token absorption. Lines whose target is already covered, either
    before the first word (a leading punctuation-only line) or after a cut
    (punctuation-only lines, or one STT word spanning two script lines),
    close immediately with zero length instead of taking the next word.
    """
    line_count = len(targets)
    last_end = words[-1].end_s
    boundaries: list[LineBoundary] = []
    line_start = words[0].start_s
    consumed = 0
    idx = 0

    while len(boundaries) < line_count - 1 and targets[len(boundaries)] <= 0:
        boundaries.append(LineBoundary(line_start, line_start))

    while len(boundaries) < line_count - 1 and idx < len(words):
        consumed += word_chars[idx]
        if consumed < targets[len(boundaries)]:
            idx += 1
            continue

        cut_idx = _absorb_subtokens(words, idx, settings)
        consumed += sum(word_chars[idx + 1:cut_idx + 1])
        cut_s = _cut_time(words, cut_idx)
        boundaries.append(LineBoundary(line_start, cut_s))
        line_start = cut_s

        while len(boundaries) < line_count - 1 and consumed >= targets[len(boundaries)]:
            boundaries.append(LineBoundary(line_start, line_start))
        idx = cut_idx + 1

    if len(boundaries) < line_count - 1:
        logger.warning(
            "STT words exhausted after %d of %d lines; remaining lines get zero length",
            len(boundaries) + 1, line_count,
        )
        boundaries.append(LineBoundary(line_start, last_end))
        while len(boundaries) < line_count:
            boundaries.append(LineBoundary(last_end, last_end))
        return boundaries

    boundaries.append(LineBoundary(line_start, last_end))
    assert len(boundaries) == line_count
    return boundaries


def _gap_after(words: list[WordTimestamp], idx: int) -> float:
    return words[idx + 1].start_s - words[idx].end_s


def _absorb_subtokens(
    words: list[WordTimestamp],
    cut_idx: int,
    settings: AlignmentSettings,
) -> int:
    """Move the cut forward over STT fragments glued to the candidate.

    HOW: If the gap after the candidate is already a pause, keep it.
    Otherwise check the next ``lookahead_words`` words (each needs a
    following word to have a gap at all) for a pause and cut after the
    first one found. No pause nearby → the candidate stands.

    Example: script "きました" recognized as "きまし" + "た" with 0 ms
    between them; a boundary landing on "きまし" moves to "た".
    """
    if cut_idx + 1 >= len(words):
        return cut_idx
    if _gap_after(words, cut_idx) + _GAP_EPSILON >= settings.min_cut_gap_s:
        return cut_idx

    horizon = min(cut_idx + settings.lookahead_words, len(words) - 2)
    for candidate in range(cut_idx + 1, horizon + 1):
        if _gap_after(words, candidate) + _GAP_EPSILON >= settings.min_cut_gap_s:
            logger.debug(
                "Absorbed %d sub-token(s) after %r into the current line",
                candidate - cut_idx, words[cut_idx].word,
            )
            return candidate
    return cut_idx


def _cut_time(words: list[WordTimestamp], cut_idx: int) -> float:
    """Midpoint of the gap after the cut word, or its end for the last word."""
    current = words[cut_idx]
    if cut_idx + 1 >= len(words):
        return current.end_s
    following = words[cut_idx + 1]
    return current.end_s + (following.start_s - current.end_s) / 2.0
