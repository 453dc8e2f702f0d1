"""Snap aligner cut points onto detected silence.

WHY: Character-count alignment lands cuts in roughly the right gap, but
STT word edges are fuzzy by tens of milliseconds. Cutting a few ms early
clips the tail of a word. If the audio has a real silence close to the
cut, its midpoint is a safer place to cut.

HOW: For every internal cut (the edge shared by boundary i and i+1),
measure the distance to every unused silence interval: 0 if the cut is
inside it, otherwise the distance to the nearer edge. The closest
interval within max_distance_s wins; both sides of the cut move to its
midpoint and the interval is marked used. After all cuts, the result is
validated and rolled back entirely if anything became inconsistent.

RULES:
- <= 1 boundary or no silences → input returned unchanged
- The first start and the last end are never modified
- One silence interval serves at most one cut
- Ties go to the earlier interval (input order)
- A boundary that had positive length must keep it; no boundary may invert;
  consecutive starts must stay ordered. Any violation → original boundaries
- Never raises
"""

from __future__ import annotations

import logging

from narration_aligner.core.ir import LineBoundary, SilenceInterval

logger = logging.getLogger(__name__)


def _distance_to(cut_s: float, silence: SilenceInterval) -> float:
    if cut_s < silence.start_s:
        return silence.start_s - cut_s
    if cut_s > silence.end_s:
        return cut_s - silence.end_s
    return 0.0


def snap_boundaries_to_silence(
    boundaries: list[LineBoundary],
    silences: list[SilenceInterval],
    max_distance_s: float,
) -> list[LineBoundary]:
    """Move each internal cut to the midpoint of the nearest silence.

    Args:
        boundaries: Contiguous line boundaries from the aligner.
        silences: Detected silence intervals (any order).
        max_distance_s: Silences farther than this from a cut are ignored.

    Returns:
        A new list of boundaries; equal to the input when nothing snapped
        or when snapping was rolled back.
    """
    if len(boundaries) <= 1 or not silences:
        return list(boundaries)

    result = list(boundaries)
    used: set[int] = set()

    for i in range(len(result) - 1):
        cut_s = result[i].end_s
        best_idx = -1
        best_distance = 0.0
        for j, silence in enumerate(silences):
            if j in used:
                continue
            distance = _distance_to(cut_s, silence)
            if distance > max_distance_s:
                continue
            if best_idx < 0 or distance < best_distance:
                best_idx = j
                best_distance = distance

        if best_idx < 0:
            logger.debug("cut %d not snapped (at %.3fs)", i, cut_s)
            continue

        snapped_s = silences[best_idx].midpoint_s
        result[i] = LineBoundary(result[i].start_s, snapped_s)
        result[i + 1] = LineBoundary(snapped_s, result[i + 1].end_s)
        used.add(best_idx)
        logger.debug(
            "cut %d snapped %.3fs -> %.3fs (delta %+.3fs)",
            i, cut_s, snapped_s, snapped_s - cut_s,
        )

    if not _is_consistent(boundaries, result):
        logger.warning("Snapping produced inconsistent boundaries; keeping STT boundaries")
        return list(boundaries)
    return result


def _is_consistent(original: list[LineBoundary], snapped: list[LineBoundary]) -> bool:
    """Check that snapping kept every boundary valid and ordered.

    Zero-length spans that were already zero-length (lines the STT never
    reached) are tolerated; everything else must keep start < end.
    """
    for before, after in zip(original, snapped):
        if after.end_s < after.start_s:
            return False
        if before.start_s < before.end_s and not after.start_s < after.end_s:
            return False
    for current, following in zip(snapped, snapped[1:]):
        if following.start_s < current.start_s:
            return False
    return True
