"""Narration Aligner: per-line timing and PCM segmentation for narration.

WHY: A synthesized narration arrives as one continuous PCM track, but
downstream mixing (BGM, sound effects) works per script line. The STT
engine gives word timestamps that never match the script token-for-token,
so line timing has to be reconciled from both sides.

HOW: Four stages: align (script lines vs STT words), detect (silence in
the raw PCM), snap (pull cuts into real pauses), split (byte-exact PCM
slicing). Each stage is a pure function over in-memory values and is
independently testable.

RULES:
- All times are float seconds
- No stage mutates its inputs or holds global state
- Silence detection backends are pluggable (see detectors/)
"""

__version__ = "0.1.0"
