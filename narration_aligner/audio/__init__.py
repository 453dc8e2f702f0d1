"""Byte-level PCM helpers and silence-based splitting.

WHY: Everything that touches raw audio bytes lives here, away from the
pure timing logic in core/.

HOW: pcm.py holds block-aligned slicing, concatenation, silence
generation and WAV encoding. silence.py runs a detector backend and
splits PCM at the widest silences when no script is available.

RULES:
- Offsets are always block-aligned (channels × bytes_per_sample)
- Nothing here mutates its input buffers
"""
