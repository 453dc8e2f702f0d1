"""Block-aligned operations on raw interleaved PCM buffers.

WHY: The narration is handled as raw PCM so every cut is byte-exact and
lossless, with no decoder padding and no re-encoding. The
price is that the buffer carries no header, so every helper needs the
layout (rate, channels, sample width) from the caller.

HOW: Pure functions over bytes. Time → byte conversion is
seconds × sample_rate × channels × bytes_per_sample, floored to a whole
sample frame (channels × bytes_per_sample) so a cut never splits a
sample or swaps channels.

RULES:
- Offsets always round down to block alignment
- Out-of-range timestamps are clipped to the buffer, never an error
- An empty or inverted range yields b"" (not an error)
- concat_pcm is plain concatenation (PCM has no framing)
- encode_wav writes the canonical 44-byte RIFF/WAVE PCM header
"""

from __future__ import annotations

import io
import math
import struct
import wave

from narration_aligner.core.ir import LineBoundary

WAV_HEADER_SIZE = 44
_WAVE_FORMAT_PCM = 1

# Absorbs float noise such as 1.1 * 48000 == 52799.99999999999.
_OFFSET_EPSILON = 1e-6


def _byte_offset(seconds: float, bytes_per_second: int, block_align: int) -> int:
    offset = math.floor(seconds * bytes_per_second + _OFFSET_EPSILON)
    return (offset // block_align) * block_align


def split_pcm_by_timestamps(
    pcm: bytes,
    boundaries: list[LineBoundary],
    sample_rate: int,
    channels: int,
    bytes_per_sample: int,
) -> list[bytes]:
    """Slice a PCM buffer into one segment per boundary.

    Args:
        pcm: Raw interleaved PCM.
        boundaries: Time spans in seconds; one output segment each.
        sample_rate: Samples per second per channel.
        channels: Interleaved channel count.
        bytes_per_sample: Width of one sample of one channel.

    Returns:
        Segments in boundary order. Contiguous boundaries covering the
        whole buffer concatenate back to exactly ``pcm``.
    """
    block_align = channels * bytes_per_sample
    bytes_per_second = sample_rate * block_align
    segments: list[bytes] = []
    for b in boundaries:
        start = max(_byte_offset(b.start_s, bytes_per_second, block_align), 0)
        end = min(_byte_offset(b.end_s, bytes_per_second, block_align), len(pcm))
        if start >= end:
            segments.append(b"")
            continue
        segments.append(pcm[start:end])
    return segments


def concat_pcm(segments: list[bytes]) -> bytes:
    """Join PCM segments back to back."""
    return b"".join(segments)


def generate_silence_pcm(
    duration_ms: int,
    sample_rate: int,
    channels: int,
    bytes_per_sample: int,
) -> bytes:
    """Zero-filled PCM of the given duration.

    Zero is silence for signed formats, which is everything the pipeline
    produces (s16le narration).
    """
    samples = sample_rate * duration_ms // 1000
    return bytes(samples * channels * bytes_per_sample)


def pcm_duration_s(
    pcm: bytes,
    sample_rate: int,
    channels: int,
    bytes_per_sample: int,
) -> float:
    return len(pcm) / float(sample_rate * channels * bytes_per_sample)


def encode_wav(
    pcm: bytes,
    sample_rate: int,
    channels: int,
    bytes_per_sample: int,
) -> bytes:
    """Prepend a canonical 44-byte RIFF/WAVE header to raw PCM.

    HOW: RIFF chunk, then a 16-byte ``fmt `` chunk (format tag 1 = PCM),
    then the ``data`` chunk. All integers little-endian.
    """
    block_align = channels * bytes_per_sample
    header = struct.pack(
        "<4sI4s4sIHHIIHH4sI",
        b"RIFF",
        36 + len(pcm),
        b"WAVE",
        b"fmt ",
        16,
        _WAVE_FORMAT_PCM,
        channels,
        sample_rate,
        sample_rate * block_align,
        block_align,
        bytes_per_sample * 8,
        b"data",
        len(pcm),
    )
    assert len(header) == WAV_HEADER_SIZE
    return header + pcm


def decode_wav(data: bytes) -> tuple[bytes, int, int, int]:
    """Read a PCM WAV file into (pcm, sample_rate, channels, bytes_per_sample).

    Raises:
        ValueError: The data is not a PCM WAV file.
    """
    try:
        with wave.open(io.BytesIO(data), "rb") as wav_file:
            pcm = wav_file.readframes(wav_file.getnframes())
            return (
                pcm,
                wav_file.getframerate(),
                wav_file.getnchannels(),
                wav_file.getsampwidth(),
            )
    except (wave.Error, EOFError) as exc:
        raise ValueError("not a PCM WAV file: {}".format(exc)) from exc
