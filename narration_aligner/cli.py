"""Command-line interface for the narration aligner.

WHY: Users need a simple way to cut a narration track into per-line
clips from the terminal. The CLI wires together the full pipeline
(audio loading, script and STT word loading, alignment, silence
snapping, PCM slicing, and file saving) behind a single command.

HOW: Uses argparse to accept an audio file, optional script and words
files, PCM layout overrides, and detection knobs. With both a script and
a words file it runs the aligned split through NarrationSplitter; without
a script it splits by silence. Status messages go to stderr; output files
are saved next to the source (or to --output-dir).

RULES:
- Positional argument: narration audio (.wav, or raw PCM in any other file)
- WAV input: layout comes from the header; raw input: flags or env defaults
- --script / --words: explicit, else auto-discovered companion files
  ({stem}-script.txt, {stem}-words.json)
- A words file without a script is an error; a script without words falls
  back to a silence split targeting one segment per line
- Output naming: {stem}-line-NNN.wav, {stem}-boundaries.json, {stem}-joined.wav,
  numeric suffix for conflicts (-joined-2.wav)
- Status output goes to stderr (not stdout)
- Library errors exit with status 1
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from narration_aligner.audio.pcm import decode_wav, encode_wav, split_pcm_by_timestamps
from narration_aligner.config import (
    DEFAULT_BYTES_PER_SAMPLE,
    DEFAULT_CHANNELS,
    DEFAULT_MIN_SILENCE_S,
    DEFAULT_NOISE_DB,
    DEFAULT_PADDING_MS,
    DEFAULT_SAMPLE_RATE,
    DEFAULT_SNAP_DISTANCE_S,
    load_alignment_settings,
)
from narration_aligner.core.errors import NarrationAlignerError
from narration_aligner.core.inputs import (
    load_script_lines,
    load_words,
    resolve_companion_files,
)
from narration_aligner.core.ir import LineBoundary, PCMSplitConfig
from narration_aligner.detectors import DEFAULT_DETECTOR, DETECTORS
from narration_aligner.pipeline import NarrationSplitter, join_segments


def _status(msg: str) -> None:
    """Report progress ("Wrote ep01-line-003.wav") on stderr, flushed per line."""
    sys.stderr.write(msg + "\n")
    sys.stderr.flush()


def _fail(msg: str) -> None:
    print("Error: {}".format(msg), file=sys.stderr)
    sys.exit(1)


def _resolve_output_path(
    stem: str,
    suffix: str,
    output_dir: Path,
) -> Path:
    """Pick a file name for one clip or sidecar that no earlier run used.

    WHY: Finding the right --noise-db and --snap-distance for a narration
    takes several passes over the same file, and the clips from each pass
    are compared by ear. A later pass must leave the earlier clips alone.

    RULES:
    - ep01 + "-line-001.wav" → ep01-line-001.wav while that name is free
    - Taken → the pass number goes before the extension: ep01-line-001-2.wav,
      then -3, -4, ...
    - Each file picks its own number; line clips of one pass need not agree
    """
    path = output_dir / (stem + suffix)
    label, ext = Path(suffix).stem, Path(suffix).suffix
    pass_number = 2
    while path.exists():
        path = output_dir / "{}{}-{}{}".format(stem, label, pass_number, ext)
        pass_number += 1
    return path


def _save_output(content: bytes | str, stem: str, suffix: str, output_dir: Path) -> Path:
    """Write one output file with conflict avoidance and return its path."""
    path = _resolve_output_path(stem, suffix, output_dir)
    if isinstance(content, bytes):
        path.write_bytes(content)
    else:
        path.write_text(content, encoding="utf-8")
    return path


def _load_audio(audio_path: Path, args: argparse.Namespace) -> tuple:
    """Read the narration into (pcm, PCMSplitConfig).

    RULES:
    - .wav: rate, channels and width from the header; layout flags ignored
    - anything else: raw interleaved PCM described by the flags
    - noise floor and minimum silence always come from the flags
    """
    data = audio_path.read_bytes()
    if audio_path.suffix.lower() == ".wav":
        pcm, sample_rate, channels, bytes_per_sample = decode_wav(data)
        _status("  WAV input: {} Hz, {} channel(s), {}-bit".format(
            sample_rate, channels, bytes_per_sample * 8
        ))
    else:
        pcm = data
        sample_rate = args.sample_rate
        channels = args.channels
        bytes_per_sample = args.bytes_per_sample
        _status("  Raw PCM input: {} Hz, {} channel(s), {}-bit".format(
            sample_rate, channels, bytes_per_sample * 8
        ))

    config = PCMSplitConfig(
        sample_rate=sample_rate,
        channels=channels,
        bytes_per_sample=bytes_per_sample,
        noise_floor_db=args.noise_db,
        min_silence_s=args.min_silence,
        expected_segments=args.segments or 0,
    )
    return pcm, config


def _load_inputs(
    audio_path: Path,
    script_path: Optional[str],
    words_path: Optional[str],
) -> tuple:
    """Load script lines and STT words, explicit paths first.

    RULES:
    - Explicit --script overrides auto-discovered {stem}-script.txt
    - Explicit --words overrides auto-discovered {stem}-words.json

    Returns:
        Tuple of (lines or None, words or None).
    """
    companion = resolve_companion_files(audio_path)
    lines = None
    words = None

    if script_path:
        lines = load_script_lines(script_path)
        _status("  Script: {} ({} lines, explicit)".format(script_path, len(lines)))
    elif companion.script_path:
        lines = load_script_lines(companion.script_path)
        _status("  Script: {} ({} lines, auto-discovered)".format(
            companion.script_path, len(lines)
        ))

    if words_path:
        words = load_words(words_path)
        _status("  Words: {} ({} words, explicit)".format(words_path, len(words)))
    elif companion.words_path:
        words = load_words(companion.words_path)
        _status("  Words: {} ({} words, auto-discovered)".format(
            companion.words_path, len(words)
        ))

    return lines, words


def _boundaries_json(boundaries: List[LineBoundary], lines: List[str]) -> str:
    payload = [
        {
            "index": i + 1,
            "text": line,
            "start_ms": int(round(b.start_s * 1000)),
            "end_ms": int(round(b.end_s * 1000)),
        }
        for i, (line, b) in enumerate(zip(lines, boundaries))
    ]
    return json.dumps(payload, ensure_ascii=False, indent=2) + "\n"


def _run_pipeline(args: argparse.Namespace) -> None:
    """Execute the full split pipeline.

    HOW: Loads audio and companion inputs, runs the aligned or the
    silence-only split, then saves one WAV per segment, the boundaries
    JSON for aligned runs, and the joined WAV when requested.
    """
    input_path = Path(args.input_file).resolve()
    if not input_path.is_file():
        _fail("File not found: {}".format(input_path))

    output_dir = Path(args.output_dir).resolve() if args.output_dir else input_path.parent
    if not output_dir.is_dir():
        _fail("Output directory does not exist: {}".format(output_dir))

    stem = input_path.name.split(".", 1)[0]

    try:
        _status("Loading inputs...")
        pcm, config = _load_audio(input_path, args)
        lines, words = _load_inputs(input_path, args.script, args.words)
        if words and not lines:
            _fail("A words file needs a script file to align against")
        if lines and not words and not args.segments:
            # One clip per script line even without timestamps.
            config = dataclasses.replace(config, expected_segments=len(lines))

        detector = DETECTORS[args.detector]()
        splitter = NarrationSplitter(
            config,
            detector=detector,
            settings=load_alignment_settings(),
            snap_distance_s=args.snap_distance,
        )

        boundaries_text: Optional[str] = None
        if lines and words:
            _status("Aligning {} lines to {} STT words...".format(len(lines), len(words)))
            boundaries = splitter.boundaries_for(pcm, lines, words)
            segments = split_pcm_by_timestamps(
                pcm, boundaries, config.sample_rate, config.channels, config.bytes_per_sample
            )
            boundaries_text = _boundaries_json(boundaries, lines)
        else:
            _status("Splitting by {}...".format(detector.name))
            segments = splitter.split_without_script(pcm)

        _status("Saving {} segment(s)...".format(len(segments)))
        saved_files: List[Path] = []
        for i, segment in enumerate(segments):
            wav = encode_wav(
                segment, config.sample_rate, config.channels, config.bytes_per_sample
            )
            saved_files.append(
                _save_output(wav, stem, "-line-{:03d}.wav".format(i + 1), output_dir)
            )

        if boundaries_text is not None:
            saved_files.append(
                _save_output(boundaries_text, stem, "-boundaries.json", output_dir)
            )

        if args.join:
            joined = join_segments(segments, config, padding_ms=args.padding_ms)
            wav = encode_wav(
                joined, config.sample_rate, config.channels, config.bytes_per_sample
            )
            saved_files.append(_save_output(wav, stem, "-joined.wav", output_dir))

    except KeyboardInterrupt:
        _status("\nCancelled by user.")
        sys.exit(130)
    except (NarrationAlignerError, ValueError) as e:
        _fail(str(e))

    _status("")
    _status("Done! Saved {} file(s) to {}".format(len(saved_files), output_dir))
    for f in saved_files:
        _status("  {}".format(f.name))


def build_parser() -> argparse.ArgumentParser:
    """Declare the split's inputs, PCM layout flags and detection knobs."""
    parser = argparse.ArgumentParser(
        prog="narration_aligner",
        description="Split a narration track into per-line clips using its "
                    "script, STT word timestamps, and detected silence.",
    )

    parser.add_argument(
        "input_file",
        help="Path to the narration audio (.wav or raw PCM).",
    )

    parser.add_argument(
        "--script",
        default=None,
        help="Script file, one line of narration per text line.",
    )

    parser.add_argument(
        "--words",
        default=None,
        help='STT words JSON: [{"word": ..., "start_ms": ..., "end_ms": ...}, ...].',
    )

    parser.add_argument(
        "--segments",
        type=int,
        default=None,
        help="Expected segment count for a split without a script.",
    )

    parser.add_argument(
        "--output-dir",
        default=None,
        help="Directory to save output files (default: same as input file).",
    )

    parser.add_argument(
        "--detector",
        choices=sorted(DETECTORS.keys()),
        default=DEFAULT_DETECTOR,
        help="Silence detection backend (default: %(default)s).",
    )

    parser.add_argument(
        "--sample-rate",
        type=int,
        default=DEFAULT_SAMPLE_RATE,
        help="Raw PCM sample rate in Hz (default: %(default)s).",
    )

    parser.add_argument(
        "--channels",
        type=int,
        default=DEFAULT_CHANNELS,
        help="Raw PCM channel count (default: %(default)s).",
    )

    parser.add_argument(
        "--bytes-per-sample",
        type=int,
        default=DEFAULT_BYTES_PER_SAMPLE,
        help="Raw PCM sample width in bytes (default: %(default)s).",
    )

    parser.add_argument(
        "--noise-db",
        type=float,
        default=DEFAULT_NOISE_DB,
        help="Silence threshold in dBFS (default: %(default)s).",
    )

    parser.add_argument(
        "--min-silence",
        type=float,
        default=DEFAULT_MIN_SILENCE_S,
        help="Minimum silence length in seconds (default: %(default)s).",
    )

    parser.add_argument(
        "--snap-distance",
        type=float,
        default=DEFAULT_SNAP_DISTANCE_S,
        help="Maximum distance in seconds a cut may move to reach silence "
             "(default: %(default)s).",
    )

    parser.add_argument(
        "--join",
        action="store_true",
        help="Also write all segments joined with silence padding.",
    )

    parser.add_argument(
        "--padding-ms",
        type=int,
        default=DEFAULT_PADDING_MS,
        help="Silence between joined segments in ms (default: %(default)s).",
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log alignment and snapping decisions.",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Run one split from command-line arguments.

    Both the ``narration-aligner`` script and ``python -m narration_aligner``
    land here with argv=None; tests pass an argument list instead.
    --verbose turns on the aligner's per-line and snapper's per-cut logging.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    _run_pipeline(args)


if __name__ == "__main__":
    main()
