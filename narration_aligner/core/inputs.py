"""Loading script lines and STT word files for a narration.

WHY: The CLI (and any batch caller) starts from files on disk: the
narration audio, the script it was synthesized from, and the STT word
timestamps recognized from it. Finding and parsing those consistently
keeps the entry points thin.

HOW: resolve_companion_files() discovers files by naming convention next
to the audio file. load_script_lines() reads one script line per text
line. load_words() reads a JSON array of STT words, validates it against
WORDS_SCHEMA with jsonschema, and converts milliseconds to seconds.

RULES:
- Companion files: {stem}-script.txt and {stem}-words.json next to audio
- Script files: one line per text line, strip whitespace, skip blank lines
- Words files: [{"word": str, "start_ms": number, "end_ms": number}, ...]
- end_ms must not precede start_ms
- Invalid files raise ValueError with the offending location
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

import jsonschema

from narration_aligner.core.ir import WordTimestamp

WORDS_SCHEMA: dict = {
    "type": "array",
    "items": {
        "type": "object",
        "required": ["word", "start_ms", "end_ms"],
        "properties": {
            "word": {"type": "string"},
            "start_ms": {"type": "number", "minimum": 0},
            "end_ms": {"type": "number", "minimum": 0},
        },
    },
}


@dataclass
class CompanionFiles:
    """Resolved paths to the optional script and words files.

    RULES:
    - script_path: {stem}-script.txt, or None if not found
    - words_path: {stem}-words.json, or None if not found
    """

    script_path: Path | None = None
    words_path: Path | None = None


def resolve_companion_files(audio_path: str | Path) -> CompanionFiles:
    """Discover {stem}-script.txt and {stem}-words.json next to the audio.

    The stem strips every extension ("ep01.pcm.raw" → "ep01").
    """
    audio = Path(audio_path)
    stem = audio.name
    while "." in stem:
        stem = stem.rsplit(".", 1)[0]

    result = CompanionFiles()

    script_path = audio.parent / "{}-script.txt".format(stem)
    if script_path.is_file():
        result.script_path = script_path

    words_path = audio.parent / "{}-words.json".format(stem)
    if words_path.is_file():
        result.words_path = words_path

    return result


def load_script_lines(path: str | Path) -> list[str]:
    """Load script lines, one per non-blank text line."""
    lines: list[str] = []
    for line in Path(path).read_text(encoding="utf-8").splitlines():
        stripped = line.strip()
        if stripped:
            lines.append(stripped)
    return lines


def parse_words(payload: object) -> list[WordTimestamp]:
    """Validate a decoded words payload and convert it to WordTimestamp.

    Raises:
        ValueError: The payload does not match WORDS_SCHEMA, or a word
            ends before it starts.
    """
    try:
        jsonschema.validate(instance=payload, schema=WORDS_SCHEMA)
    except jsonschema.ValidationError as exc:
        location = "/".join(str(p) for p in exc.absolute_path) or "<root>"
        raise ValueError("invalid words data at {}: {}".format(location, exc.message)) from exc

    words: list[WordTimestamp] = []
    for i, item in enumerate(payload):
        if item["end_ms"] < item["start_ms"]:
            raise ValueError("word {} ends before it starts".format(i))
        words.append(WordTimestamp(
            word=item["word"],
            start_s=item["start_ms"] / 1000.0,
            end_s=item["end_ms"] / 1000.0,
        ))
    return words


def load_words(path: str | Path) -> list[WordTimestamp]:
    """Load and validate an STT words JSON file."""
    try:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError("words file is not valid JSON: {}".format(exc)) from exc
    return parse_words(payload)
