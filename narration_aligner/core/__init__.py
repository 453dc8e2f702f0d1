"""Core value types, errors, input loading, and the alignment algorithms.

WHY: The core package holds the parts that never touch PCM bytes or
external processes: the value types every stage exchanges, the error
taxonomy, script/words loading, the character aligner, and the boundary
snapper.

HOW: ir.py defines the data structures, errors.py the exceptions,
inputs.py loads script and STT word files, aligner.py maps script lines
onto STT words, snapper.py moves the resulting cuts onto detected
silence.

RULES:
- Everything here is synchronous; aligner.py and snapper.py are pure
- No module in core imports from audio/ or detectors/
"""
