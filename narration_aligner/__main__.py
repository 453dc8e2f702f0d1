"""Package entry point for ``python -m narration_aligner``.

WHY: Users run the splitter as ``python -m narration_aligner ep01.wav``.
Python's ``-m`` flag looks for ``__main__.py`` inside the package and
executes it.

HOW: Delegates to the CLI's main() function.
"""

from narration_aligner.cli import main

if __name__ == "__main__":
    main()
