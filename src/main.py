"""Console entry point.

- Target of the `check-rsat` script declared in pyproject.toml.
- Also allows `python -m main` from inside `src/`.
"""

from __future__ import annotations

import sys

# Nagios and Windows terminals may default to a non UTF-8 encoding.
if sys.platform == "win32":
    sys.stdout.reconfigure(encoding="utf-8")
    sys.stderr.reconfigure(encoding="utf-8")

from cli.main import run


def main() -> None:
    run()


if __name__ == "__main__":
    main()
