"""`python -m main` from inside `src/`, same as the `wroclaw-transit` script."""

from __future__ import annotations

import sys

# Polish stop names break cp1252 consoles on Windows.
if sys.platform == "win32":
    sys.stdout.reconfigure(encoding="utf-8")
    sys.stderr.reconfigure(encoding="utf-8")

from cli.main import run


def main() -> None:
    run()


if __name__ == "__main__":
    main()
