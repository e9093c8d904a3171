"""Run `wroclaw-transit` from a checkout: `python -m main mpk post-info 20329`.

Puts `src/` on `sys.path` so no editable install is needed.
"""

from __future__ import annotations

import sys
from pathlib import Path


def main() -> None:
    project_root = Path(__file__).resolve().parent
    src = project_root / "src"
    if str(src) not in sys.path:
        sys.path.insert(0, str(src))

    from cli.main import run  # noqa: PLC0415

    run()


if __name__ == "__main__":
    main()
