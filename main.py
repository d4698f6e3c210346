"""Run `vpnpanel` from a source checkout without installing it.

    sudo python3 main.py install --repo https://github.com/USER/REPO.git

Packages live under `src/`, so that directory is put on `sys.path` first.
"""

from __future__ import annotations

import sys
from pathlib import Path

SRC_DIR = Path(__file__).resolve().parent / "src"


def main() -> None:
    if str(SRC_DIR) not in sys.path:
        sys.path.insert(0, str(SRC_DIR))

    from cli.main import run  # noqa: PLC0415

    run()


if __name__ == "__main__":
    main()
