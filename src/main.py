"""Run the CLI with `python src/main.py ...` during development.

The installed console script (`vpnpanel`) points at `cli.main:run` directly.
"""

from __future__ import annotations

from cli.main import run


def main() -> None:
    run()


if __name__ == "__main__":
    main()
