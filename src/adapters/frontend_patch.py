"""Frontend API endpoint patch.

The static frontend ships with an absolute backend URL in a single constant;
behind nginx it must call the `/api` proxy path instead.
"""

from __future__ import annotations

import re
from pathlib import Path

PROXY_API_PATH = "/api"

_API_CONST = re.compile(r'const API = ".*?";')


def patch_api_endpoint(entry: Path, *, api_path: str = PROXY_API_PATH) -> bool:
    """Rewrite `const API = "...";` in `entry`. Returns False when nothing matched.

    Raises `FileNotFoundError` when `entry` is missing.
    """

    html = entry.read_text(encoding="utf-8")
    replacement = f'const API = "{api_path}";'
    patched, count = _API_CONST.subn(replacement, html)
    if count == 0:
        return False
    if patched != html:
        entry.write_text(patched, encoding="utf-8")
    return True
