"""Backend `.env` materialization.

Invariant: secrets are written at most once per install directory. An existing
`.env` is never touched, because regenerating `APP_SECRET`/`JWT_SECRET` would
invalidate every issued session and token.
"""

from __future__ import annotations

import base64
import os
import re
import secrets
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

SECRET_BYTES = 32

APP_SECRET_KEY = "APP_SECRET"
JWT_SECRET_KEY = "JWT_SECRET"
CORS_ORIGINS_KEY = "CORS_ORIGINS"


@dataclass
class EnvFileOutcome:
    """What `materialize_env_file` did."""

    created: bool
    from_template: bool = False
    keys_written: list[str] = field(default_factory=list)


def generate_secret(num_bytes: int = SECRET_BYTES) -> str:
    """Random secret as base64 text (32 bytes -> 44 chars)."""

    return base64.b64encode(secrets.token_bytes(num_bytes)).decode("ascii")


def cors_origins_for(domain: str) -> str:
    return f"http://{domain},https://{domain}"


def parse_env_text(text: str) -> dict[str, str]:
    """Parse `KEY=value` lines, ignoring blanks and comments."""

    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        if key:
            data[key] = value.strip().strip('"').strip("'")
    return data


def set_env_values(text: str, values: Mapping[str, str]) -> str:
    """Replace `KEY=...` assignments in `text`; append keys that are missing."""

    lines = text.splitlines()
    pending = dict(values)
    for index, line in enumerate(lines):
        for key in list(pending):
            if re.match(rf"^\s*{re.escape(key)}\s*=", line):
                lines[index] = f"{key}={pending.pop(key)}"
                break
    lines.extend(f"{key}={value}" for key, value in pending.items())
    return "\n".join(lines) + "\n"


def materialize_env_file(
    *,
    env_path: Path,
    template_path: Path,
    domain: str | None = None,
) -> EnvFileOutcome:
    """Create `env_path` from `template_path` with fresh secrets, unless it exists."""

    if env_path.exists():
        return EnvFileOutcome(created=False)

    from_template = template_path.is_file()
    text = template_path.read_text(encoding="utf-8") if from_template else ""

    values = {
        APP_SECRET_KEY: generate_secret(),
        JWT_SECRET_KEY: generate_secret(),
    }
    if domain:
        values[CORS_ORIGINS_KEY] = cors_origins_for(domain)

    env_path.parent.mkdir(parents=True, exist_ok=True)
    fd = os.open(env_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as handle:
        handle.write(set_env_values(text, values))

    return EnvFileOutcome(
        created=True,
        from_template=from_template,
        keys_written=sorted(values),
    )
