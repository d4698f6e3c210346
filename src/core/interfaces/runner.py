"""Command runner contract.

Rules:
- `run` is synchronous; every collaborator (apt, git, systemctl, nginx,
  certbot) is a blocking process call with no timeout of its own.
- `as_user` runs the command as that account instead of the caller.
- `check=True` raises `core.errors.CommandError` on a non-zero exit.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Protocol, runtime_checkable

from core.domain.models import CommandResult


@runtime_checkable
class CommandRunner(Protocol):
    """Minimal contract to execute a host command."""

    def run(
        self,
        argv: Sequence[str],
        *,
        as_user: str | None = None,
        check: bool = True,
        env: Mapping[str, str] | None = None,
        cwd: Path | None = None,
    ) -> CommandResult:
        ...
