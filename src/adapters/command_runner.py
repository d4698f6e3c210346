"""subprocess-backed `CommandRunner`."""

from __future__ import annotations

import os
import subprocess
from collections.abc import Mapping, Sequence
from pathlib import Path

from core.domain.models import CommandResult
from core.errors import CommandError
from core.interfaces.runner import CommandRunner
from core.logger import get_logger

logger = get_logger(__name__)


class SubprocessRunner(CommandRunner):
    """Runs commands on the local host, capturing output."""

    def run(
        self,
        argv: Sequence[str],
        *,
        as_user: str | None = None,
        check: bool = True,
        env: Mapping[str, str] | None = None,
        cwd: Path | None = None,
    ) -> CommandResult:
        command = [str(part) for part in argv]
        if as_user:
            command = ["sudo", "-u", as_user, "-H", *command]

        merged_env = None
        if env:
            merged_env = {**os.environ, **env}

        logger.debug("$ %s", " ".join(command))
        try:
            completed = subprocess.run(
                command,
                capture_output=True,
                text=True,
                env=merged_env,
                cwd=str(cwd) if cwd else None,
                check=False,
            )
        except FileNotFoundError as exc:
            if check:
                raise CommandError(command, 127, str(exc)) from exc
            return CommandResult(argv=command, returncode=127, stderr=str(exc))

        result = CommandResult(
            argv=command,
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )
        if result.stdout.strip():
            logger.debug(result.stdout.strip())
        if check and not result.ok:
            raise CommandError(command, result.returncode, result.stderr)
        return result
