"""Service account helpers."""

from __future__ import annotations

import pwd
from pathlib import Path

from core.interfaces.runner import CommandRunner

NOLOGIN_SHELL = "/usr/sbin/nologin"


def user_exists(name: str) -> bool:
    try:
        pwd.getpwnam(name)
    except KeyError:
        return False
    return True


def create_system_user(runner: CommandRunner, *, name: str, home: Path) -> None:
    """Create a login-disabled system account whose home is `home`."""

    runner.run(["useradd", "-r", "-m", "-d", str(home), "-s", NOLOGIN_SHELL, name])


def ensure_owned_dir(runner: CommandRunner, *, path: Path, owner: str) -> None:
    """Create `path` if needed and (re)apply recursive ownership."""

    runner.run(["mkdir", "-p", str(path)])
    runner.run(["chown", "-R", f"{owner}:{owner}", str(path)])


def chown(runner: CommandRunner, *, path: Path, owner: str) -> None:
    runner.run(["chown", f"{owner}:{owner}", str(path)])
