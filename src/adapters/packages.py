"""apt-get wrapper.

apt-get is itself idempotent: installing an already-present package is a no-op,
so `ensure_packages` can run on every install.
"""

from __future__ import annotations

from collections.abc import Sequence

from core.interfaces.runner import CommandRunner
from core.logger import get_logger

logger = get_logger(__name__)

BASE_PACKAGES: tuple[str, ...] = (
    "git",
    "curl",
    "unzip",
    "ca-certificates",
    "nginx",
    "python3",
    "python3-venv",
    "python3-pip",
    "sqlite3",
)

CERTBOT_PACKAGES: tuple[str, ...] = ("certbot", "python3-certbot-nginx")

_APT_ENV = {"DEBIAN_FRONTEND": "noninteractive"}


def update_index(runner: CommandRunner) -> None:
    runner.run(["apt-get", "update", "-y"], env=_APT_ENV)


def ensure_packages(
    runner: CommandRunner,
    packages: Sequence[str],
    *,
    refresh: bool = True,
) -> None:
    """Install `packages`, refreshing the index first unless told otherwise."""

    if refresh:
        update_index(runner)
    logger.info("Installing packages: %s", " ".join(packages))
    runner.run(["apt-get", "install", "-y", *packages], env=_APT_ENV)
