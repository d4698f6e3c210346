"""Backend virtualenv builder."""

from __future__ import annotations

from pathlib import Path

from core.errors import ProvisioningError
from core.interfaces.runner import CommandRunner
from core.logger import get_logger

logger = get_logger(__name__)


def build_virtualenv(
    runner: CommandRunner,
    *,
    python_bin: str,
    venv_dir: Path,
    requirements: Path,
    as_user: str | None = None,
) -> None:
    """Create (or refresh) `venv_dir` and reinstall `requirements` into it.

    Dependencies are reinstalled on every run so manifest changes pulled with
    the source are picked up.
    """

    if not requirements.is_file():
        raise ProvisioningError(f"Dependency manifest not found: {requirements}")

    runner.run([python_bin, "-m", "venv", str(venv_dir)], as_user=as_user)
    pip = str(venv_dir / "bin" / "pip")
    runner.run([pip, "install", "--upgrade", "pip"], as_user=as_user)
    logger.info("Installing backend dependencies from %s", requirements)
    runner.run([pip, "install", "-r", str(requirements)], as_user=as_user)
