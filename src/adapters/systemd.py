"""systemctl wrapper for the backend unit and nginx."""

from __future__ import annotations

from pathlib import Path

from adapters.config_renderer import overwrite
from core.domain.models import CommandResult
from core.interfaces.runner import CommandRunner


class SystemdManager:
    """Thin façade over `systemctl`; `check` is forwarded so callers pick the policy."""

    def __init__(self, runner: CommandRunner) -> None:
        self._runner = runner

    def _systemctl(self, *args: str, check: bool = True) -> CommandResult:
        return self._runner.run(["systemctl", *args], check=check)

    def daemon_reload(self) -> None:
        self._systemctl("daemon-reload")

    def enable(self, unit: str) -> None:
        self._systemctl("enable", unit)

    def restart(self, unit: str, *, check: bool = True) -> CommandResult:
        return self._systemctl("restart", unit, check=check)

    def stop(self, unit: str, *, check: bool = True) -> CommandResult:
        return self._systemctl("stop", unit, check=check)

    def disable(self, unit: str, *, check: bool = True) -> CommandResult:
        return self._systemctl("disable", unit, check=check)

    def is_active(self, unit: str) -> bool:
        return self._systemctl("is-active", "--quiet", unit, check=False).ok

    def install_unit(self, *, path: Path, content: str) -> bool:
        """Write the unit file (always) and reload the unit cache."""

        changed = overwrite(path, content)
        self.daemon_reload()
        return changed

    def remove_unit(self, path: Path) -> bool:
        """Delete the unit file if present and reload the unit cache."""

        existed = path.exists()
        path.unlink(missing_ok=True)
        self.daemon_reload()
        return existed
