"""nginx site management (Debian sites-available / sites-enabled layout)."""

from __future__ import annotations

from pathlib import Path

from adapters.config_renderer import overwrite
from core.errors import CommandError, ResourceConflictError
from core.interfaces.runner import CommandRunner


class NginxManager:
    """Writes, enables, validates and removes one nginx site."""

    def __init__(
        self,
        runner: CommandRunner,
        *,
        available_path: Path,
        enabled_path: Path,
        default_site: Path | None = None,
    ) -> None:
        self._runner = runner
        self.available_path = available_path
        self.enabled_path = enabled_path
        self.default_site = default_site

    def write_site(self, content: str) -> bool:
        return overwrite(self.available_path, content)

    def enable_site(self) -> None:
        """Point the sites-enabled link at the site file, replacing any old link."""

        self.enabled_path.parent.mkdir(parents=True, exist_ok=True)
        if self.enabled_path.is_symlink() or self.enabled_path.exists():
            self.enabled_path.unlink()
        self.enabled_path.symlink_to(self.available_path)

    def disable_default_site(self) -> bool:
        if self.default_site is None:
            return False
        if not (self.default_site.is_symlink() or self.default_site.exists()):
            return False
        self.default_site.unlink()
        return True

    def test_config(self) -> None:
        """Run `nginx -t`; a rejected config is a conflict, never reloaded."""

        try:
            self._runner.run(["nginx", "-t"])
        except CommandError as exc:
            raise ResourceConflictError(
                f"nginx rejected the configuration: {exc.stderr or exc}"
            ) from exc

    def remove_site(self) -> list[Path]:
        """Delete the enabled link and the site file; returns what was removed."""

        removed: list[Path] = []
        for path in (self.enabled_path, self.available_path):
            if path.is_symlink() or path.exists():
                path.unlink()
                removed.append(path)
        return removed

    def is_enabled(self) -> bool:
        return self.enabled_path.is_symlink() or self.enabled_path.exists()
