from __future__ import annotations

import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from core.config import AppSettings
from core.domain.models import CommandResult
from core.errors import CommandError

_ENV_KEYS = (
    "REPO_URL",
    "REPO_BRANCH",
    "INSTALL_DIR",
    "SYSTEM_USER",
    "PYTHON_BIN",
    "BACKEND_HOST",
    "BACKEND_PORT",
    "DOMAIN",
    "ENABLE_HTTPS",
    "EMAIL",
    "SERVICE_NAME",
    "SITE_NAME",
    "SYSTEMD_UNIT_DIR",
    "NGINX_SITES_AVAILABLE",
    "NGINX_SITES_ENABLED",
    "LOG_LEVEL",
    "LOG_FILE",
)

ENV_TEMPLATE = """# backend settings
APP_SECRET=change-me
JWT_SECRET=change-me
CORS_ORIGINS=http://localhost:5173
DATABASE_URL=sqlite:///./panel.db
"""

INDEX_HTML = """<!doctype html>
<html><body>
<script>
const API = "http://127.0.0.1:8000";
fetch(API + "/health");
</script>
</body></html>
"""


def make_checkout(dest: Path) -> None:
    """Materialize the minimal tree a real clone of the panel repo would produce."""

    (dest / ".git").mkdir(parents=True, exist_ok=True)
    backend = dest / "backend"
    backend.mkdir(parents=True, exist_ok=True)
    (backend / ".env.example").write_text(ENV_TEMPLATE, encoding="utf-8")
    (backend / "requirements.txt").write_text("fastapi\nuvicorn\n", encoding="utf-8")
    frontend = dest / "frontend"
    frontend.mkdir(parents=True, exist_ok=True)
    (frontend / "index.html").write_text(INDEX_HTML, encoding="utf-8")


@dataclass
class Call:
    argv: list[str]
    as_user: str | None = None


@dataclass
class FakeRunner:
    """Records commands; simulates `git clone` and scripted failures."""

    calls: list[Call] = field(default_factory=list)
    failures: dict[tuple[str, ...], tuple[int, str]] = field(default_factory=dict)

    def fail(self, *prefix: str, returncode: int = 1, stderr: str = "boom") -> None:
        self.failures[tuple(prefix)] = (returncode, stderr)

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
        self.calls.append(Call(argv=command, as_user=as_user))

        for prefix, (returncode, stderr) in self.failures.items():
            if tuple(command[: len(prefix)]) == prefix:
                if check:
                    raise CommandError(command, returncode, stderr)
                return CommandResult(argv=command, returncode=returncode, stderr=stderr)

        if command[:2] == ["git", "clone"]:
            make_checkout(Path(command[-1]))
        return CommandResult(argv=command)

    def commands(self) -> list[list[str]]:
        return [call.argv for call in self.calls]

    def ran(self, *prefix: str) -> bool:
        return any(tuple(argv[: len(prefix)]) == prefix for argv in self.commands())


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def host_paths(tmp_path: Path) -> dict[str, Path]:
    paths = {
        "install_dir": tmp_path / "opt" / "vpnpanel",
        "systemd_unit_dir": tmp_path / "etc" / "systemd" / "system",
        "nginx_sites_available": tmp_path / "etc" / "nginx" / "sites-available",
        "nginx_sites_enabled": tmp_path / "etc" / "nginx" / "sites-enabled",
    }
    paths["nginx_sites_available"].mkdir(parents=True)
    paths["nginx_sites_enabled"].mkdir(parents=True)
    (paths["nginx_sites_enabled"] / "default").write_text("server {}\n", encoding="utf-8")
    return paths


@pytest.fixture
def make_settings(host_paths: dict[str, Path]):
    def _make(**overrides: object) -> AppSettings:
        values: dict[str, object] = {
            "repo_url": "https://github.com/example/vpnpanel.git",
            **host_paths,
        }
        values.update(overrides)
        return AppSettings(**values)

    return _make


@pytest.fixture
def as_root(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(os, "geteuid", lambda: 0)
