"""Rendering of the systemd unit and the nginx site (Jinja2).

Output depends only on `AppSettings`, so identical settings always render
byte-identical files; both files are overwritten on every install.
"""

from __future__ import annotations

from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from core.config import AppSettings


_TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

UNIT_TEMPLATE = "backend.service.j2"
SITE_TEMPLATE = "nginx_site.conf.j2"

APP_MODULE = "app.main:app"
RESTART_SEC = 5
UNIT_DESCRIPTION = "VPN Panel Pro Backend (FastAPI)"

GZIP_TYPES: tuple[str, ...] = (
    "text/plain",
    "text/css",
    "application/json",
    "application/javascript",
    "text/xml",
    "application/xml",
    "application/xml+rss",
    "text/javascript",
)


def _get_env() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(_TEMPLATES_DIR)),
        undefined=StrictUndefined,
        keep_trailing_newline=True,
        autoescape=False,
    )


def render_unit(*, settings: AppSettings) -> str:
    """Render the backend service unit."""

    template = _get_env().get_template(UNIT_TEMPLATE)
    return template.render(
        description=UNIT_DESCRIPTION,
        user=settings.system_user,
        backend_dir=settings.backend_dir,
        venv_dir=settings.venv_dir,
        env_file=settings.env_file,
        app_module=APP_MODULE,
        host=settings.backend_host,
        port=settings.backend_port,
        restart_sec=RESTART_SEC,
    )


def render_site(*, settings: AppSettings) -> str:
    """Render the nginx site: `/api/` to the backend, everything else to the SPA."""

    template = _get_env().get_template(SITE_TEMPLATE)
    return template.render(
        server_name=settings.server_name,
        frontend_dir=settings.frontend_dir,
        gzip_types=GZIP_TYPES,
        host=settings.backend_host,
        port=settings.backend_port,
    )


def overwrite(path: Path, content: str) -> bool:
    """Unconditionally write `content` to `path`; returns True if it differed."""

    path.parent.mkdir(parents=True, exist_ok=True)
    changed = not path.is_file() or path.read_text(encoding="utf-8") != content
    path.write_text(content, encoding="utf-8")
    return changed
