"""Provisioner configuration.

Layers, lowest to highest:
- field defaults
- environment variables (same names the shell installer used: REPO_URL, DOMAIN, ...)
- CLI flags, passed as init kwargs by the CLI layer
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Central configuration shared by the Provisioner, Decommissioner and doctor."""

    model_config = SettingsConfigDict(
        env_prefix="",
        extra="ignore",
        case_sensitive=False,
    )

    repo_url: str | None = Field(
        default=None,
        description="Git repository to deploy (required by install).",
    )
    repo_branch: str = Field(
        default="main",
        min_length=1,
        description="Branch to clone or fast-forward to.",
    )
    install_dir: Path = Field(
        default=Path("/opt/vpnpanel"),
        description="Root of the deployed tree; also the service account home.",
    )
    system_user: str = Field(
        default="vpnpanel",
        min_length=1,
        max_length=32,
        description="OS account that owns the tree and runs the backend.",
    )
    python_bin: str = Field(
        default="python3",
        min_length=1,
        description="Interpreter used to create the backend virtualenv.",
    )
    backend_host: str = Field(
        default="127.0.0.1",
        min_length=1,
        description="Address uvicorn binds to and nginx proxies to.",
    )
    backend_port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Port uvicorn binds to and nginx proxies to.",
    )
    domain: str | None = Field(
        default=None,
        description="Public domain for the nginx server_name and CORS origins.",
    )
    enable_https: bool = Field(
        default=False,
        description="Request a Let's Encrypt certificate via certbot.",
    )
    email: str | None = Field(
        default=None,
        description="Contact email for certbot registration.",
    )

    service_name: str = Field(default="vpnpanel-backend", min_length=1)
    site_name: str = Field(default="vpnpanel.conf", min_length=1)
    systemd_unit_dir: Path = Field(default=Path("/etc/systemd/system"))
    nginx_sites_available: Path = Field(default=Path("/etc/nginx/sites-available"))
    nginx_sites_enabled: Path = Field(default=Path("/etc/nginx/sites-enabled"))

    log_level: str = Field(default="INFO", description="Root log level.")
    log_file: Path | None = Field(
        default=None,
        description="Optional file that receives a plain-text copy of the run log.",
    )
    http_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Timeout for doctor HTTP probes (seconds).",
    )

    @field_validator("repo_url", "domain", "email", "log_file", mode="before")
    @classmethod
    def _blank_is_unset(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, value: object) -> object:
        return value.strip().upper() if isinstance(value, str) else value

    # Derived layout (shared by install, uninstall and doctor).

    @property
    def source_dir(self) -> Path:
        return self.install_dir / "src"

    @property
    def backend_dir(self) -> Path:
        return self.source_dir / "backend"

    @property
    def frontend_dir(self) -> Path:
        return self.source_dir / "frontend"

    @property
    def venv_dir(self) -> Path:
        return self.backend_dir / ".venv"

    @property
    def env_file(self) -> Path:
        return self.backend_dir / ".env"

    @property
    def env_template(self) -> Path:
        return self.backend_dir / ".env.example"

    @property
    def requirements_file(self) -> Path:
        return self.backend_dir / "requirements.txt"

    @property
    def frontend_entry(self) -> Path:
        return self.frontend_dir / "index.html"

    @property
    def unit_path(self) -> Path:
        return self.systemd_unit_dir / f"{self.service_name}.service"

    @property
    def site_available_path(self) -> Path:
        return self.nginx_sites_available / self.site_name

    @property
    def site_enabled_path(self) -> Path:
        return self.nginx_sites_enabled / self.site_name

    @property
    def default_site_path(self) -> Path:
        return self.nginx_sites_enabled / "default"

    @property
    def server_name(self) -> str:
        return self.domain or "_"

    @property
    def https_ready(self) -> bool:
        """True when HTTPS was requested and certbot has everything it needs."""

        return self.enable_https and bool(self.domain) and bool(self.email)


def build_settings(**overrides: object) -> AppSettings:
    """Build settings, letting only explicitly supplied flags win over env/defaults."""

    supplied = {key: value for key, value in overrides.items() if value is not None}
    return AppSettings(**supplied)
