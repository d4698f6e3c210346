"""Doctor command: read-only diagnostics of a deployment."""

from __future__ import annotations

import asyncio
import shutil
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from adapters.command_runner import SubprocessRunner
from adapters.env_file import APP_SECRET_KEY, JWT_SECRET_KEY, parse_env_text
from adapters.http_client import probe, public_base_url
from adapters.systemd import SystemdManager
from core.config import AppSettings, build_settings
from core.domain.models import DoctorCheck
from core.interfaces.runner import CommandRunner

app = typer.Typer(no_args_is_help=True, help="Deployment diagnostics and configuration checks.")

_console = Console()

REQUIRED_TOOLS: tuple[str, ...] = ("apt-get", "git", "nginx", "systemctl")
OPTIONAL_TOOLS: tuple[str, ...] = ("certbot",)

_STATUS_STYLES = {"OK": "green", "WARN": "yellow", "FAIL": "red", "OPTIONAL": "dim"}


def _check_path(name: str, path: Path, *, missing: str = "FAIL") -> DoctorCheck:
    if path.exists() or path.is_symlink():
        return DoctorCheck(name=name, status="OK", detail=str(path))
    return DoctorCheck(name=name, status=missing, detail=f"{path} not found")


def _check_env_file(path: Path) -> DoctorCheck:
    if not path.is_file():
        return DoctorCheck(name="Env file", status="FAIL", detail=f"{path} not found")
    values = parse_env_text(path.read_text(encoding="utf-8"))
    missing = [key for key in (APP_SECRET_KEY, JWT_SECRET_KEY) if not values.get(key)]
    if missing:
        return DoctorCheck(name="Env file", status="WARN", detail=f"empty: {', '.join(missing)}")
    return DoctorCheck(name="Env file", status="OK", detail="secrets present")


async def _probe_site(settings: AppSettings) -> list[DoctorCheck]:
    base = public_base_url(settings)
    urls = {"HTTP frontend": f"{base}/", "HTTP API": f"{base}/api/"}
    results = await asyncio.gather(*(probe(url, settings=settings) for url in urls.values()))
    return [
        DoctorCheck(name=name, status="OK" if ok else "FAIL", detail=f"{url} -> {detail}")
        for (name, url), (ok, detail) in zip(urls.items(), results)
    ]


def collect_checks(
    settings: AppSettings,
    runner: CommandRunner,
    *,
    http: bool = True,
) -> list[DoctorCheck]:
    """Gather every check without printing anything."""

    checks: list[DoctorCheck] = []

    for tool in REQUIRED_TOOLS:
        found = shutil.which(tool)
        checks.append(
            DoctorCheck(name=f"Tool {tool}", status="OK" if found else "FAIL", detail=found or "not on PATH")
        )
    for tool in OPTIONAL_TOOLS:
        found = shutil.which(tool)
        checks.append(
            DoctorCheck(
                name=f"Tool {tool}",
                status="OK" if found else "OPTIONAL",
                detail=found or "only needed with --enable-https",
            )
        )

    checks.append(_check_path("Install dir", settings.install_dir))
    checks.append(_check_path("Checkout", settings.source_dir / ".git"))
    checks.append(_check_env_file(settings.env_file))
    checks.append(_check_path("Service unit", settings.unit_path))
    checks.append(_check_path("Site config", settings.site_available_path))
    checks.append(_check_path("Site enabled", settings.site_enabled_path))

    active = SystemdManager(runner).is_active(settings.service_name)
    checks.append(
        DoctorCheck(
            name="Service state",
            status="OK" if active else "FAIL",
            detail=f"{settings.service_name} {'active' if active else 'inactive'}",
        )
    )

    if http:
        checks.extend(asyncio.run(_probe_site(settings)))
    return checks


@app.command()
def run(
    install_dir: Path | None = typer.Option(None, "--install-dir", help="Install path to inspect."),
    domain: str | None = typer.Option(None, "--domain", help="Public domain to probe."),
    skip_http: bool = typer.Option(False, "--skip-http", help="Do not probe the site over HTTP."),
) -> None:
    """Run diagnostics and show what is missing."""

    settings = build_settings(install_dir=install_dir, domain=domain)
    checks = collect_checks(settings, SubprocessRunner(), http=not skip_http)

    table = Table(title="VPN Panel Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")
    for check in checks:
        style = _STATUS_STYLES.get(check.status, "white")
        table.add_row(check.name, f"[{style}]{check.status}[/{style}]", check.detail)

    _console.print(table)

    if any(check.status == "FAIL" for check in checks):
        _console.print(
            "\n[yellow]Note:[/yellow] Re-running `vpnpanel install` repairs the unit, site and checkout."
        )
        raise typer.Exit(code=1)
