"""`vpnpanel` command line.

Commands:
- install: provision the panel (packages, user, checkout, venv, .env, systemd, nginx, TLS)
- uninstall: remove the unit, the nginx site and the install directory
- doctor: read-only diagnostics
"""

from __future__ import annotations

import sys
from pathlib import Path

import typer
from rich.console import Console

from adapters.command_runner import SubprocessRunner
from adapters.json_exporter import export_run_report
from cli import doctor
from cli.ui_components import build_steps_table, build_summary_panel, print_banner
from core.config import AppSettings, build_settings
from core.domain.models import RunReport
from core.errors import PreflightError
from core.logger import configure_logging
from core.services.decommissioner import decommission
from core.services.pipeline import PipelineHooks, require_root
from core.services.provisioner import provision

app = typer.Typer(
    no_args_is_help=True,
    help="VPN Panel Pro installer: deploy the panel behind nginx with a systemd backend.",
    context_settings={"help_option_names": ["-h", "--help"]},
    add_completion=False,
)
app.add_typer(doctor.app, name="doctor")

console = Console()

USAGE_EXIT_CODE = 2


def _setup_logging(settings: AppSettings, verbose: bool) -> None:
    configure_logging("DEBUG" if verbose else settings.log_level, log_file=settings.log_file)


def _hooks() -> PipelineHooks:
    return PipelineHooks(step_started=lambda name: console.print(f"[bold cyan][+][/bold cyan] {name}"))


def _finish(report: RunReport, report_json: Path | None) -> None:
    console.print(build_steps_table(report))
    if report_json is not None:
        path = export_run_report(report=report, output_path=report_json)
        console.print(f"[dim]Report written to {path}[/dim]")


@app.command()
def install(
    repo: str | None = typer.Option(None, "--repo", help="Git repo (required), e.g. https://github.com/USER/REPO.git"),
    branch: str | None = typer.Option(None, "--branch", help="Git branch (default: main)."),
    install_dir: Path | None = typer.Option(None, "--install-dir", help="Install path (default: /opt/vpnpanel)."),
    user: str | None = typer.Option(None, "--user", help="System user to run the service (default: vpnpanel)."),
    domain: str | None = typer.Option(None, "--domain", help="Public domain for nginx (optional)."),
    enable_https: bool = typer.Option(
        False,
        "--enable-https",
        help="Enable Let's Encrypt via certbot (requires --domain and --email).",
    ),
    email: str | None = typer.Option(None, "--email", help="Contact email for Let's Encrypt."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every command at DEBUG level."),
    report_json: Path | None = typer.Option(None, "--report-json", help="Also write the run report as JSON."),
) -> None:
    """Install or update the panel on this host. Safe to re-run."""

    settings = build_settings(
        repo_url=repo,
        repo_branch=branch,
        install_dir=install_dir,
        system_user=user,
        domain=domain,
        enable_https=True if enable_https else None,
        email=email,
    )
    try:
        if not settings.repo_url:
            raise PreflightError("--repo is required (e.g. --repo https://github.com/USER/REPO.git)")
        require_root()
    except PreflightError as exc:
        console.print(f"[bold red][!][/bold red] {exc}")
        raise typer.Exit(code=1) from exc
    _setup_logging(settings, verbose)

    print_banner(console, action="install")
    report = provision(settings=settings, runner=SubprocessRunner(), hooks=_hooks())
    _finish(report, report_json)

    if not report.ok:
        console.print(f"[bold red][!] Install aborted:[/bold red] {report.error}")
        raise typer.Exit(code=1)

    for warning in report.warnings:
        console.print(f"[yellow][!][/yellow] {warning}")
    console.print(build_summary_panel(settings))


@app.command()
def uninstall(
    install_dir: Path | None = typer.Option(None, "--install-dir", help="Install path (default: $INSTALL_DIR or /opt/vpnpanel)."),
    service_name: str | None = typer.Option(None, "--service-name", help="Backend unit name (default: vpnpanel-backend)."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every command at DEBUG level."),
    report_json: Path | None = typer.Option(None, "--report-json", help="Also write the run report as JSON."),
) -> None:
    """Stop the backend and remove its unit, the nginx site and the install tree.

    Always exits 0; without root privileges nothing is removed.
    """

    settings = build_settings(install_dir=install_dir, service_name=service_name)
    try:
        require_root()
    except PreflightError as exc:
        console.print(f"[yellow][!][/yellow] {exc}; nothing was removed.")
        return
    _setup_logging(settings, verbose)

    report = decommission(settings=settings, runner=SubprocessRunner(), hooks=_hooks())
    _finish(report, report_json)
    console.print("[green]Uninstalled.[/green] The service account and TLS certificates were left in place.")


def run() -> None:
    """Console entry point; usage errors (unknown flags) exit with status 1."""

    try:
        app()
    except SystemExit as exc:
        if exc.code == USAGE_EXIT_CODE:
            sys.exit(1)
        raise
