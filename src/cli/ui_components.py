"""Rich components for the CLI.

Keeps command functions free of layout details; the same step table is used by
install and uninstall.
"""

from __future__ import annotations

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.config import AppSettings
from core.domain.models import RunReport, StepStatus

STATUS_STYLES: dict[StepStatus, str] = {
    StepStatus.OK: "green",
    StepStatus.CHANGED: "bright_green",
    StepStatus.SKIPPED: "dim",
    StepStatus.WARNING: "yellow",
    StepStatus.FAILED: "bold red",
}


def print_banner(console: Console, *, action: str) -> None:
    title = Text("VPN Panel Pro", style="bold cyan")
    subtitle = Text(f"{action} • nginx • systemd • certbot", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def build_steps_table(report: RunReport) -> Table:
    """One row per executed step, colored by status."""

    table = Table(title=f"{report.action.capitalize()} steps")
    table.add_column("Step", style="cyan", no_wrap=True)
    table.add_column("Status", no_wrap=True)
    table.add_column("Policy", style="dim", no_wrap=True)
    table.add_column("Details", style="white")
    for step in report.steps:
        style = STATUS_STYLES.get(step.status, "white")
        table.add_row(
            step.name,
            Text(step.status.value.upper(), style=style),
            step.policy.value.replace("_", "-"),
            step.detail,
        )
    return table


def build_summary_panel(settings: AppSettings) -> Panel:
    """Where to find the deployment once install succeeded."""

    if settings.domain:
        frontend = f"http://{settings.domain}"
        if settings.https_ready:
            frontend += "  (or https)"
        api = f"http://{settings.domain}/api"
    else:
        frontend = "http://YOUR_SERVER_IP"
        api = "http://YOUR_SERVER_IP/api"

    body = Text()
    body.append("Frontend:  ", style="bold")
    body.append(frontend + "\n")
    body.append("API:       ", style="bold")
    body.append(api + "\n")
    body.append("Service:   ", style="bold")
    body.append(f"{settings.service_name} (systemctl status/restart {settings.service_name})\n")
    body.append("Install:   ", style="bold")
    body.append(str(settings.install_dir))

    return Panel(body, title=Text("Done!", style="bold green"), border_style="green")
