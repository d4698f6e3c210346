"""Decommissioner: removes what the Provisioner created.

Every step is best-effort and absence is never an error, so running it on an
already-removed installation succeeds. The service account and any issued TLS
certificate are left in place.
"""

from __future__ import annotations

import shutil

from adapters.nginx import NginxManager
from adapters.systemd import SystemdManager
from core.config import AppSettings
from core.domain.models import RunReport, StepPolicy, StepStatus
from core.interfaces.runner import CommandRunner
from core.services.pipeline import PipelineHooks, StepOutcome, StepRunner, finish

NGINX_UNIT = "nginx"


def decommission(
    *,
    settings: AppSettings,
    runner: CommandRunner,
    hooks: PipelineHooks | None = None,
) -> RunReport:
    report = RunReport(action="uninstall")
    steps = StepRunner(report, hooks)
    systemd = SystemdManager(runner)
    nginx = NginxManager(
        runner,
        available_path=settings.site_available_path,
        enabled_path=settings.site_enabled_path,
    )

    def stop_service() -> StepOutcome:
        stopped = systemd.stop(settings.service_name, check=False)
        systemd.disable(settings.service_name, check=False)
        if stopped.ok:
            return StepOutcome(StepStatus.CHANGED, f"{settings.service_name} stopped and disabled")
        return StepOutcome(StepStatus.SKIPPED, f"{settings.service_name} was not running")

    def remove_unit() -> StepOutcome:
        if systemd.remove_unit(settings.unit_path):
            return StepOutcome(StepStatus.CHANGED, f"removed {settings.unit_path}")
        return StepOutcome(StepStatus.SKIPPED, f"{settings.unit_path} absent")

    def remove_site() -> StepOutcome:
        removed = nginx.remove_site()
        restarted = systemd.restart(NGINX_UNIT, check=False)
        if not restarted.ok:
            return StepOutcome(
                StepStatus.WARNING,
                f"nginx restart failed: {restarted.stderr.strip() or 'not running'}",
            )
        if not removed:
            return StepOutcome(StepStatus.SKIPPED, "site already absent")
        return StepOutcome(StepStatus.CHANGED, f"removed {len(removed)} site file(s)")

    def remove_files() -> StepOutcome:
        if not settings.install_dir.exists():
            return StepOutcome(StepStatus.SKIPPED, f"{settings.install_dir} absent")
        shutil.rmtree(settings.install_dir)
        return StepOutcome(StepStatus.CHANGED, f"deleted {settings.install_dir}")

    steps.run("service", StepPolicy.BEST_EFFORT, stop_service)
    steps.run("unit", StepPolicy.BEST_EFFORT, remove_unit)
    steps.run("proxy", StepPolicy.BEST_EFFORT, remove_site)
    steps.run("files", StepPolicy.BEST_EFFORT, remove_files)
    return finish(report)
