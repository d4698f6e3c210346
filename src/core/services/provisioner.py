"""Provisioner: idempotent install of the panel on a single host.

Steps run in a fixed order. Re-running with the same settings converges to the
same host state: packages and accounts are query-then-create, the checkout is
fast-forwarded, generated secrets are kept, and the unit and site files are
rewritten from templates.
"""

from __future__ import annotations

from adapters import accounts
from adapters.certbot import request_certificate
from adapters.config_renderer import render_site, render_unit
from adapters.env_file import materialize_env_file
from adapters.frontend_patch import patch_api_endpoint
from adapters.git_checkout import SyncAction, sync_checkout
from adapters.nginx import NginxManager
from adapters.packages import BASE_PACKAGES, ensure_packages
from adapters.systemd import SystemdManager
from adapters.virtualenv import build_virtualenv
from core.config import AppSettings
from core.domain.models import RunReport, StepPolicy, StepStatus
from core.errors import CommandError, PreflightError
from core.interfaces.runner import CommandRunner
from core.services.pipeline import (
    PipelineHooks,
    RunAborted,
    StepOutcome,
    StepRunner,
    finish,
)

NGINX_UNIT = "nginx"

HTTPS_INCOMPLETE = (
    "HTTPS requested but --domain and --email are both required; "
    "certificate will be skipped"
)


def validate_settings(settings: AppSettings) -> StepOutcome:
    """Pre-flight checks. Raises `PreflightError` before anything is mutated."""

    if not settings.repo_url:
        raise PreflightError(
            "--repo is required (e.g. --repo https://github.com/USER/REPO.git)",
            step="validate",
        )
    if settings.enable_https and not settings.https_ready:
        return StepOutcome(StepStatus.WARNING, HTTPS_INCOMPLETE)
    return StepOutcome(StepStatus.OK, f"{settings.repo_url} ({settings.repo_branch})")


class Provisioner:
    """Install pipeline bound to one set of settings and one command runner."""

    def __init__(
        self,
        settings: AppSettings,
        runner: CommandRunner,
        hooks: PipelineHooks | None = None,
    ) -> None:
        self.settings = settings
        self.runner = runner
        self.hooks = hooks
        self.systemd = SystemdManager(runner)
        self.nginx = NginxManager(
            runner,
            available_path=settings.site_available_path,
            enabled_path=settings.site_enabled_path,
            default_site=settings.default_site_path,
        )

    # -- steps ---------------------------------------------------------------

    def _packages(self) -> StepOutcome:
        ensure_packages(self.runner, BASE_PACKAGES)
        return StepOutcome(StepStatus.OK, f"{len(BASE_PACKAGES)} packages present")

    def _account(self) -> StepOutcome:
        s = self.settings
        outcome = StepOutcome(StepStatus.OK, f"user {s.system_user} exists")
        if not accounts.user_exists(s.system_user):
            try:
                accounts.create_system_user(self.runner, name=s.system_user, home=s.install_dir)
                outcome = StepOutcome(StepStatus.CHANGED, f"created user {s.system_user}")
            except CommandError as exc:
                outcome = StepOutcome(StepStatus.WARNING, f"useradd failed: {exc}")
        accounts.ensure_owned_dir(self.runner, path=s.install_dir, owner=s.system_user)
        return outcome

    def _source(self) -> StepOutcome:
        s = self.settings
        if not s.repo_url:
            raise PreflightError("--repo is required", step="source")
        action = sync_checkout(
            self.runner,
            repo_url=s.repo_url,
            branch=s.repo_branch,
            dest=s.source_dir,
            as_user=s.system_user,
        )
        status = StepStatus.CHANGED if action is SyncAction.CLONED else StepStatus.OK
        return StepOutcome(status, f"{action.value} {s.repo_branch} into {s.source_dir}")

    def _backend(self) -> StepOutcome:
        s = self.settings
        build_virtualenv(
            self.runner,
            python_bin=s.python_bin,
            venv_dir=s.venv_dir,
            requirements=s.requirements_file,
            as_user=s.system_user,
        )
        return StepOutcome(StepStatus.OK, f"virtualenv at {s.venv_dir}")

    def _secrets(self) -> StepOutcome:
        s = self.settings
        result = materialize_env_file(
            env_path=s.env_file,
            template_path=s.env_template,
            domain=s.domain,
        )
        if not result.created:
            return StepOutcome(StepStatus.SKIPPED, f"kept existing {s.env_file}")

        accounts.chown(self.runner, path=s.env_file, owner=s.system_user)
        detail = f"generated {', '.join(result.keys_written)}"
        if not result.from_template:
            return StepOutcome(
                StepStatus.WARNING,
                f"{s.env_template} missing, wrote a minimal .env; {detail}",
            )
        return StepOutcome(StepStatus.CHANGED, detail)

    def _frontend(self) -> StepOutcome:
        entry = self.settings.frontend_entry
        if not patch_api_endpoint(entry):
            return StepOutcome(StepStatus.WARNING, f"no API constant found in {entry}")
        return StepOutcome(StepStatus.OK, "API calls routed through /api")

    def _service(self) -> StepOutcome:
        s = self.settings
        changed = self.systemd.install_unit(path=s.unit_path, content=render_unit(settings=s))
        self.systemd.enable(s.service_name)
        self.systemd.restart(s.service_name)
        status = StepStatus.CHANGED if changed else StepStatus.OK
        return StepOutcome(status, f"{s.service_name} enabled and restarted")

    def _proxy(self) -> StepOutcome:
        changed = self.nginx.write_site(render_site(settings=self.settings))
        self.nginx.enable_site()
        self.nginx.disable_default_site()
        self.nginx.test_config()

        restarted = self.systemd.restart(NGINX_UNIT, check=False)
        if not restarted.ok:
            return StepOutcome(
                StepStatus.WARNING,
                f"config valid but nginx restart failed: {restarted.stderr.strip()}",
            )
        status = StepStatus.CHANGED if changed else StepStatus.OK
        return StepOutcome(status, f"site {self.settings.server_name} active")

    def _certificate(self) -> StepOutcome:
        s = self.settings
        if not s.enable_https:
            return StepOutcome(StepStatus.SKIPPED, "HTTPS not requested")
        if s.domain is None or s.email is None:
            return StepOutcome(StepStatus.SKIPPED, "missing --domain or --email")
        request_certificate(self.runner, domain=s.domain, email=s.email)
        return StepOutcome(StepStatus.CHANGED, f"certificate issued for {s.domain}")

    # -- pipeline ------------------------------------------------------------

    def run(self) -> RunReport:
        report = RunReport(action="install")
        steps = StepRunner(report, self.hooks)
        fatal, best_effort = StepPolicy.FATAL, StepPolicy.BEST_EFFORT

        try:
            steps.run("validate", fatal, lambda: validate_settings(self.settings))
            steps.run("packages", fatal, self._packages)
            steps.run("account", fatal, self._account)
            steps.run("source", fatal, self._source)
            steps.run("backend", fatal, self._backend)
            steps.run("secrets", fatal, self._secrets)
            steps.run("frontend", best_effort, self._frontend)
            steps.run("service", fatal, self._service)
            steps.run("proxy", fatal, self._proxy)
            steps.run("certificate", best_effort, self._certificate)
        except RunAborted as aborted:
            return finish(report, aborted.error)
        return finish(report)


def provision(
    *,
    settings: AppSettings,
    runner: CommandRunner,
    hooks: PipelineHooks | None = None,
) -> RunReport:
    return Provisioner(settings, runner, hooks).run()
