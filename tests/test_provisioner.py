from __future__ import annotations

import pytest

from adapters import accounts
from adapters.env_file import parse_env_text
from core.domain.models import StepStatus
from core.services.provisioner import provision

from conftest import make_checkout


@pytest.fixture(autouse=True)
def _no_service_user(monkeypatch):
    monkeypatch.setattr(accounts, "user_exists", lambda name: False)


def test_fresh_install_runs_every_step(make_settings, runner):
    settings = make_settings(domain="panel.example.com")

    report = provision(settings=settings, runner=runner)

    assert report.ok, report.error
    assert [step.name for step in report.steps] == [
        "validate",
        "packages",
        "account",
        "source",
        "backend",
        "secrets",
        "frontend",
        "service",
        "proxy",
        "certificate",
    ]
    assert report.step("certificate").status is StepStatus.SKIPPED

    assert runner.ran("apt-get", "update", "-y")
    assert runner.ran("useradd", "-r", "-m", "-d", str(settings.install_dir))
    assert runner.ran("chown", "-R", "vpnpanel:vpnpanel", str(settings.install_dir))
    assert runner.ran("git", "clone", "--branch", "main", "--depth", "1")
    assert runner.ran("systemctl", "enable", "vpnpanel-backend")
    assert runner.ran("systemctl", "restart", "vpnpanel-backend")
    assert runner.ran("nginx", "-t")
    assert runner.ran("systemctl", "restart", "nginx")

    clone = next(call for call in runner.calls if call.argv[:2] == ["git", "clone"])
    assert clone.as_user == "vpnpanel"

    assert settings.unit_path.is_file()
    assert settings.site_available_path.is_file()
    assert settings.site_enabled_path.is_symlink()
    assert settings.site_enabled_path.resolve() == settings.site_available_path.resolve()
    assert not settings.default_site_path.exists()

    values = parse_env_text(settings.env_file.read_text(encoding="utf-8"))
    assert values["CORS_ORIGINS"] == "http://panel.example.com,https://panel.example.com"
    assert 'const API = "/api";' in settings.frontend_entry.read_text(encoding="utf-8")


def test_rerun_keeps_secrets_and_rewrites_identical_config(make_settings, runner):
    settings = make_settings(domain="panel.example.com")

    provision(settings=settings, runner=runner)
    env_before = settings.env_file.read_bytes()
    unit_before = settings.unit_path.read_bytes()
    site_before = settings.site_available_path.read_bytes()

    second = provision(settings=settings, runner=runner)

    assert second.ok, second.error
    assert second.step("secrets").status is StepStatus.SKIPPED
    assert settings.env_file.read_bytes() == env_before
    assert settings.unit_path.read_bytes() == unit_before
    assert settings.site_available_path.read_bytes() == site_before
    assert runner.ran("git", "-C", str(settings.source_dir), "pull", "--ff-only", "origin", "main")


def test_rerun_repairs_drifted_unit(make_settings, runner):
    settings = make_settings()
    provision(settings=settings, runner=runner)
    expected = settings.unit_path.read_text(encoding="utf-8")

    settings.unit_path.write_text("[Service]\nExecStart=/bin/false\n", encoding="utf-8")
    report = provision(settings=settings, runner=runner)

    assert report.step("service").status is StepStatus.CHANGED
    assert settings.unit_path.read_text(encoding="utf-8") == expected


def test_missing_repo_fails_before_any_mutation(make_settings, runner):
    settings = make_settings(repo_url=None)

    report = provision(settings=settings, runner=runner)

    assert not report.ok
    assert "--repo is required" in report.error
    assert [step.name for step in report.steps] == ["validate"]
    assert runner.calls == []
    assert not settings.install_dir.exists()
    assert not settings.unit_path.exists()
    assert not settings.site_available_path.exists()


def test_https_without_domain_warns_and_skips_certificate(make_settings, runner):
    settings = make_settings(enable_https=True, email="ops@example.com")

    report = provision(settings=settings, runner=runner)

    assert report.ok
    assert report.step("validate").status is StepStatus.WARNING
    assert report.step("certificate").status is StepStatus.SKIPPED
    assert not runner.ran("certbot")
    assert "server_name _;" in settings.site_available_path.read_text(encoding="utf-8")
    assert report.step("proxy").status is StepStatus.CHANGED


def test_https_with_domain_and_email_requests_certificate(make_settings, runner):
    settings = make_settings(enable_https=True, domain="panel.example.com", email="ops@example.com")

    report = provision(settings=settings, runner=runner)

    assert report.step("certificate").status is StepStatus.CHANGED
    assert runner.ran("apt-get", "install", "-y", "certbot", "python3-certbot-nginx")
    assert runner.ran(
        "certbot", "--nginx", "-d", "panel.example.com", "--non-interactive",
        "--agree-tos", "-m", "ops@example.com", "--redirect",
    )


def test_certificate_failure_is_a_warning(make_settings, runner):
    settings = make_settings(enable_https=True, domain="panel.example.com", email="ops@example.com")
    runner.fail("certbot", stderr="rate limited")

    report = provision(settings=settings, runner=runner)

    assert report.ok
    assert report.step("certificate").status is StepStatus.WARNING
    assert any("rate limited" in warning for warning in report.warnings)
    assert settings.site_enabled_path.is_symlink()


def test_non_fast_forward_checkout_aborts(make_settings, runner):
    settings = make_settings()
    provision(settings=settings, runner=runner)
    runner.fail("git", "-C", str(settings.source_dir), "pull", stderr="Not possible to fast-forward")
    unit_mtime = settings.unit_path.stat().st_mtime_ns

    report = provision(settings=settings, runner=runner)

    assert not report.ok
    assert report.step("source").status is StepStatus.FAILED
    assert "fast-forward" in report.error
    assert report.step("service") is None
    assert settings.unit_path.stat().st_mtime_ns == unit_mtime


def test_invalid_nginx_config_skips_reload(make_settings, runner):
    settings = make_settings()
    runner.fail("nginx", "-t", stderr="unexpected }")

    report = provision(settings=settings, runner=runner)

    assert not report.ok
    assert report.step("proxy").status is StepStatus.FAILED
    assert report.step("certificate") is None
    assert not runner.ran("systemctl", "restart", "nginx")


def test_nginx_restart_failure_is_a_warning(make_settings, runner):
    settings = make_settings()
    runner.fail("systemctl", "restart", "nginx", stderr="inactive")

    report = provision(settings=settings, runner=runner)

    assert report.ok
    assert report.step("proxy").status is StepStatus.WARNING


def test_useradd_failure_is_a_warning(make_settings, runner):
    settings = make_settings()
    runner.fail("useradd", stderr="exists")

    report = provision(settings=settings, runner=runner)

    assert report.ok
    assert report.step("account").status is StepStatus.WARNING
    assert runner.ran("chown", "-R")


def test_missing_frontend_constant_is_a_warning(make_settings, runner):
    settings = make_settings()
    provision(settings=settings, runner=runner)
    settings.frontend_entry.write_text("<html></html>", encoding="utf-8")

    report = provision(settings=settings, runner=runner)

    assert report.ok
    assert report.step("frontend").status is StepStatus.WARNING


def test_undecodable_frontend_is_a_warning(make_settings, runner):
    settings = make_settings()
    provision(settings=settings, runner=runner)
    settings.frontend_entry.write_bytes(b'<html>\xe9 const API = "http://x";</html>')
    runner.calls.clear()

    report = provision(settings=settings, runner=runner)

    assert report.ok, report.error
    assert report.step("frontend").status is StepStatus.WARNING
    assert "UnicodeDecodeError" in report.step("frontend").detail
    assert report.step("proxy").status is not StepStatus.FAILED
    assert runner.ran("nginx", "-t")


def test_undecodable_env_template_aborts(make_settings, runner):
    settings = make_settings()
    make_checkout(settings.source_dir)
    settings.env_template.write_bytes(b"APP_SECRET=\xff\n")

    report = provision(settings=settings, runner=runner)

    assert not report.ok
    assert report.step("secrets").status is StepStatus.FAILED
    assert "UnicodeDecodeError" in report.error
    assert not settings.env_file.exists()
    assert not runner.ran("systemctl", "enable")


def test_missing_user_aborts_when_chown_fails(make_settings, runner):
    settings = make_settings()
    runner.fail("useradd", stderr="cannot lock /etc/passwd")
    runner.fail("chown", stderr="invalid user: 'vpnpanel:vpnpanel'")

    report = provision(settings=settings, runner=runner)

    assert not report.ok
    assert report.step("account").status is StepStatus.FAILED
    assert "invalid user" in report.error
    assert report.step("source") is None


def test_package_failure_aborts(make_settings, runner):
    settings = make_settings()
    runner.fail("apt-get", "install", stderr="dpkg lock")

    report = provision(settings=settings, runner=runner)

    assert not report.ok
    assert report.step("packages").status is StepStatus.FAILED
    assert not runner.ran("git")
