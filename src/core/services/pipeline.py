"""Step execution shared by the Provisioner and the Decommissioner.

Each step runs under a `StepPolicy`:
- FATAL: any exception marks the step FAILED and aborts the run via
  `RunAborted`; non-`ProvisioningError` exceptions are wrapped first.
- BEST_EFFORT: the same errors are logged as warnings, the step is recorded
  as WARNING and the run continues.

Steps themselves never print; UI layers observe progress through
`PipelineHooks`.
"""

from __future__ import annotations

import os
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone

from core.domain.models import RunReport, StepPolicy, StepResult, StepStatus
from core.errors import PreflightError, ProvisioningError
from core.logger import get_logger

logger = get_logger(__name__)


@dataclass
class PipelineHooks:
    """Optional callbacks for UI layers (progress, warnings)."""

    step_started: Callable[[str], None] | None = None
    step_finished: Callable[[StepResult], None] | None = None
    warning: Callable[[str], None] | None = None


@dataclass
class StepOutcome:
    """Value a step function returns when it completes without raising."""

    status: StepStatus = StepStatus.OK
    detail: str = ""


class RunAborted(Exception):
    """Internal signal: a FATAL step failed and the run must stop."""

    def __init__(self, error: ProvisioningError):
        super().__init__(str(error))
        self.error = error


StepFunction = Callable[[], "StepOutcome | None"]


class StepRunner:
    """Runs steps in order and records them into a `RunReport`."""

    def __init__(self, report: RunReport, hooks: PipelineHooks | None = None) -> None:
        self.report = report
        self.hooks = hooks or PipelineHooks()

    def _warn(self, message: str) -> None:
        logger.warning(message)
        if self.hooks.warning:
            self.hooks.warning(message)

    def run(self, name: str, policy: StepPolicy, func: StepFunction) -> StepResult:
        if self.hooks.step_started:
            self.hooks.step_started(name)
        logger.info("Step %s started", name)

        started_at = datetime.now(timezone.utc)
        clock = time.monotonic()
        failure: ProvisioningError | None = None

        try:
            outcome = func() or StepOutcome()
        except ProvisioningError as exc:
            failure = exc
        except Exception as exc:
            failure = ProvisioningError(f"{type(exc).__name__}: {exc}", step=name)

        if failure is not None:
            if failure.step is None:
                failure.step = name
            if policy is StepPolicy.FATAL:
                outcome = StepOutcome(StepStatus.FAILED, str(failure))
            else:
                outcome = StepOutcome(StepStatus.WARNING, str(failure))

        result = StepResult(
            name=name,
            status=outcome.status,
            policy=policy,
            detail=outcome.detail,
            started_at=started_at,
            duration_seconds=round(time.monotonic() - clock, 3),
        )
        self.report.steps.append(result)

        if result.status is StepStatus.WARNING:
            self._warn(f"{name}: {result.detail}")
        elif result.status is StepStatus.FAILED:
            logger.error("Step %s failed: %s", name, result.detail)
        else:
            suffix = f" ({result.detail})" if result.detail else ""
            logger.info("Step %s %s%s", name, result.status.value, suffix)

        if self.hooks.step_finished:
            self.hooks.step_finished(result)

        if result.status is StepStatus.FAILED and failure is not None:
            raise RunAborted(failure)
        return result


def finish(report: RunReport, error: ProvisioningError | None = None) -> RunReport:
    report.finished_at = datetime.now(timezone.utc)
    if error is not None:
        report.error = str(error)
    return report


def require_root() -> None:
    """Both pipelines write under /etc and chown trees; refuse to start otherwise."""

    if os.geteuid() != 0:
        raise PreflightError("must be run as root (try: sudo vpnpanel ...)", step="validate")
