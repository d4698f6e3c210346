"""Domain models (Pydantic v2).

These models describe *what* happened during a run (steps, outcomes, command
results), not *how* the host was changed.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field, computed_field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StepStatus(str, Enum):
    """Outcome of a single provisioning step."""

    OK = "ok"
    CHANGED = "changed"
    SKIPPED = "skipped"
    WARNING = "warning"
    FAILED = "failed"


class StepPolicy(str, Enum):
    """How a step's failure affects the run."""

    FATAL = "fatal"
    BEST_EFFORT = "best_effort"


class CommandResult(BaseModel):
    """Captured result of an external command."""

    argv: list[str] = Field(..., min_length=1)
    returncode: int = Field(default=0)
    stdout: str = Field(default="")
    stderr: str = Field(default="")

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class StepResult(BaseModel):
    """Record of one step: what ran, under which policy, and how it ended."""

    name: str = Field(..., min_length=1, max_length=64)
    status: StepStatus = Field(default=StepStatus.OK)
    policy: StepPolicy = Field(default=StepPolicy.FATAL)
    detail: str = Field(
        default="",
        description="Human readable summary or the error that downgraded the step.",
    )
    started_at: datetime = Field(default_factory=_utcnow)
    duration_seconds: float = Field(default=0.0, ge=0.0)


class RunReport(BaseModel):
    """Aggregate of an install or uninstall run."""

    action: str = Field(..., pattern="^(install|uninstall)$")
    steps: list[StepResult] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=_utcnow)
    finished_at: datetime | None = Field(default=None)
    error: str | None = Field(
        default=None,
        description="Message of the fatal error that aborted the run, if any.",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def warnings(self) -> list[str]:
        return [
            f"{step.name}: {step.detail}"
            for step in self.steps
            if step.status is StepStatus.WARNING
        ]

    @computed_field  # type: ignore[prop-decorator]
    @property
    def ok(self) -> bool:
        return self.error is None and all(
            step.status is not StepStatus.FAILED for step in self.steps
        )

    def step(self, name: str) -> StepResult | None:
        for item in self.steps:
            if item.name == name:
                return item
        return None


class DoctorCheck(BaseModel):
    """One row of the doctor table."""

    name: str = Field(..., min_length=1)
    status: str = Field(..., pattern="^(OK|WARN|FAIL|OPTIONAL)$")
    detail: str = Field(default="")
