"""Provisioning error taxonomy.

- `PreflightError`: bad input or environment, raised before any mutation.
- `ResourceConflictError`: the host state blocks activation (checkout cannot
  fast-forward, nginx rejects the config).
- `CommandError`: a collaborator process exited non-zero.

Whether a `ProvisioningError` aborts a run or becomes a warning is decided by
the step policy, not by the exception type.
"""

from __future__ import annotations

from collections.abc import Sequence


class ProvisioningError(RuntimeError):
    """Base error for install/uninstall runs."""

    def __init__(self, message: str, *, step: str | None = None):
        super().__init__(message)
        self.step = step


class PreflightError(ProvisioningError):
    """Raised when required input or privileges are missing."""


class ResourceConflictError(ProvisioningError):
    """Raised when existing host state conflicts with the requested change."""


class CommandError(ProvisioningError):
    """Raised when an external command fails."""

    def __init__(
        self,
        argv: Sequence[str],
        returncode: int,
        stderr: str = "",
        *,
        step: str | None = None,
    ):
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = stderr.strip()
        detail = f": {self.stderr}" if self.stderr else ""
        super().__init__(
            f"`{' '.join(self.argv)}` exited with {returncode}{detail}",
            step=step,
        )
