"""Source checkout sync.

Rules:
- An existing checkout is only ever fast-forwarded; if that is impossible the
  sync fails instead of merging or resetting local history.
- A fresh checkout is a shallow clone of the requested branch.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from core.errors import CommandError, ResourceConflictError
from core.interfaces.runner import CommandRunner


class SyncAction(str, Enum):
    CLONED = "cloned"
    UPDATED = "updated"


def is_checkout(path: Path) -> bool:
    return (path / ".git").is_dir()


def sync_checkout(
    runner: CommandRunner,
    *,
    repo_url: str,
    branch: str,
    dest: Path,
    as_user: str | None = None,
) -> SyncAction:
    """Clone `repo_url` into `dest` or fast-forward the existing checkout."""

    if not is_checkout(dest):
        runner.run(
            ["git", "clone", "--branch", branch, "--depth", "1", repo_url, str(dest)],
            as_user=as_user,
        )
        return SyncAction.CLONED

    git = ["git", "-C", str(dest)]
    runner.run([*git, "fetch", "--all"], as_user=as_user)
    runner.run([*git, "checkout", branch], as_user=as_user)
    try:
        runner.run([*git, "pull", "--ff-only", "origin", branch], as_user=as_user)
    except CommandError as exc:
        raise ResourceConflictError(
            f"Checkout at {dest} cannot be fast-forwarded to origin/{branch}: {exc.stderr or exc}"
        ) from exc
    return SyncAction.UPDATED
