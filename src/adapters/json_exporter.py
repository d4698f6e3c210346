"""JSON export of a run report.

The file holds the action (`install` or `uninstall`), one entry per step with
its status, policy, detail and timing, the collected warnings, the abort
error if any and the overall `ok` flag. CI logs and configuration management
wrappers read it instead of scraping console output.
"""

from __future__ import annotations

import json
from pathlib import Path

from core.domain.models import RunReport


def export_run_report(*, report: RunReport, output_path: Path) -> Path:
    """Write `report` to `output_path` with stable key order; returns the path."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    document = json.dumps(report.model_dump(mode="json"), indent=2, sort_keys=True)
    output_path.write_text(document + "\n", encoding="utf-8")
    return output_path
