"""JSON report output."""

from __future__ import annotations

import json
import time
from pathlib import Path

from shotdiff.models.comparison import ComparisonResult


def generate_json_report(
    result: ComparisonResult,
    output_path: Path,
    baseline_path: str | None = None,
    candidate_path: str | None = None,
) -> None:
    """Write a machine-readable JSON report of one comparison."""
    report = result.model_dump()
    report["baseline_path"] = baseline_path
    report["candidate_path"] = candidate_path
    report["generated_at"] = time.strftime("%Y-%m-%dT%H:%M:%SZ")

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        json.dump(report, f, indent=2, default=str)
