"""JSON report output."""

from __future__ import annotations

import json

from looker.models.results import RunResult


def render_json_report(result: RunResult) -> str:
    """Machine-readable dump of the whole run."""
    return json.dumps(result.model_dump(mode="json"), indent=2)
