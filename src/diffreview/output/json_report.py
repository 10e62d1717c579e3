"""JSON reporter for tooling and CI pipelines."""

from __future__ import annotations

import json
from typing import Any, Dict, List

from diffreview.findings.models import Report
from diffreview.findings.payload import finding_to_dict


def to_dict(report: Report) -> Dict[str, Any]:
    """Convert a Report to a JSON-serialisable dict."""
    stages: List[Dict[str, Any]] = []
    for result in report.stage_results:
        stages.append({
            "name": result.stage_name,
            "elapsed_ms": result.elapsed_ms,
            "findings": [finding_to_dict(f) for f in result.findings],
            **({"error": result.error} if result.error else {}),
            **(
                {"token_usage": result.token_usage.total_tokens}
                if result.token_usage
                else {}
            ),
        })

    return {
        "version": "1.0",
        "generated_at": report.generated_at.isoformat(),
        "elapsed_ms": report.elapsed_ms,
        "summary": {
            "total_findings": report.total_findings,
            **report.by_severity,
            "by_stage": dict(report.by_stage),
        },
        "stages": stages,
        **(
            {
                "token_usage": {
                    "total": report.token_usage.total,
                    "by_stage": dict(report.token_usage.by_stage),
                }
            }
            if report.token_usage
            else {}
        ),
    }


def render(report: Report) -> str:
    """Return formatted JSON string."""
    return json.dumps(to_dict(report), indent=2)
