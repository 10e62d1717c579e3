"""SARIF v2.1.0 reporter — GitHub Code Scanning and compatible viewers."""

from __future__ import annotations

import json
import re
from typing import Any, Dict, List

from diffreview import __version__
from diffreview.findings.models import Report

_SEVERITY_MAP = {
    "critical": "error",
    "high": "error",
    "medium": "warning",
    "low": "note",
}

_RULE_ID_RE = re.compile(r"[^A-Za-z0-9]+")


def _rule_id(stage: str, category: str) -> str:
    """Stable rule id from stage and category, e.g. ``security/sql-injection``."""
    slug = _RULE_ID_RE.sub("-", category.strip().lower()).strip("-") or "finding"
    return f"{stage}/{slug}"


def to_dict(report: Report) -> Dict[str, Any]:
    """Convert a Report to a SARIF v2.1.0 dict."""
    rules: List[Dict[str, Any]] = []
    seen_rules: set[str] = set()
    results: List[Dict[str, Any]] = []

    for stage in report.stage_results:
        for f in stage.findings:
            rule_id = _rule_id(stage.stage_name, f.category)
            level = _SEVERITY_MAP.get(f.severity.value, "warning")

            # Rule definition (only once per rule id)
            if rule_id not in seen_rules:
                seen_rules.add(rule_id)
                rules.append({
                    "id": rule_id,
                    "name": f.category,
                    "shortDescription": {"text": f.category},
                    "defaultConfiguration": {"level": level},
                    "properties": {
                        "security-severity": _security_severity(f.severity.value),
                    },
                })

            region: Dict[str, Any] = {"startLine": max(f.line or 1, 1)}
            if f.code:
                region["snippet"] = {"text": f.code}

            entry: Dict[str, Any] = {
                "ruleId": rule_id,
                "level": level,
                "message": {"text": f.message},
                "locations": [
                    {
                        "physicalLocation": {
                            "artifactLocation": {"uri": f.file},
                            "region": region,
                        }
                    }
                ],
            }
            if f.suggestion:
                entry["properties"] = {"suggestion": f.suggestion}
            results.append(entry)

    return {
        "$schema": "https://raw.githubusercontent.com/oasis-tcs/sarif-spec/main/sarif-2.1/schema/sarif-schema-2.1.0.json",
        "version": "2.1.0",
        "runs": [
            {
                "tool": {
                    "driver": {
                        "name": "diffreview",
                        "version": __version__,
                        "rules": rules,
                    }
                },
                "results": results,
            }
        ],
    }


def render(report: Report) -> str:
    """Return SARIF JSON string."""
    return json.dumps(to_dict(report), indent=2)


def _security_severity(severity: str) -> str:
    """Map severity to SARIF security-severity score (0.0 – 10.0)."""
    mapping = {
        "critical": "9.5",
        "high": "7.5",
        "medium": "5.0",
        "low": "2.0",
    }
    return mapping.get(severity, "5.0")
