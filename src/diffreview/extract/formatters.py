"""Markdown and JSON serialisations of extracted findings."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Sequence

from diffreview.extract.extractor import ExtractedFinding
from diffreview.output.markdown_report import fence_language


def format_findings_markdown(findings: Sequence[ExtractedFinding]) -> str:
    """Flat enumerated list, in the order the findings were selected."""
    if not findings:
        return (
            "# No findings selected\n\n"
            "Please check boxes in the report to select findings to fix.\n"
        )

    md = "# Selected Findings to Fix\n\n"
    md += f"Total: {len(findings)} issue(s)\n\n"
    md += "---\n\n"

    for index, finding in enumerate(findings, start=1):
        md += f"## {index}. [{finding.severity.upper()}] {finding.category}\n\n"
        md += f"**File**: `{finding.file}`{f':{finding.line}' if finding.line else ''}\n\n"
        md += f"**Issue**: {finding.issue}\n\n"
        if finding.suggestion:
            md += f"**Suggested Fix**: {finding.suggestion}\n\n"
        if finding.code:
            md += f"**Current Code**:\n```{fence_language(finding.file)}\n"
            md += finding.code
            md += "\n```\n\n"
        md += "---\n\n"

    return md


def to_dict(findings: Sequence[ExtractedFinding]) -> Dict[str, Any]:
    """``{total, findings}`` with 1-based ids; absent optional fields omitted."""
    entries: List[Dict[str, Any]] = []
    for index, f in enumerate(findings, start=1):
        entries.append({
            "id": index,
            "severity": f.severity,
            "category": f.category,
            "file": f.file,
            **({"line": f.line} if f.line is not None else {}),
            "issue": f.issue,
            **({"suggestion": f.suggestion} if f.suggestion is not None else {}),
            **({"code": f.code} if f.code is not None else {}),
        })
    return {"total": len(findings), "findings": entries}


def format_findings_json(findings: Sequence[ExtractedFinding]) -> str:
    return json.dumps(to_dict(findings), indent=2)
