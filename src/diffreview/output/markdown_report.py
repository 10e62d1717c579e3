"""Markdown reporter — checklist report operators tick to select fixes.

Every finding is rendered as an unchecked item::

    - [ ] **[HIGH]** Null Check
      - **File**: `src/a.ts`:12
      - **Issue**: value may be undefined
      - **Code**:
        ```typescript
        return user.name;
        ```

which is the dialect :mod:`diffreview.extract` reads back.
"""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import List

from diffreview.findings.models import SEVERITIES, Finding, Report, StageResult

_SEVERITY_BADGE = {
    "critical": "🔴 CRITICAL",
    "high": "🟠 HIGH",
    "medium": "🟡 MEDIUM",
    "low": "🟢 LOW",
}

_FENCE_LANGUAGE = {
    ".py": "python",
    ".ts": "typescript",
    ".tsx": "tsx",
    ".js": "javascript",
    ".jsx": "jsx",
    ".go": "go",
    ".rs": "rust",
    ".java": "java",
    ".rb": "ruby",
}

CODE_INDENT = "    "

# Item lines need a category for the extractor to match them
UNCATEGORIZED = "Uncategorized"


def fence_language(path: str) -> str:
    """Code fence info string for *path*, empty when unknown."""
    return _FENCE_LANGUAGE.get(PurePosixPath(path).suffix.lower(), "")


def _one_line(text: str) -> str:
    return " ".join(text.split())


def render(report: Report) -> str:
    """Return the full Markdown report."""
    parts: List[str] = [
        "# Code Review Report\n\n",
        f"Generated: {report.generated_at.strftime('%Y-%m-%d %H:%M:%S %Z')}\n\n",
        f"Execution Time: {report.elapsed_ms / 1000:.2f}s\n\n",
        "Tick the findings you want fixed, then run `diffreview extract` on this file.\n\n",
        "## 📊 Summary\n\n",
        _summary_tables(report),
        "\n",
    ]

    if report.token_usage is not None:
        parts.append("### Token Usage\n\n")
        parts.append(f"- **Total**: {report.token_usage.total:,} tokens\n")
        for stage, tokens in report.token_usage.by_stage.items():
            parts.append(f"- {stage}: {tokens:,}\n")
        parts.append("\n")

    parts.append("---\n\n")
    for result in report.stage_results:
        parts.append(_stage_section(result))

    return "".join(parts)


def _summary_tables(report: Report) -> str:
    table = "| Metric | Count |\n"
    table += "|--------|-------|\n"
    table += f"| **Total Findings** | {report.total_findings} |\n"
    for sev in SEVERITIES:
        label = _SEVERITY_BADGE[sev.value].split(" ")[0] + " " + sev.value.capitalize()
        table += f"| {label} | {report.by_severity.get(sev.value, 0)} |\n"
    table += "\n"
    table += "| Stage | Findings |\n"
    table += "|-------|----------|\n"
    for stage, count in report.by_stage.items():
        table += f"| {stage} | {count} |\n"
    return table


def _stage_section(result: StageResult) -> str:
    section = f"## {result.stage_name} Stage\n\n"

    if result.failed:
        section += f"⚠️ Stage failed: {_one_line(result.error or '')}\n\n"
        return section
    if not result.findings:
        section += f"✅ No issues found by {result.stage_name} stage.\n\n"
        return section

    section += f"Found {len(result.findings)} issue(s):\n\n"

    for sev in SEVERITIES:
        items = [f for f in result.findings if f.severity == sev]
        if not items:
            continue
        section += f"### {_SEVERITY_BADGE[sev.value]}\n\n"
        for finding in items:
            section += format_finding(finding)

    return section


def format_finding(finding: Finding) -> str:
    """Render one finding as a checklist item with indented fields."""
    category = _one_line(finding.category) or UNCATEGORIZED
    md = f"- [ ] **[{finding.severity.value.upper()}]** {category}\n"
    md += f"  - **File**: `{finding.file}`{f':{finding.line}' if finding.line else ''}\n"
    md += f"  - **Issue**: {_one_line(finding.message)}\n"
    if finding.suggestion:
        md += f"  - **Suggestion**: {_one_line(finding.suggestion)}\n"
    if finding.code:
        md += "  - **Code**:\n"
        md += f"{CODE_INDENT}```{fence_language(finding.file)}\n"
        for line in finding.code.splitlines():
            md += f"{CODE_INDENT}{line}\n"
        md += f"{CODE_INDENT}```\n"
    md += "\n"
    return md
