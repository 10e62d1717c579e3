"""Finding models, payload conversion, and report aggregation."""

from diffreview.findings.aggregator import build_report
from diffreview.findings.models import (
    Finding,
    FindingKind,
    Report,
    Severity,
    StageResult,
    TokenUsage,
)
from diffreview.findings.payload import finding_from_dict, finding_to_dict, parse_findings

__all__ = [
    "Finding",
    "FindingKind",
    "Report",
    "Severity",
    "StageResult",
    "TokenUsage",
    "build_report",
    "finding_from_dict",
    "finding_to_dict",
    "parse_findings",
]
