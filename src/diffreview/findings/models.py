"""Finding, stage result, and report data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Mapping, Optional, Tuple


class FindingKind(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class Severity(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# Highest first; used for counting and grouping
SEVERITIES: Tuple[Severity, ...] = (
    Severity.CRITICAL,
    Severity.HIGH,
    Severity.MEDIUM,
    Severity.LOW,
)


@dataclass(frozen=True)
class Finding:
    """One issue surfaced by an analysis stage."""

    kind: FindingKind
    severity: Severity
    category: str
    message: str
    file: str
    line: Optional[int] = None
    suggestion: Optional[str] = None
    code: Optional[str] = None  # snippet


@dataclass(frozen=True)
class TokenUsage:
    """Token accounting reported by a stage. Passed through for reporting."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass(frozen=True)
class StageResult:
    """Output of one stage run.

    ``error`` is set by the orchestrator when the stage failed; such a
    result always carries zero findings.
    """

    stage_name: str
    findings: Tuple[Finding, ...] = ()
    elapsed_ms: float = 0.0
    token_usage: Optional[TokenUsage] = None
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass(frozen=True)
class AggregatedTokenUsage:
    total: int
    by_stage: Mapping[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class Report:
    """Aggregate of all stage results for one pipeline run.

    Built once by :func:`build_report`; the count mappings are read-only views.
    """

    stage_results: Tuple[StageResult, ...]
    total_findings: int
    by_severity: Mapping[str, int]
    by_stage: Mapping[str, int]
    generated_at: datetime
    elapsed_ms: float
    token_usage: Optional[AggregatedTokenUsage] = None

    @property
    def findings(self) -> List[Finding]:
        """All findings in stage execution order."""
        return [f for result in self.stage_results for f in result.findings]

    @property
    def failed_stages(self) -> List[str]:
        return [r.stage_name for r in self.stage_results if r.failed]

    def findings_by_severity(self) -> Dict[Severity, List[Finding]]:
        """Bucket findings by severity, first-seen order within a bucket."""
        buckets: Dict[Severity, List[Finding]] = {sev: [] for sev in SEVERITIES}
        for finding in self.findings:
            buckets[finding.severity].append(finding)
        return buckets
