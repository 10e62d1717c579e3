"""Report aggregation — severity and per-stage counting over stage results."""

from __future__ import annotations

import time
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Dict, Optional, Sequence

from diffreview.findings.models import (
    SEVERITIES,
    AggregatedTokenUsage,
    Report,
    StageResult,
)


def build_report(stage_results: Sequence[StageResult], started_at: float) -> Report:
    """Aggregate *stage_results* into a Report.

    Counts come from a single pass over every finding in stage execution
    order. *started_at* is a ``time.perf_counter()`` reading taken when the
    pipeline started; the elapsed time covers setup and aggregation too.
    """
    by_severity: Dict[str, int] = {sev.value: 0 for sev in SEVERITIES}
    by_stage: Dict[str, int] = {}
    tokens_by_stage: Dict[str, int] = {}
    total = 0

    for result in stage_results:
        by_stage.setdefault(result.stage_name, 0)
        for finding in result.findings:
            total += 1
            by_stage[result.stage_name] += 1
            sev = getattr(finding.severity, "value", finding.severity)
            if sev in by_severity:
                by_severity[sev] += 1
        if result.token_usage is not None and result.token_usage.total_tokens:
            tokens_by_stage[result.stage_name] = (
                tokens_by_stage.get(result.stage_name, 0)
                + result.token_usage.total_tokens
            )

    token_total = sum(tokens_by_stage.values())
    token_usage: Optional[AggregatedTokenUsage] = (
        AggregatedTokenUsage(
            total=token_total, by_stage=MappingProxyType(tokens_by_stage)
        )
        if token_total > 0
        else None
    )

    generated_at = datetime.now(timezone.utc)
    elapsed = (time.perf_counter() - started_at) * 1000

    return Report(
        stage_results=tuple(stage_results),
        total_findings=total,
        by_severity=MappingProxyType(by_severity),
        by_stage=MappingProxyType(by_stage),
        generated_at=generated_at,
        elapsed_ms=round(elapsed, 2),
        token_usage=token_usage,
    )
