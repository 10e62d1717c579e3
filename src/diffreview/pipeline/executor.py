"""Pipeline executor — runs analysis stages in order and aggregates a report.

State machine::

    IDLE -> RUNNING -> AGGREGATING -> DONE
      \\
       -> FAILED   (setup failure only)

Once RUNNING, a stage that raises is recorded as a result with zero
findings and the pipeline moves on; the run always reaches aggregation.

Each stage sees a frozen snapshot of every finding produced by the stages
before it, in execution order. The accumulator behind those snapshots is
owned by the executor and only grows between stage invocations.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from diffreview.config.schema import OutputConfig
from diffreview.findings.aggregator import build_report
from diffreview.findings.models import Finding, Report, StageResult
from diffreview.git.models import ParsedDiff
from diffreview.output.writer import ReportOutput, write_reports
from diffreview.stages.models import (
    AnalysisStage,
    StageContext,
    StageDefinition,
    StageSetupError,
)

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    AGGREGATING = "aggregating"
    DONE = "done"
    FAILED = "failed"


@dataclass
class PipelineOutcome:
    """Result of one pipeline run. ``report`` is None only on setup failure."""

    success: bool
    report: Optional[Report] = None
    outputs: List[ReportOutput] = field(default_factory=list)
    error: Optional[str] = None


class PipelineExecutor:
    """Run a configured, ordered list of stages against a parsed diff."""

    def __init__(self) -> None:
        self.state = PipelineState.IDLE

    def execute(
        self,
        diff: ParsedDiff,
        stages: Sequence[StageDefinition],
        output: Optional[OutputConfig] = None,
    ) -> PipelineOutcome:
        """Execute the pipeline.

        Args:
            diff: Parsed change set, shared read-only with every stage.
            stages: Stage definitions in execution order; disabled ones
                are skipped.
            output: When given, every configured format is written to
                ``output.directory``.
        """
        self.state = PipelineState.IDLE
        start = time.perf_counter()

        try:
            instances = self._setup(stages)
        except StageSetupError as exc:
            self.state = PipelineState.FAILED
            logger.error("Pipeline setup failed: %s", exc)
            return PipelineOutcome(success=False, error=str(exc))

        self.state = PipelineState.RUNNING
        results: List[StageResult] = []
        accumulated: List[Finding] = []

        for name, stage in instances:
            context = StageContext(diff=diff, previous_findings=tuple(accumulated))
            logger.info("Running %s stage...", name)
            result = self._run_stage(name, stage, context)
            results.append(result)
            accumulated.extend(result.findings)
            logger.info("%s: %d findings", name, len(result.findings))

        self.state = PipelineState.AGGREGATING
        report = build_report(results, start)

        outputs: List[ReportOutput] = []
        if output is not None:
            outputs = write_reports(report, output.formats, output.directory)

        self.state = PipelineState.DONE
        return PipelineOutcome(success=True, report=report, outputs=outputs)

    def _setup(
        self, stages: Sequence[StageDefinition]
    ) -> List[Tuple[str, AnalysisStage]]:
        """Construct every enabled stage before any of them runs."""
        enabled = [d for d in stages if d.enabled]
        if not enabled:
            raise StageSetupError("At least one stage must be enabled")
        return [(d.name, d.create()) for d in enabled]

    def _run_stage(
        self, name: str, stage: AnalysisStage, context: StageContext
    ) -> StageResult:
        stage_start = time.perf_counter()
        try:
            result = stage.run(context)
            if not isinstance(result, StageResult):
                raise TypeError(
                    f"expected StageResult, got {type(result).__name__}"
                )
        except Exception as exc:
            elapsed = (time.perf_counter() - stage_start) * 1000
            logger.warning(
                "%s stage failed: %s", name, exc,
                exc_info=logger.isEnabledFor(logging.DEBUG),
            )
            return StageResult(
                stage_name=name,
                findings=(),
                elapsed_ms=round(elapsed, 2),
                error=str(exc) or type(exc).__name__,
            )
        return _normalise(result, name)


def _normalise(result: StageResult, name: str) -> StageResult:
    """Record the result under the configured stage name with a tuple of findings."""
    findings: Tuple[Finding, ...] = tuple(result.findings)
    if result.stage_name == name and findings is result.findings:
        return result
    return StageResult(
        stage_name=name,
        findings=findings,
        elapsed_ms=result.elapsed_ms,
        token_usage=result.token_usage,
        error=result.error,
    )
