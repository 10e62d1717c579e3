"""Pipeline orchestration."""

from diffreview.pipeline.executor import PipelineExecutor, PipelineOutcome, PipelineState

__all__ = ["PipelineExecutor", "PipelineOutcome", "PipelineState"]
