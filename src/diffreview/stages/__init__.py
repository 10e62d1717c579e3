"""Analysis stage capability — context, definitions, registry."""

from diffreview.stages.command import CommandStage, context_to_dict
from diffreview.stages.models import (
    AnalysisStage,
    StageContext,
    StageDefinition,
    StageError,
    StageSetupError,
)
from diffreview.stages.registry import StageRegistry, build_registry

__all__ = [
    "AnalysisStage",
    "CommandStage",
    "StageContext",
    "StageDefinition",
    "StageError",
    "StageRegistry",
    "StageSetupError",
    "build_registry",
    "context_to_dict",
]
