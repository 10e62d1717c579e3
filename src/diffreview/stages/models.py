"""Stage capability model — context snapshot, protocol, and definitions."""

from __future__ import annotations

import importlib
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Protocol, Tuple, runtime_checkable

from diffreview.findings.models import Finding, StageResult
from diffreview.git.models import ParsedDiff


class StageError(Exception):
    """Raised by a stage when its analysis cannot complete."""


class StageSetupError(Exception):
    """Raised when a stage cannot be constructed before the pipeline starts."""


@dataclass(frozen=True)
class StageContext:
    """Read-only view handed to a stage: the diff plus every earlier finding."""

    diff: ParsedDiff
    previous_findings: Tuple[Finding, ...] = ()


@runtime_checkable
class AnalysisStage(Protocol):
    """An independently pluggable analysis step."""

    name: str

    def run(self, context: StageContext) -> StageResult:
        ...


@dataclass
class StageDefinition:
    """Declarative description of a stage, built into an AnalysisStage at setup.

    Exactly one of ``command``, ``entry_point`` or ``factory`` says how:

    - ``command``: an external program (see :class:`CommandStage`).
    - ``entry_point``: ``"package.module:attr"`` naming a stage class or
      factory callable; it is called with no arguments.
    - ``factory``: an in-process callable, for embedding.
    """

    name: str
    description: str = ""
    command: Optional[List[str]] = None
    entry_point: Optional[str] = None
    factory: Optional[Callable[[], AnalysisStage]] = field(
        default=None, repr=False, compare=False
    )
    timeout: Optional[float] = None  # seconds; None waits indefinitely
    enabled: bool = True

    def create(self) -> AnalysisStage:
        """Construct the stage. Raises StageSetupError on any failure."""
        try:
            stage = self._construct()
        except StageSetupError:
            raise
        except Exception as exc:
            raise StageSetupError(f"Failed to set up stage '{self.name}': {exc}") from exc
        if not callable(getattr(stage, "run", None)):
            raise StageSetupError(f"Stage '{self.name}' has no run() method")
        return stage

    def _construct(self) -> AnalysisStage:
        if self.factory is not None:
            return self.factory()
        if self.command:
            from diffreview.stages.command import CommandStage

            return CommandStage(self.name, self.command, timeout=self.timeout)
        if self.entry_point:
            return load_entry_point(self.entry_point)()
        raise StageSetupError(
            f"Stage '{self.name}' needs a command, entry_point or factory"
        )


def load_entry_point(target: str) -> Callable[[], AnalysisStage]:
    """Resolve ``"module:attr"`` to the named object."""
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise StageSetupError(f"Invalid entry point '{target}', expected 'module:attr'")
    module = importlib.import_module(module_name)
    target = module
    for part in attr.split("."):
        target = getattr(target, part)
    return target
