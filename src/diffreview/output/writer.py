"""Render reports and persist them as artifacts.

A failing artifact never fails the run: it is logged and skipped while the
remaining formats are still written.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Union

from diffreview.findings.models import Report

logger = logging.getLogger(__name__)


class OutputWriteFailure(Exception):
    """Raised when one rendered artifact cannot be produced or persisted."""


@dataclass(frozen=True)
class Renderer:
    """Turns a Report into text for one output format."""

    format: str
    extension: str
    render: Callable[[Report], str]


@dataclass(frozen=True)
class ReportOutput:
    format: str
    path: Path


def _renderers() -> Dict[str, Renderer]:
    from diffreview.output import json_report, markdown_report, sarif

    return {
        "markdown": Renderer("markdown", ".md", markdown_report.render),
        "json": Renderer("json", ".json", json_report.render),
        "sarif": Renderer("sarif", ".sarif", sarif.render),
    }


def get_renderer(fmt: str) -> Optional[Renderer]:
    return _renderers().get(fmt)


def write_artifact(report: Report, renderer: Renderer, path: Path) -> ReportOutput:
    """Render and write one artifact. Raises OutputWriteFailure."""
    try:
        content = renderer.render(report)
        path.write_text(content, encoding="utf-8")
    except Exception as exc:
        raise OutputWriteFailure(
            f"Failed to generate {renderer.format} report at {path}: {exc}"
        ) from exc
    return ReportOutput(format=renderer.format, path=path)


def write_reports(
    report: Report,
    formats: Sequence[str],
    directory: Union[str, Path],
    *,
    renderers: Optional[Dict[str, Renderer]] = None,
    timestamp: Optional[datetime] = None,
) -> List[ReportOutput]:
    """Write every requested format to *directory*; return what succeeded."""
    available = renderers if renderers is not None else _renderers()
    out_dir = Path(directory)
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        logger.error("Cannot create output directory %s: %s", out_dir, exc)
        return []

    stamp = (timestamp or datetime.now(timezone.utc)).strftime("%Y-%m-%dT%H-%M-%S-%f")
    outputs: List[ReportOutput] = []

    for fmt in formats:
        renderer = available.get(fmt)
        if renderer is None:
            logger.warning("Unknown output format: %s", fmt)
            continue
        path = out_dir / f"code-review-{stamp}{renderer.extension}"
        try:
            outputs.append(write_artifact(report, renderer, path))
        except OutputWriteFailure as exc:
            logger.error("%s", exc)
            continue
        logger.info("Generated %s report: %s", fmt.upper(), path)

    return outputs
