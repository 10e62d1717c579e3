"""Report renderers and artifact writer."""

from diffreview.output.writer import (
    OutputWriteFailure,
    Renderer,
    ReportOutput,
    get_renderer,
    write_reports,
)

__all__ = [
    "OutputWriteFailure",
    "Renderer",
    "ReportOutput",
    "get_renderer",
    "write_reports",
]
