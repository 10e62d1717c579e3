"""Reverse path: rendered checklist report -> selected findings."""

from diffreview.extract.extractor import (
    ChecklistExtractor,
    ExtractedFinding,
    extract_checked_findings,
    extract_file,
)
from diffreview.extract.formatters import format_findings_json, format_findings_markdown

__all__ = [
    "ChecklistExtractor",
    "ExtractedFinding",
    "extract_checked_findings",
    "extract_file",
    "format_findings_json",
    "format_findings_markdown",
]
