"""Configuration schema — dataclasses for every config section."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from diffreview.git.diff_parser import DEFAULT_EXTENSIONS

OUTPUT_FORMATS = ("markdown", "json", "sarif")


@dataclass
class ParserConfig:
    extensions: List[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))


@dataclass
class StagesConfig:
    enable: List[str] = field(default_factory=list)  # empty = all, definition order
    disable: List[str] = field(default_factory=list)
    directory: str = ".diffreview-stages"


@dataclass
class OutputConfig:
    formats: List[str] = field(default_factory=lambda: ["markdown", "json"])
    directory: str = "reports"


@dataclass
class DiffReviewConfig:
    version: str = "1.0"
    parser: ParserConfig = field(default_factory=ParserConfig)
    stages: StagesConfig = field(default_factory=StagesConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
