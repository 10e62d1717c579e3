"""Recover operator-selected findings from a rendered checklist report.

Only checked items are read::

    - [x] **[HIGH]** Null Check
      - **File**: `src/a.ts`:12
      - **Issue**: value may be undefined
      - **Suggestion**: guard before use
      - **Code**:
        ```typescript
        return user.name;
        ```

An item ends at the next checklist line, at a heading, or at a blank line
directly followed by a checklist line. Inside a ``Code`` fence, lines are
taken verbatim minus one level of indentation until the closing fence.

A checked item missing its ``File`` or ``Issue`` field is dropped silently.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

_CHECKED_ITEM_RE = re.compile(r"^- \[[xX]\] \*\*\[(.+?)\]\*\* (.+)$")
_CHECKLIST_RE = re.compile(r"^- \[")
_HEADING_RE = re.compile(r"^#")
_FILE_RE = re.compile(r"- \*\*File\*\*: `(.+?)`(?::(\d+))?")
_ISSUE_RE = re.compile(r"- \*\*Issue\*\*: (.+)")
_SUGGESTION_RE = re.compile(r"- \*\*Suggestion\*\*: (.+)")
_CODE_LABEL = "- **Code**:"
_FENCE = "```"
_INDENT_RE = re.compile(r"^\s{4}")


@dataclass
class ExtractedFinding:
    """A finding the operator selected in a rendered report."""

    severity: str
    category: str
    file: str = ""
    issue: str = ""
    line: Optional[int] = None
    suggestion: Optional[str] = None
    code: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        return bool(self.file and self.issue)


class _State(Enum):
    SCANNING = "scanning"
    IN_ITEM = "in_item"
    EXPECT_FENCE = "expect_fence"
    IN_FENCE = "in_fence"


class _LineKind(Enum):
    CHECKED_ITEM = "checked_item"
    CHECKLIST = "checklist"  # any other checkbox line, e.g. unchecked
    HEADING = "heading"
    BLANK = "blank"
    CODE_LABEL = "code_label"
    TEXT = "text"


def _classify(line: str) -> _LineKind:
    if _CHECKED_ITEM_RE.match(line):
        return _LineKind.CHECKED_ITEM
    if _CHECKLIST_RE.match(line):
        return _LineKind.CHECKLIST
    if _HEADING_RE.match(line):
        return _LineKind.HEADING
    if not line.strip():
        return _LineKind.BLANK
    if _CODE_LABEL in line:
        return _LineKind.CODE_LABEL
    return _LineKind.TEXT


class ChecklistExtractor:
    """Line-at-a-time state machine over a checklist report."""

    def __init__(self) -> None:
        self.findings: List[ExtractedFinding] = []
        self._state = _State.SCANNING
        self._current: Optional[ExtractedFinding] = None
        self._code_lines: List[str] = []

    def feed(self, lines: List[str]) -> List[ExtractedFinding]:
        for idx, line in enumerate(lines):
            next_line = lines[idx + 1] if idx + 1 < len(lines) else None
            self._step(line, next_line)
        self._finish()
        return self.findings

    def _step(self, line: str, next_line: Optional[str]) -> None:
        if self._state is _State.IN_FENCE:
            if line.strip().endswith(_FENCE):
                self._close_fence()
            else:
                self._code_lines.append(_INDENT_RE.sub("", line, count=1))
            return

        if self._state is _State.EXPECT_FENCE:
            if line.strip().startswith(_FENCE):
                self._state = _State.IN_FENCE
                self._code_lines = []
                return
            # No fence after the label; treat the line as an ordinary field line
            self._state = _State.IN_ITEM

        kind = _classify(line)

        if self._state is _State.IN_ITEM:
            if kind in (_LineKind.CHECKED_ITEM, _LineKind.CHECKLIST, _LineKind.HEADING):
                self._close_item()
            elif kind is _LineKind.BLANK:
                if next_line is not None and _CHECKLIST_RE.match(next_line):
                    self._close_item()
                return
            elif kind is _LineKind.CODE_LABEL:
                self._state = _State.EXPECT_FENCE
                return
            else:
                self._read_fields(line)
                return

        if kind is _LineKind.CHECKED_ITEM:
            m = _CHECKED_ITEM_RE.match(line)
            assert m is not None
            self._current = ExtractedFinding(
                severity=m.group(1).lower(),
                category=m.group(2),
            )
            self._state = _State.IN_ITEM

    def _read_fields(self, line: str) -> None:
        assert self._current is not None
        if (fm := _FILE_RE.search(line)):
            self._current.file = fm.group(1)
            if fm.group(2):
                self._current.line = int(fm.group(2))
        if (im := _ISSUE_RE.search(line)):
            self._current.issue = im.group(1)
        if (sm := _SUGGESTION_RE.search(line)):
            self._current.suggestion = sm.group(1)

    def _close_fence(self) -> None:
        assert self._current is not None
        self._current.code = "\n".join(self._code_lines)
        self._code_lines = []
        self._state = _State.IN_ITEM

    def _close_item(self) -> None:
        if self._current is not None and self._current.is_complete:
            self.findings.append(self._current)
        self._current = None
        self._state = _State.SCANNING

    def _finish(self) -> None:
        if self._state is _State.IN_FENCE:
            self._close_fence()
        self._close_item()


def extract_checked_findings(text: str) -> List[ExtractedFinding]:
    """Parse checked items of a rendered report, in document order."""
    lines = text.replace("\r\n", "\n").split("\n")
    return ChecklistExtractor().feed(lines)


def extract_file(path: Union[str, Path]) -> List[ExtractedFinding]:
    """Read a rendered report from disk and extract its checked findings.

    Undecodable bytes are replaced, as for diff files.
    """
    return extract_checked_findings(Path(path).read_text(encoding="utf-8", errors="replace"))
