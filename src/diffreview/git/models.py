"""Data models for diff parsing."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class DiffUnreadable(Exception):
    """Raised when the diff source cannot be read or resolved at all."""


class ChangeKind(str, Enum):
    ADD = "add"
    DELETE = "delete"
    CONTEXT = "context"


class FileStatus(str, Enum):
    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"


@dataclass(frozen=True, slots=True)
class Change:
    """A single line inside a file's hunk.

    ``line_no`` is the position in the new file. Deleted lines carry the
    counter value at the point of deletion.
    """

    kind: ChangeKind
    line_no: int
    content: str


@dataclass(frozen=True)
class FileDiff:
    """One file's change set within a parsed diff."""

    path: str
    status: FileStatus = FileStatus.MODIFIED
    old_path: Optional[str] = None  # set on renames
    changes: Tuple[Change, ...] = ()

    @property
    def additions(self) -> int:
        return sum(1 for c in self.changes if c.kind == ChangeKind.ADD)

    @property
    def deletions(self) -> int:
        return sum(1 for c in self.changes if c.kind == ChangeKind.DELETE)


@dataclass(frozen=True)
class DiffStat:
    """Statistical summary reported by git (covers every changed file)."""

    files_changed: int = 0
    insertions: int = 0
    deletions: int = 0

    def summary(self) -> str:
        return format_summary(self.files_changed, self.insertions, self.deletions)


@dataclass(frozen=True)
class ParsedDiff:
    """The full change set for one comparison, filtered to supported files."""

    files: Tuple[FileDiff, ...] = ()
    total_additions: int = 0
    total_deletions: int = 0
    summary: str = ""

    @property
    def is_empty(self) -> bool:
        """True when no supported file survived filtering."""
        return not self.files


def format_summary(files: int, insertions: int, deletions: int) -> str:
    return (
        f"{files} files changed, {insertions} insertions(+), "
        f"{deletions} deletions(-)"
    )
