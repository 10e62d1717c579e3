"""Unified diff parser — builds the line-addressable change model.

The raw text is split on ``diff --git`` boundaries and every block is parsed
on its own, so one malformed block never aborts the whole parse. Blocks whose
header does not match ``a/<old> b/<new>`` are dropped, as are files whose
extension is not in the supported set.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

from diffreview.git.adapter import GitError, get_commit_diff, get_range_diff
from diffreview.git.models import (
    Change,
    ChangeKind,
    DiffStat,
    DiffUnreadable,
    FileDiff,
    FileStatus,
    ParsedDiff,
    format_summary,
)

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS: Tuple[str, ...] = (".py", ".ts", ".tsx", ".js", ".jsx")

# --- Regex patterns for diff parsing ---

_BLOCK_SPLIT_RE = re.compile(r"^diff --git ", re.MULTILINE)
_PATHS_RE = re.compile(r"^a/(.+?) b/(.+?)$")
_HUNK_HEADER_RE = re.compile(
    r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@"
)
_RENAME_FROM_RE = re.compile(r"^rename from (.+)$")
_RENAME_TO_RE = re.compile(r"^rename to (.+)$")
_NEW_FILE_RE = re.compile(r"^new file mode \d+")
_DELETED_FILE_RE = re.compile(r"^deleted file mode \d+")

DiffSource = Union[str, Path, Tuple[str, str]]


class DiffParser:
    """Parse unified diff text into a :class:`ParsedDiff`.

    Usage::

        parser = DiffParser(extensions=(".py",))
        diff = parser.parse(diff_text)
        for file in diff.files:
            ...
    """

    def __init__(self, extensions: Optional[Iterable[str]] = None) -> None:
        self.extensions: Tuple[str, ...] = tuple(
            DEFAULT_EXTENSIONS if extensions is None else extensions
        )

    # ---- sources ----

    def parse_file(self, path: Union[str, Path]) -> ParsedDiff:
        """Parse a diff stored on disk."""
        try:
            text = Path(path).read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            raise DiffUnreadable(f"Failed to read diff file {path}: {exc}") from exc
        return self.parse(text)

    def parse_commit(self, repo_root: Path, commit: str = "HEAD") -> ParsedDiff:
        """Parse the changes introduced by a single commit."""
        try:
            text, stat = get_commit_diff(repo_root, commit)
        except GitError as exc:
            raise DiffUnreadable(f"Failed to read diff for {commit}: {exc}") from exc
        return self.parse(text, stat)

    def parse_range(self, repo_root: Path, base: str, head: str) -> ParsedDiff:
        """Parse the changes between two refs."""
        try:
            text, stat = get_range_diff(repo_root, base, head)
        except GitError as exc:
            raise DiffUnreadable(f"Failed to read diff {base}..{head}: {exc}") from exc
        return self.parse(text, stat)

    def parse_source(
        self, source: DiffSource, repo_root: Optional[Path] = None
    ) -> ParsedDiff:
        """Dispatch on *source*: raw text, a diff file, or a ``(base, head)`` pair."""
        if isinstance(source, tuple):
            base, head = source
            return self.parse_range(repo_root or Path.cwd(), base, head)
        if isinstance(source, Path):
            return self.parse_file(source)
        return self.parse(source)

    # ---- parsing ----

    def parse(self, diff_text: str, stat: Optional[DiffStat] = None) -> ParsedDiff:
        """Parse raw unified diff text.

        *stat*, when supplied by git, is preferred for the summary line since
        it counts every changed file, not only the retained ones.
        """
        files: List[FileDiff] = []
        for block in _BLOCK_SPLIT_RE.split(diff_text.replace("\r\n", "\n")):
            if not block.strip():
                continue
            file_diff = parse_file_block(block)
            if file_diff is None:
                continue
            if not self.is_supported(file_diff.path):
                logger.debug("Skipping unsupported file %s", file_diff.path)
                continue
            files.append(file_diff)

        total_additions = sum(f.additions for f in files)
        total_deletions = sum(f.deletions for f in files)
        summary = (
            stat.summary()
            if stat is not None
            else format_summary(len(files), total_additions, total_deletions)
        )
        return ParsedDiff(
            files=tuple(files),
            total_additions=total_additions,
            total_deletions=total_deletions,
            summary=summary,
        )

    def is_supported(self, path: str) -> bool:
        return path.endswith(self.extensions)


def parse_file_block(block: str) -> Optional[FileDiff]:
    """Parse one ``diff --git`` block (boundary marker already removed).

    Returns None when the header does not have the ``a/<old> b/<new>`` shape.

    The ``---``/``+++`` file headers are skipped only before the first hunk;
    inside a hunk a line such as ``+++x`` is an added line with content ``++x``.
    """
    lines = block.split("\n")
    m = _PATHS_RE.match(lines[0])
    if m is None:
        logger.debug("Dropping malformed diff block: %r", lines[0][:80])
        return None

    old_path, new_path = m.group(1), m.group(2)
    is_new = is_deleted = False
    in_hunk = False
    line_no = 0
    changes: List[Change] = []

    for line in lines[1:]:
        hm = _HUNK_HEADER_RE.match(line)
        if hm:
            in_hunk = True
            line_no = int(hm.group(3))
            continue

        if not in_hunk:
            # Extended header lines before the first hunk
            if _NEW_FILE_RE.match(line):
                is_new = True
            elif _DELETED_FILE_RE.match(line):
                is_deleted = True
            elif (rm := _RENAME_FROM_RE.match(line)):
                old_path = rm.group(1)
            elif (rt := _RENAME_TO_RE.match(line)):
                new_path = rt.group(1)
            continue

        if line.startswith("+"):
            changes.append(Change(ChangeKind.ADD, line_no, line[1:]))
            line_no += 1
        elif line.startswith("-"):
            # Deleted lines do not exist in the new file
            changes.append(Change(ChangeKind.DELETE, line_no, line[1:]))
        elif line.startswith(" "):
            changes.append(Change(ChangeKind.CONTEXT, line_no, line[1:]))
            line_no += 1

    if is_new:
        status = FileStatus.ADDED
    elif is_deleted:
        status = FileStatus.DELETED
    elif old_path != new_path:
        status = FileStatus.RENAMED
    else:
        status = FileStatus.MODIFIED

    return FileDiff(
        path=new_path,
        status=status,
        old_path=old_path if old_path != new_path else None,
        changes=tuple(changes),
    )
