"""Git interface layer — adapter, diff parsing, models."""

from diffreview.git.adapter import (
    EMPTY_TREE,
    GitError,
    get_commit_diff,
    get_range_diff,
    get_repo_root,
    parse_shortstat,
)
from diffreview.git.diff_parser import DEFAULT_EXTENSIONS, DiffParser
from diffreview.git.models import (
    Change,
    ChangeKind,
    DiffStat,
    DiffUnreadable,
    FileDiff,
    FileStatus,
    ParsedDiff,
)

__all__ = [
    "Change",
    "ChangeKind",
    "DEFAULT_EXTENSIONS",
    "DiffParser",
    "DiffStat",
    "DiffUnreadable",
    "EMPTY_TREE",
    "FileDiff",
    "FileStatus",
    "GitError",
    "ParsedDiff",
    "get_commit_diff",
    "get_range_diff",
    "get_repo_root",
    "parse_shortstat",
]
