"""Git subprocess wrapper — commit diff, range diff, shortstat."""

from __future__ import annotations

import re
import subprocess
from pathlib import Path
from typing import Optional, Tuple

from diffreview.git.models import DiffStat

# Well-known hash of git's empty tree; root commits are diffed against it.
EMPTY_TREE = "4b825dc642cb6eb9a060e54bf8d69288fbee4904"

_FILES_RE = re.compile(r"(\d+) files? changed")
_INSERTIONS_RE = re.compile(r"(\d+) insertions?\(\+\)")
_DELETIONS_RE = re.compile(r"(\d+) deletions?\(-\)")


class GitError(Exception):
    """Raised when git is unavailable or returns an unexpected error."""


def _run_git(args: list[str], cwd: Path, timeout: int = 30) -> str:
    """Run a git command and return stdout. Raises GitError on failure."""
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=timeout,
            encoding="utf-8",
            errors="replace",
        )
    except FileNotFoundError:
        raise GitError("git is not installed or not on PATH")
    except subprocess.TimeoutExpired:
        raise GitError(f"git command timed out after {timeout}s: git {' '.join(args)}")

    if result.returncode != 0:
        stderr = result.stderr.strip()
        # `rev-parse --quiet` reports a missing ref with an empty stderr
        if not stderr or "fatal" not in stderr.lower():
            return result.stdout
        raise GitError(f"git error: {stderr}")
    return result.stdout


def get_repo_root(cwd: Optional[Path] = None) -> Path:
    """Return the root of the current git repository."""
    cwd = cwd or Path.cwd()
    out = _run_git(["rev-parse", "--show-toplevel"], cwd=cwd)
    return Path(out.strip())


def resolve_commit(repo_root: Path, ref: str) -> str:
    """Return the full hash of *ref*. Raises GitError when it does not resolve."""
    out = _run_git(["rev-parse", "--verify", f"{ref}^{{commit}}"], cwd=repo_root)
    sha = out.strip()
    if not sha:
        raise GitError(f"unknown revision: {ref}")
    return sha


def has_parent(repo_root: Path, commit: str) -> bool:
    """True unless *commit* is a root commit."""
    out = _run_git(["rev-parse", "--verify", "--quiet", f"{commit}^"], cwd=repo_root)
    return bool(out.strip())


def parse_shortstat(text: str) -> DiffStat:
    """Parse ``git diff --shortstat`` output. Missing parts count as zero."""

    def _count(pattern: re.Pattern[str]) -> int:
        m = pattern.search(text)
        return int(m.group(1)) if m else 0

    return DiffStat(
        files_changed=_count(_FILES_RE),
        insertions=_count(_INSERTIONS_RE),
        deletions=_count(_DELETIONS_RE),
    )


def get_range_diff(repo_root: Path, base: str, head: str) -> Tuple[str, DiffStat]:
    """Return the unified diff and shortstat between two refs."""
    diff_text = _run_git(["diff", "--no-color", base, head], cwd=repo_root)
    stat_text = _run_git(["diff", "--shortstat", "--no-color", base, head], cwd=repo_root)
    return diff_text, parse_shortstat(stat_text)


def get_commit_diff(repo_root: Path, commit: str = "HEAD") -> Tuple[str, DiffStat]:
    """Return the diff introduced by *commit* against its parent.

    A root commit has no parent and is compared against the empty tree.
    """
    sha = resolve_commit(repo_root, commit)
    base = f"{sha}^" if has_parent(repo_root, sha) else EMPTY_TREE
    return get_range_diff(repo_root, base, sha)
