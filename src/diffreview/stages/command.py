"""Command stage — delegates analysis to an external program.

The program receives the stage context as JSON on stdin::

    {"diff": {...}, "previous_findings": [...]}

and prints its findings on stdout, either as a JSON array or as an object
``{"findings": [...], "token_usage": {...}}``. Free text around a JSON array
is tolerated.
"""

from __future__ import annotations

import json
import subprocess
import time
from typing import Any, Dict, List, Optional

from diffreview.findings.models import StageResult
from diffreview.findings.payload import finding_to_dict, parse_findings, token_usage_from_dict
from diffreview.git.models import ParsedDiff
from diffreview.stages.models import StageContext, StageError


def diff_to_dict(diff: ParsedDiff) -> Dict[str, Any]:
    """Convert a ParsedDiff to a JSON-serialisable dict."""
    return {
        "summary": diff.summary,
        "total_additions": diff.total_additions,
        "total_deletions": diff.total_deletions,
        "files": [
            {
                "path": f.path,
                **({"old_path": f.old_path} if f.old_path else {}),
                "status": f.status.value,
                "additions": f.additions,
                "deletions": f.deletions,
                "changes": [
                    {"type": c.kind.value, "line": c.line_no, "content": c.content}
                    for c in f.changes
                ],
            }
            for f in diff.files
        ],
    }


def context_to_dict(context: StageContext) -> Dict[str, Any]:
    return {
        "diff": diff_to_dict(context.diff),
        "previous_findings": [finding_to_dict(f) for f in context.previous_findings],
    }


class CommandStage:
    """Run an external command as an analysis stage."""

    def __init__(
        self, name: str, command: List[str], *, timeout: Optional[float] = None
    ) -> None:
        if not command:
            raise StageError(f"Stage '{name}' has an empty command")
        self.name = name
        self.command = list(command)
        self.timeout = timeout

    def run(self, context: StageContext) -> StageResult:
        start = time.perf_counter()
        payload = json.dumps(context_to_dict(context))
        try:
            proc = subprocess.run(
                self.command,
                input=payload,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                encoding="utf-8",
                errors="replace",
            )
        except FileNotFoundError:
            raise StageError(f"command not found: {self.command[0]}")
        except subprocess.TimeoutExpired:
            raise StageError(f"stage '{self.name}' timed out after {self.timeout}s")

        if proc.returncode != 0:
            stderr = proc.stderr.strip().splitlines()
            detail = stderr[-1] if stderr else "no output"
            raise StageError(
                f"stage '{self.name}' exited with {proc.returncode}: {detail}"
            )

        output = _load_output(proc.stdout)
        token_usage = None
        if isinstance(output, dict):
            token_usage = token_usage_from_dict(
                output.get("token_usage", output.get("tokenUsage"))
            )

        elapsed = (time.perf_counter() - start) * 1000
        return StageResult(
            stage_name=self.name,
            findings=tuple(parse_findings(output)),
            elapsed_ms=round(elapsed, 2),
            token_usage=token_usage,
        )


def _load_output(stdout: str) -> Any:
    """Decode stdout as JSON when possible; otherwise hand back the text."""
    try:
        return json.loads(stdout)
    except json.JSONDecodeError:
        return stdout
