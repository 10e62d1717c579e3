"""Shared test fixtures — sample diffs, findings, fake stages, temp git repos."""

from __future__ import annotations

import subprocess
import textwrap
from pathlib import Path
from typing import Callable, List, Optional, Sequence

import pytest

from diffreview.findings.models import Finding, FindingKind, Severity, StageResult
from diffreview.stages.models import StageContext, StageDefinition


@pytest.fixture
def sample_diff_modified() -> str:
    """A single modified file with context, add and delete lines."""
    return textwrap.dedent("""\
        diff --git a/src/app.ts b/src/app.ts
        index 1234567..abcdef0 100644
        --- a/src/app.ts
        +++ b/src/app.ts
        @@ -10,4 +10,5 @@ export function main() {
         const a = 1;
        -const b = 2;
        +const b = 3;
        +const c = 4;
         return a + b;
    """)


@pytest.fixture
def sample_diff_new_file() -> str:
    return textwrap.dedent("""\
        diff --git a/hello.py b/hello.py
        new file mode 100644
        index 0000000..e69de29
        --- /dev/null
        +++ b/hello.py
        @@ -0,0 +1,3 @@
        +def greet(name):
        +    return f"Hello, {name}!"
        +
    """)


@pytest.fixture
def sample_diff_deleted() -> str:
    return textwrap.dedent("""\
        diff --git a/old.js b/old.js
        deleted file mode 100644
        index abc1234..0000000
        --- a/old.js
        +++ /dev/null
        @@ -1,2 +0,0 @@
        -module.exports = 1;
        -// bye
    """)


@pytest.fixture
def sample_diff_rename() -> str:
    return textwrap.dedent("""\
        diff --git a/lib/old_name.py b/lib/new_name.py
        similarity index 97%
        rename from lib/old_name.py
        rename to lib/new_name.py
        index abc1234..def5678 100644
        --- a/lib/old_name.py
        +++ b/lib/new_name.py
        @@ -1,2 +1,3 @@
         import os
        +import sys
         print(os.name)
    """)


@pytest.fixture
def sample_diff_mixed() -> str:
    """Supported and unsupported files in one diff."""
    return textwrap.dedent("""\
        diff --git a/README.md b/README.md
        index 1111111..2222222 100644
        --- a/README.md
        +++ b/README.md
        @@ -1 +1,2 @@
         # Project
        +More docs.
        diff --git a/src/index.js b/src/index.js
        index 3333333..4444444 100644
        --- a/src/index.js
        +++ b/src/index.js
        @@ -1,2 +1,2 @@
        -var x = 1;
        +let x = 1;
         console.log(x);
        diff --git a/assets/logo.png b/assets/logo.png
        new file mode 100644
        Binary files /dev/null and b/assets/logo.png differ
        diff --git a/src/util.tsx b/src/util.tsx
        index 5555555..6666666 100644
        --- a/src/util.tsx
        +++ b/src/util.tsx
        @@ -3,0 +4,2 @@
        +export const a = 1;
        +export const b = 2;
    """)


def make_finding(
    file: str = "src/app.ts",
    message: str = "Possible null dereference",
    severity: Severity = Severity.HIGH,
    category: str = "Null Check",
    line: Optional[int] = 12,
    kind: FindingKind = FindingKind.WARNING,
    suggestion: Optional[str] = None,
    code: Optional[str] = None,
) -> Finding:
    return Finding(
        kind=kind,
        severity=severity,
        category=category,
        message=message,
        file=file,
        line=line,
        suggestion=suggestion,
        code=code,
    )


class RecordingStage:
    """Stage that records the context it saw and returns canned findings."""

    def __init__(self, name: str, findings: Sequence[Finding] = ()) -> None:
        self.name = name
        self.findings = tuple(findings)
        self.seen: List[StageContext] = []

    def run(self, context: StageContext) -> StageResult:
        self.seen.append(context)
        return StageResult(stage_name=self.name, findings=self.findings, elapsed_ms=1.0)


class FailingStage:
    def __init__(self, name: str, exc: Exception) -> None:
        self.name = name
        self.exc = exc
        self.calls = 0

    def run(self, context: StageContext) -> StageResult:
        self.calls += 1
        raise self.exc


def definition_for(stage) -> StageDefinition:
    return StageDefinition(name=stage.name, factory=lambda: stage)


@pytest.fixture
def finding_factory() -> Callable[..., Finding]:
    return make_finding


@pytest.fixture
def tmp_git_repo(tmp_path: Path) -> Path:
    """Create a temporary git repository with a root commit and a second commit."""
    def git(*args: str) -> None:
        subprocess.run(["git", *args], cwd=tmp_path, capture_output=True, check=True)

    git("init")
    git("config", "user.email", "test@test.com")
    git("config", "user.name", "Test")
    git("config", "commit.gpgsign", "false")

    (tmp_path / "README.md").write_text("# Test\n")
    (tmp_path / "app.py").write_text("x = 1\n")
    git("add", ".")
    git("commit", "-m", "init")

    (tmp_path / "app.py").write_text("x = 2\ny = 3\n")
    git("add", ".")
    git("commit", "-m", "second")
    return tmp_path
