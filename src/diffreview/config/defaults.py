"""Starter .diffreview.toml and stage definition templates."""

DEFAULT_TOML = """\
# diffreview configuration
version = "1.0"

[parser]
extensions = [".py", ".ts", ".tsx", ".js", ".jsx"]   # files outside this set are skipped

[stages]
# enable = ["code-review", "security", "performance"]   # empty = all, in definition order
# disable = ["performance"]
directory = ".diffreview-stages"   # YAML stage definitions

[output]
formats = ["markdown", "json"]     # markdown | json | sarif
directory = "reports"
"""

EXAMPLE_STAGES_YAML = """\
# Each stage receives the diff and all earlier findings as JSON on stdin
# and prints a JSON array of findings on stdout.
- name: code-review
  description: General code review
  command: ["./scripts/code-review-stage"]
  # timeout: 300    # seconds; omit to wait indefinitely

# - name: security
#   entry_point: mypackage.stages:SecurityStage
"""
