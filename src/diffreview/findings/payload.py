"""Conversion between findings and the JSON payloads stages exchange.

Stages are the producers of findings, so they discard invalid entries here
before anything reaches the orchestrator: an entry needs a non-empty
``file``, ``message`` and ``category`` and a known kind and severity.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Optional

from diffreview.findings.models import Finding, FindingKind, Severity, TokenUsage

logger = logging.getLogger(__name__)

_JSON_ARRAY_RE = re.compile(r"\[[\s\S]*\]")


def finding_from_dict(data: Any) -> Optional[Finding]:
    """Build a Finding from a mapping. Returns None when the entry is invalid."""
    if not isinstance(data, dict):
        return None
    file = data.get("file")
    message = data.get("message")
    category = data.get("category")
    if not isinstance(file, str) or not file.strip():
        return None
    if not isinstance(message, str) or not message.strip():
        return None
    if not isinstance(category, str) or not category.strip():
        return None
    try:
        kind = FindingKind(str(data.get("kind", data.get("type", ""))).lower())
        severity = Severity(str(data.get("severity", "")).lower())
    except ValueError:
        return None

    line = data.get("line")
    if isinstance(line, bool) or not isinstance(line, int) or line < 1:
        line = None

    return Finding(
        kind=kind,
        severity=severity,
        category=category,
        message=message,
        file=file,
        line=line,
        suggestion=_optional_str(data.get("suggestion")),
        code=_optional_str(data.get("code")),
    )


def finding_to_dict(finding: Finding) -> Dict[str, Any]:
    """Convert a Finding to a JSON-serialisable dict, omitting absent fields."""
    return {
        "type": finding.kind.value,
        "severity": finding.severity.value,
        "category": finding.category,
        "message": finding.message,
        "file": finding.file,
        **({"line": finding.line} if finding.line else {}),
        **({"suggestion": finding.suggestion} if finding.suggestion else {}),
        **({"code": finding.code} if finding.code else {}),
    }


def parse_findings(payload: Any) -> List[Finding]:
    """Extract valid findings from a stage payload.

    *payload* may be a list of entries, a mapping with a ``findings`` list,
    or free text containing a JSON array (as language models tend to reply).
    """
    if isinstance(payload, str):
        payload = _load_json_text(payload)
    if isinstance(payload, dict):
        payload = payload.get("findings", [])
    if not isinstance(payload, list):
        logger.warning("Stage payload is not a list of findings")
        return []

    findings: List[Finding] = []
    for entry in payload:
        finding = finding_from_dict(entry)
        if finding is None:
            logger.debug("Discarding invalid finding entry: %r", entry)
            continue
        findings.append(finding)
    return findings


def token_usage_from_dict(data: Any) -> Optional[TokenUsage]:
    """Accept snake_case or camelCase token counters."""
    if not isinstance(data, dict):
        return None

    def _int(*keys: str) -> int:
        for key in keys:
            value = data.get(key)
            if isinstance(value, int) and not isinstance(value, bool):
                return value
        return 0

    prompt = _int("prompt_tokens", "promptTokens")
    completion = _int("completion_tokens", "completionTokens")
    total = _int("total_tokens", "totalTokens") or prompt + completion
    return TokenUsage(
        prompt_tokens=prompt,
        completion_tokens=completion,
        total_tokens=total,
    )


def _load_json_text(text: str) -> Any:
    text = text.strip()
    if not text:
        return []
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    m = _JSON_ARRAY_RE.search(text)
    if m is None:
        logger.warning("No JSON array found in stage output")
        return []
    try:
        return json.loads(m.group(0))
    except json.JSONDecodeError as exc:
        logger.warning("Failed to parse stage output: %s", exc)
        return []


def _optional_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None
