from __future__ import annotations

import re
from typing import Any, Callable

Redactor = Callable[[str], str]

_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"(?i)\bbearer\s+[a-z0-9._~+/=-]+"), "Bearer [REDACTED]"),
    (re.compile(r"\bsk-[A-Za-z0-9_-]+"), "sk-[REDACTED]"),
    (re.compile(r"\bghp_[A-Za-z0-9]{36}\b"), "[REDACTED]"),
    (re.compile(r"\bAKIA[0-9A-Z]{16}\b"), "[REDACTED]"),
    (
        re.compile(r"\beyJ[a-zA-Z0-9_-]+\.[a-zA-Z0-9_-]+\.[a-zA-Z0-9_-]+\b"),
        "[REDACTED]",
    ),
]


def redact_text(text: str) -> str:
    redacted = text
    for pattern, replacement in _PATTERNS:
        redacted = pattern.sub(replacement, redacted)
    return redacted


def redact(value: Any, rule: Redactor = redact_text) -> Any:
    """Apply ``rule`` to every string leaf of a JSON-like value."""
    if isinstance(value, dict):
        return {key: redact(item, rule) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [redact(item, rule) for item in value]
    if isinstance(value, str):
        return rule(value)
    return value
