from __future__ import annotations

from collections import deque
from difflib import SequenceMatcher
from typing import Any, Iterable

from agent_cassette.util.canonical_json import canonical_dumps
from agent_cassette.util.redaction import Redactor, redact, redact_text

from .models import CassetteEntry

LookupKey = tuple[str, str]
CassetteIndex = dict[LookupKey, deque[CassetteEntry]]


def build_index(entries: Iterable[CassetteEntry]) -> CassetteIndex:
    """Group entries into per-(call_name, request_hash) queues, keeping file order."""
    index: CassetteIndex = {}
    for entry in entries:
        index.setdefault(entry.lookup_key, deque()).append(entry)
    return index


def pop_next(index: CassetteIndex, call_name: str, request_hash: str) -> CassetteEntry | None:
    queue = index.get((call_name, request_hash))
    if not queue:
        return None
    return queue.popleft()


def _preview_text(value: Any, rule: Redactor) -> str:
    try:
        return canonical_dumps(redact(value, rule))
    except (TypeError, ValueError):
        return rule(repr(value))


def format_miss_detail(
    index: CassetteIndex,
    call_name: str,
    args_preview: Any,
    limit: int = 3,
    rule: Redactor = redact_text,
) -> str:
    """Describe what the cassette still holds for ``call_name``, closest previews first."""
    remaining = [entry for queue in index.values() for entry in queue if entry.call_name == call_name]
    if not remaining:
        recorded = sorted({name for (name, _), queue in index.items() if queue})
        available = ", ".join(recorded) if recorded else "<none>"
        return (
            f"No unconsumed entries recorded for {call_name!r}. "
            f"Calls with entries: {available}. "
            "Re-record the cassette or check that calls run in the recorded order."
        )

    target = _preview_text(args_preview, rule)
    scored = []
    for entry in remaining:
        preview = _preview_text(entry.args_preview, rule)
        score = SequenceMatcher(None, target, preview).ratio()
        scored.append((score, entry, preview))
    scored.sort(key=lambda item: item[0], reverse=True)

    closest = []
    for score, entry, preview in scored[:limit]:
        if len(preview) > 160:
            preview = preview[:157] + "..."
        closest.append(f"- {entry.request_hash[:12]} args_preview={preview} score={score:.2f}")
    closest_text = "\n".join(closest)
    return (
        f"Requested args_preview: {target}\n"
        f"{len(remaining)} unconsumed entries for {call_name!r} under other hashes; closest:\n"
        f"{closest_text}\n"
        "The identity builder probably includes a field that changed since recording."
    )
