from __future__ import annotations

import json
from pathlib import Path

from pydantic_core import to_jsonable_python

from agent_cassette.util.log import get_logger
from agent_cassette.util.redaction import Redactor, redact, redact_text

from .models import CassetteEntry

logger = get_logger(__name__)


def encode_entry(entry: CassetteEntry, redactor: Redactor = redact_text) -> bytes:
    payload = redact(to_jsonable_python(entry.to_payload()), redactor)
    line = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
    return (line + "\n").encode("utf-8")


def append_entry(path: Path, entry: CassetteEntry, redactor: Redactor = redact_text) -> None:
    """Append one redacted entry as a single JSONL record.

    The record is encoded before the file is opened so that a serialization
    error never leaves a partial line behind. I/O errors propagate.
    """
    data = encode_entry(entry, redactor)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("ab") as handle:
        handle.write(data)
    logger.debug(
        "cassette.appended",
        path=str(path),
        call_name=entry.call_name,
        request_hash=entry.request_hash,
        ok=entry.ok,
    )
