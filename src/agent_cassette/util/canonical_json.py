from __future__ import annotations

import hashlib
import json
from typing import Any

from pydantic_core import to_jsonable_python


def canonicalize_json(obj: Any) -> Any:
    if isinstance(obj, dict):
        return {key: canonicalize_json(obj[key]) for key in sorted(obj)}
    if isinstance(obj, list):
        return [canonicalize_json(item) for item in obj]
    return obj


def canonical_dumps(obj: Any) -> str:
    return json.dumps(
        canonicalize_json(to_jsonable_python(obj)),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )


def hash_canonical(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def request_hash(identity: Any) -> str:
    """Content hash of a call identity, stable across processes and key order."""
    return hash_canonical(canonical_dumps(identity))
