from __future__ import annotations

from dataclasses import dataclass
from typing import Any

CASSETTE_VERSION = 1

_MISSING = object()


@dataclass(frozen=True)
class RecordedError:
    name: str
    message: str
    stack: str | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"name": self.name, "message": self.message}
        if self.stack is not None:
            payload["stack"] = self.stack
        return payload


@dataclass(frozen=True)
class CassetteEntry:
    call_name: str
    request_hash: str
    recorded_at_ms: int
    latency_ms: int | None = None
    args_preview: Any | None = None
    result: Any | None = None
    error: RecordedError | None = None
    meta: dict[str, Any] | None = None
    version: int = CASSETTE_VERSION

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def lookup_key(self) -> tuple[str, str]:
        return (self.call_name, self.request_hash)

    @property
    def total_tokens(self) -> int | float:
        return tokens_from_meta(self.meta)

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "cassette_version": self.version,
            "call_name": self.call_name,
            "request_hash": self.request_hash,
            "recorded_at_ms": self.recorded_at_ms,
        }
        if self.latency_ms is not None:
            payload["latency_ms"] = self.latency_ms
        if self.args_preview is not None:
            payload["args_preview"] = self.args_preview
        if self.error is not None:
            payload["error"] = self.error.to_payload()
        else:
            payload["result"] = self.result
        if self.meta is not None:
            payload["meta"] = self.meta
        return payload


def tokens_from_meta(meta: dict[str, Any] | None) -> int | float:
    if not meta:
        return 0
    total = meta.get("total_tokens")
    if isinstance(total, bool) or not isinstance(total, (int, float)):
        return 0
    return total


def entry_from_payload(data: dict[str, Any]) -> CassetteEntry:
    """Build an entry from a decoded wire record, raising ValueError on schema problems."""
    version = data.get("cassette_version")
    if type(version) is not int or version != CASSETTE_VERSION:
        raise ValueError(
            f"Unsupported cassette_version {version!r} (expected {CASSETTE_VERSION}); "
            "re-record this cassette"
        )
    call_name = data.get("call_name")
    request_hash = data.get("request_hash")
    recorded_at_ms = data.get("recorded_at_ms")
    latency_ms = data.get("latency_ms")
    meta = data.get("meta")

    if not isinstance(call_name, str):
        raise ValueError("Cassette entry missing call_name")
    if not isinstance(request_hash, str):
        raise ValueError("Cassette entry missing request_hash")
    if isinstance(recorded_at_ms, bool) or not isinstance(recorded_at_ms, int):
        raise ValueError("Cassette entry missing recorded_at_ms")
    if latency_ms is not None and (isinstance(latency_ms, bool) or not isinstance(latency_ms, int)):
        raise ValueError("Cassette entry has non-integer latency_ms")
    if meta is not None and not isinstance(meta, dict):
        raise ValueError("Cassette entry meta must be an object")

    result = data.get("result", _MISSING)
    raw_error = data.get("error", _MISSING)
    if (result is _MISSING) == (raw_error is _MISSING):
        raise ValueError("Cassette entry must have exactly one of result or error")

    error: RecordedError | None = None
    if raw_error is not _MISSING:
        if not isinstance(raw_error, dict):
            raise ValueError("Cassette entry error must be an object")
        name = raw_error.get("name")
        message = raw_error.get("message")
        stack = raw_error.get("stack")
        if not isinstance(name, str) or not isinstance(message, str):
            raise ValueError("Cassette entry error needs string name and message")
        error = RecordedError(
            name=name,
            message=message,
            stack=stack if isinstance(stack, str) else None,
        )

    return CassetteEntry(
        call_name=call_name,
        request_hash=request_hash,
        recorded_at_ms=recorded_at_ms,
        latency_ms=latency_ms,
        args_preview=data.get("args_preview"),
        result=None if result is _MISSING else result,
        error=error,
        meta=meta,
        version=version,
    )
