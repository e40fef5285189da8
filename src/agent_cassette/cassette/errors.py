from __future__ import annotations

from pathlib import Path


class CassetteError(Exception):
    """Base class for errors raised by agent-cassette itself."""


class CassetteMissError(CassetteError):
    def __init__(self, call_name: str, request_hash: str, detail: str | None = None) -> None:
        self.call_name = call_name
        self.request_hash = request_hash
        message = f"Cassette miss: no entry for {self.lookup_key}"
        if detail:
            message = f"{message}\n{detail}"
        super().__init__(message)

    @property
    def lookup_key(self) -> str:
        return f"{self.call_name}::{self.request_hash}"


class CassetteFormatError(CassetteError):
    def __init__(self, message: str, path: Path, line_number: int | None = None) -> None:
        self.message = message
        self.path = path
        self.line_number = line_number
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.line_number is None:
            return f"{self.message} ({self.path})"
        return f"{self.message} ({self.path} line {self.line_number})"


class ReplayedError(CassetteError):
    """A failure recorded earlier and raised again during replay.

    ``kind`` is the class name of the original exception and ``stack`` its
    formatted traceback at record time. The stack is informational only.
    """

    def __init__(self, kind: str, message: str, stack: str | None = None) -> None:
        self.kind = kind
        self.message = message
        self.stack = stack
        super().__init__(message)

    def __repr__(self) -> str:
        return f"ReplayedError(kind={self.kind!r}, message={self.message!r})"
