from __future__ import annotations

import json
from pathlib import Path

from agent_cassette.util.log import get_logger

from .errors import CassetteFormatError
from .models import CassetteEntry, entry_from_payload

logger = get_logger(__name__)


def has_torn_tail(path: Path) -> bool:
    """True when the last record of ``path`` was cut off before its newline."""
    if not path.is_file():
        return False
    with path.open("rb") as handle:
        handle.seek(0, 2)
        if handle.tell() == 0:
            return False
        handle.seek(-1, 2)
        return handle.read(1) != b"\n"


def load_cassette(path: Path) -> list[CassetteEntry]:
    """Read every committed entry of a JSONL cassette, in file order.

    A missing file is an empty cassette. A final line without a trailing
    newline that does not parse is a torn write and is skipped; any other bad
    line raises ``CassetteFormatError``.
    """
    if not path.exists():
        return []
    if not path.is_file():
        raise CassetteFormatError("Cassette path is not a file", path)

    # split() leaves b"" after a trailing newline; anything else is unterminated
    lines = path.read_bytes().split(b"\n")
    last_index = len(lines) - 1
    entries: list[CassetteEntry] = []
    for index, line in enumerate(lines):
        stripped = line.strip()
        if not stripped:
            continue
        line_number = index + 1
        try:
            raw = json.loads(stripped.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            if index == last_index:
                logger.warning(
                    "cassette.torn_tail_skipped",
                    path=str(path),
                    line_number=line_number,
                    length=len(line),
                )
                continue
            if isinstance(exc, UnicodeDecodeError):
                raise CassetteFormatError("Invalid UTF-8 in cassette", path, line_number) from exc
            raise CassetteFormatError("Invalid JSON in cassette", path, line_number) from exc

        if not isinstance(raw, dict):
            raise CassetteFormatError("Cassette entry must be an object", path, line_number)
        try:
            entries.append(entry_from_payload(raw))
        except ValueError as exc:
            raise CassetteFormatError(str(exc), path, line_number) from exc

    logger.debug("cassette.loaded", path=str(path), entries=len(entries))
    return entries
