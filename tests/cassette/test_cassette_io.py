from __future__ import annotations

import json
from pathlib import Path

import pytest
from structlog.testing import capture_logs

from agent_cassette.cassette.errors import CassetteFormatError
from agent_cassette.cassette.loader import has_torn_tail, load_cassette
from agent_cassette.cassette.models import CassetteEntry, RecordedError
from agent_cassette.cassette.writer import append_entry


def _entry(call_name: str = "add", result: object = 5, **fields: object) -> CassetteEntry:
    return CassetteEntry(
        call_name=call_name,
        request_hash="ab" * 32,
        recorded_at_ms=1_700_000_000_000,
        result=result,
        **fields,
    )


def _line(**overrides: object) -> str:
    payload: dict[str, object] = {
        "cassette_version": 1,
        "call_name": "add",
        "request_hash": "ab" * 32,
        "recorded_at_ms": 1,
        "result": 5,
    }
    payload.update(overrides)
    return json.dumps(payload)


def test_missing_file_is_empty_cassette(tmp_path: Path) -> None:
    assert load_cassette(tmp_path / "nope.jsonl") == []
    assert has_torn_tail(tmp_path / "nope.jsonl") is False


def test_append_then_load_keeps_file_order(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "dir" / "cassette.jsonl"
    append_entry(path, _entry(result={"sum": 5}, latency_ms=12, meta={"total_tokens": 7}))
    append_entry(
        path,
        _entry(
            call_name="fail",
            result=None,
            error=RecordedError(name="ValueError", message="boom", stack="Traceback ..."),
        ),
    )

    lines = path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    first = json.loads(lines[0])
    assert first["cassette_version"] == 1
    assert "error" not in first
    second = json.loads(lines[1])
    assert "result" not in second
    assert second["error"] == {"name": "ValueError", "message": "boom", "stack": "Traceback ..."}

    entries = load_cassette(path)
    assert [entry.call_name for entry in entries] == ["add", "fail"]
    assert entries[0].result == {"sum": 5}
    assert entries[0].latency_ms == 12
    assert entries[0].total_tokens == 7
    assert entries[1].ok is False
    assert entries[1].error == RecordedError(name="ValueError", message="boom", stack="Traceback ...")
    assert has_torn_tail(path) is False


def test_null_result_is_a_success(tmp_path: Path) -> None:
    path = tmp_path / "c.jsonl"
    append_entry(path, _entry(result=None))

    assert json.loads(path.read_text(encoding="utf-8"))["result"] is None
    (entry,) = load_cassette(path)
    assert entry.ok is True
    assert entry.result is None


def test_writer_redacts_strings_but_not_the_hash(tmp_path: Path) -> None:
    path = tmp_path / "c.jsonl"
    append_entry(
        path,
        _entry(
            args_preview={"headers": {"Authorization": "Bearer live-token"}},
            result={"echo": "sk-abcdef123456"},
        ),
    )

    record = json.loads(path.read_text(encoding="utf-8"))
    assert record["args_preview"]["headers"]["Authorization"] == "Bearer [REDACTED]"
    assert record["result"]["echo"] == "sk-[REDACTED]"
    assert record["request_hash"] == "ab" * 32


def test_writer_uses_custom_redactor(tmp_path: Path) -> None:
    path = tmp_path / "c.jsonl"
    append_entry(path, _entry(result="Bearer kept"), redactor=lambda text: text.upper())

    assert json.loads(path.read_text(encoding="utf-8"))["result"] == "BEARER KEPT"


def test_unserializable_result_writes_nothing(tmp_path: Path) -> None:
    path = tmp_path / "c.jsonl"
    with pytest.raises(ValueError):
        append_entry(path, _entry(result=object()))
    assert not path.exists()


def test_append_failure_propagates(tmp_path: Path) -> None:
    path = tmp_path / "cassette.jsonl"
    path.mkdir()
    with pytest.raises(OSError):
        append_entry(path, _entry())


def test_torn_trailing_line_is_skipped(tmp_path: Path) -> None:
    path = tmp_path / "c.jsonl"
    path.write_text(_line() + "\n" + _line(result=6) + "\n" + '{"cassette_version": 1, "call_na', encoding="utf-8")

    assert has_torn_tail(path) is True
    with capture_logs() as logs:
        entries = load_cassette(path)

    assert [entry.result for entry in entries] == [5, 6]
    assert any(log["event"] == "cassette.torn_tail_skipped" and log["line_number"] == 3 for log in logs)


def test_blank_lines_are_ignored(tmp_path: Path) -> None:
    path = tmp_path / "c.jsonl"
    path.write_text("\n" + _line() + "\n\n   \n", encoding="utf-8")

    assert len(load_cassette(path)) == 1


def test_malformed_interior_line_fails_loudly(tmp_path: Path) -> None:
    path = tmp_path / "c.jsonl"
    path.write_text(_line() + "\n" + "{not json\n" + _line(result=6) + "\n", encoding="utf-8")

    with pytest.raises(CassetteFormatError) as excinfo:
        load_cassette(path)
    assert excinfo.value.line_number == 2
    assert "line 2" in str(excinfo.value)


def test_terminated_malformed_last_line_is_not_a_torn_write(tmp_path: Path) -> None:
    path = tmp_path / "c.jsonl"
    path.write_text(_line() + "\n" + "{not json\n", encoding="utf-8")

    with pytest.raises(CassetteFormatError):
        load_cassette(path)


@pytest.mark.parametrize(
    "line",
    [
        "[1, 2, 3]",
        _line(cassette_version=2),
        _line(cassette_version=None),
        _line(cassette_version=True),
        _line(cassette_version=1.0),
        _line(call_name=None),
        _line(error={"name": "ValueError", "message": "boom"}),
        json.dumps({"cassette_version": 1, "call_name": "add", "request_hash": "x", "recorded_at_ms": 1}),
        _line(meta=[1, 2]),
    ],
    ids=["not-object", "future-version", "no-version", "bool-version", "float-version", "no-call-name", "result-and-error", "no-outcome", "bad-meta"],
)
def test_invalid_records_raise(tmp_path: Path, line: str) -> None:
    path = tmp_path / "c.jsonl"
    path.write_text(line + "\n", encoding="utf-8")

    with pytest.raises(CassetteFormatError) as excinfo:
        load_cassette(path)
    assert excinfo.value.line_number == 1


def test_unsupported_version_message_asks_for_rerecord(tmp_path: Path) -> None:
    path = tmp_path / "c.jsonl"
    path.write_text(_line(cassette_version=2) + "\n", encoding="utf-8")

    with pytest.raises(CassetteFormatError, match="re-record"):
        load_cassette(path)


def test_record_torn_inside_multibyte_character_is_skipped(tmp_path: Path) -> None:
    path = tmp_path / "c.jsonl"
    append_entry(path, _entry())
    record = json.loads(_line(result="done ✓"))
    second = (json.dumps(record, ensure_ascii=False) + "\n").encode("utf-8")
    cut = second.index("✓".encode("utf-8")) + 1
    with path.open("ab") as handle:
        handle.write(second[:cut])

    with capture_logs() as logs:
        entries = load_cassette(path)

    assert [entry.result for entry in entries] == [5]
    assert any(log["event"] == "cassette.torn_tail_skipped" for log in logs)


def test_invalid_utf8_interior_line_fails_loudly(tmp_path: Path) -> None:
    path = tmp_path / "c.jsonl"
    path.write_bytes(_line().encode("utf-8") + b"\n\xff\n" + _line(result=6).encode("utf-8") + b"\n")

    with pytest.raises(CassetteFormatError, match="UTF-8") as excinfo:
        load_cassette(path)
    assert excinfo.value.line_number == 2


def test_non_ascii_results_round_trip(tmp_path: Path) -> None:
    path = tmp_path / "c.jsonl"
    append_entry(path, _entry(result={"text": "héllo ✓"}))

    (entry,) = load_cassette(path)
    assert entry.result == {"text": "héllo ✓"}
