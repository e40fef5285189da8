from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest

from agent_cassette.session.engine import create_cassette
from agent_cassette.session.models import CallStrategy

# Both calls share one identity; only the label differs.
SHARED_KEY = CallStrategy(
    build_identity=lambda label, gate=None: {"prompt": "same"},
    build_args_preview=lambda label, gate=None: {"label": label},
)


async def _fetch(label: str, gate: asyncio.Event | None = None) -> str:
    if gate is not None:
        await gate.wait()
    return label


async def _must_not_run(*args: object, **kwargs: object) -> str:
    raise AssertionError("real operation invoked during replay")


@pytest.mark.asyncio
async def test_log_order_follows_completion_order(tmp_path: Path) -> None:
    path = tmp_path / "race.jsonl"
    gate = asyncio.Event()
    fetch = create_cassette(path).wrap("fetch", _fetch, SHARED_KEY)

    first = asyncio.create_task(fetch("first", gate))
    second = asyncio.create_task(fetch("second"))
    assert await second == "second"
    gate.set()
    assert await first == "first"

    labels = [json.loads(line)["args_preview"]["label"] for line in path.read_text(encoding="utf-8").splitlines()]
    assert labels == ["second", "first"]


@pytest.mark.asyncio
async def test_fifo_matching_has_no_causal_check(tmp_path: Path) -> None:
    path = tmp_path / "race.jsonl"
    gate = asyncio.Event()
    fetch = create_cassette(path).wrap("fetch", _fetch, SHARED_KEY)
    first = asyncio.create_task(fetch("first", gate))
    second = asyncio.create_task(fetch("second"))
    await second
    gate.set()
    await first

    # Replaying in invocation order hands out entries in completion order.
    replayed = create_cassette(path, mode="replay").wrap("fetch", _must_not_run, SHARED_KEY)
    assert await replayed("first") == "second"
    assert await replayed("second") == "first"


@pytest.mark.asyncio
async def test_concurrent_appends_stay_line_delimited(tmp_path: Path) -> None:
    path = tmp_path / "many.jsonl"

    async def square(value: int) -> dict:
        await asyncio.sleep(0)
        return {"value": value, "square": value * value, "pad": "x" * 10_000}

    wrapped = create_cassette(path).wrap("square", square)
    results = await asyncio.gather(*(wrapped(value) for value in range(25)))
    assert [result["square"] for result in results] == [value * value for value in range(25)]

    lines = path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 25
    assert sorted(json.loads(line)["result"]["value"] for line in lines) == list(range(25))


@pytest.mark.asyncio
async def test_concurrent_replays_drain_each_key_once(tmp_path: Path) -> None:
    path = tmp_path / "drain.jsonl"

    async def echo(value: int) -> int:
        return value

    recorder = create_cassette(path).wrap("echo", echo)
    for value in (1, 2, 1):
        await recorder(value)

    replayer = create_cassette(path, mode="replay")
    replayed = replayer.wrap("echo", _must_not_run)
    results = await asyncio.gather(replayed(1), replayed(2), replayed(1), return_exceptions=True)

    assert results == [1, 2, 1]
    assert replayer.get_session_stats().replay_hits == 3
