"""Record once, then replay without touching the "network".

    CASSETTE_PATH=cassettes/demo.jsonl CASSETTE_MODE=record python examples/demo_agent.py
    CASSETTE_PATH=cassettes/demo.jsonl CASSETTE_MODE=replay python examples/demo_agent.py
"""

from __future__ import annotations

import asyncio
import random
import sys

from agent_cassette import (
    CallStrategy,
    CassetteSession,
    build_openai_responses_identity,
    extract_openai_usage_meta,
    load_config,
)
from agent_cassette.util.log import configure_logging


async def fake_responses_create(params: dict) -> dict:
    await asyncio.sleep(0.2)
    prompt = params["input"][-1]["content"]
    words = prompt.split()
    return {
        "output_text": f"A unicorn fixed the flaky test after {random.randint(2, 9)} tries.",
        "usage": {"input_tokens": len(words), "output_tokens": 12, "total_tokens": len(words) + 12},
    }


async def main() -> int:
    configure_logging(level="INFO", json_output=False)
    session = CassetteSession.from_config(load_config())

    create = session.wrap(
        "openai.responses.create",
        fake_responses_create,
        CallStrategy(
            build_identity=lambda params: build_openai_responses_identity(params),
            build_args_preview=lambda params: {"model": params["model"], "input": params["input"]},
            build_meta=extract_openai_usage_meta,
        ),
    )
    response = await create(
        {
            "model": "gpt-4o-mini",
            "input": [{"role": "user", "content": "Write a sentence about a unicorn debugging a flaky test."}],
            "store": False,
        }
    )

    stats = session.get_session_stats()
    sys.stdout.write(f"mode: {stats.mode}\n")
    sys.stdout.write(f"output_text: {response['output_text']}\n")
    sys.stdout.write(
        f"recorded={stats.calls_recorded} replayed={stats.calls_replayed} "
        f"hit_rate={stats.replay_hit_rate:.2f} tokens_saved={stats.total_tokens_saved_estimate}\n"
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
