from __future__ import annotations

import asyncio
from dataclasses import asdict
import functools
import time
import traceback
from pathlib import Path
from typing import Any, Awaitable, Callable, TypeVar

from agent_cassette.cassette.errors import CassetteFormatError, CassetteMissError, ReplayedError
from agent_cassette.cassette.loader import has_torn_tail, load_cassette
from agent_cassette.cassette.match import CassetteIndex, build_index, format_miss_detail, pop_next
from agent_cassette.cassette.models import CassetteEntry, RecordedError, tokens_from_meta
from agent_cassette.cassette.writer import append_entry
from agent_cassette.config.models import CASSETTE_MODES, CassetteConfig, CassetteMode
from agent_cassette.util.canonical_json import request_hash as compute_request_hash
from agent_cassette.util.log import get_logger
from agent_cassette.util.redaction import Redactor, redact_text

from .models import CallStrategy, SessionStats, _Counters

logger = get_logger(__name__)

T = TypeVar("T")
AsyncFunc = Callable[..., Awaitable[T]]


def resolve_mode(mode: str, cassette_path: Path) -> CassetteMode:
    if mode not in CASSETTE_MODES:
        allowed = ", ".join(CASSETTE_MODES)
        raise ValueError(f"Unsupported cassette mode: {mode!r}. Expected one of: {allowed}")
    if mode == "auto":
        return "replay" if cassette_path.exists() else "record"
    return mode  # type: ignore[return-value]


def _now_ms() -> int:
    return int(time.time() * 1000)


def _format_stack(exc: BaseException) -> str:
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))


class CassetteSession:
    """Records or replays the outcomes of wrapped async calls against one JSONL cassette.

    The mode is fixed when the session is created; ``auto`` becomes ``replay``
    if the cassette already exists and ``record`` otherwise. Replay sessions
    load the cassette once and hand out entries per ``(call_name,
    request_hash)`` in the order they were recorded. Record sessions only
    append.
    """

    def __init__(
        self,
        cassette_path: str | Path,
        mode: str = "record",
        redactor: Redactor | None = None,
    ) -> None:
        self.cassette_path = Path(cassette_path)
        self.mode: CassetteMode = resolve_mode(mode, self.cassette_path)
        self._redactor: Redactor = redactor or redact_text
        self._index: CassetteIndex = {}
        self._counters = _Counters()

        if self.mode == "replay":
            self._index = build_index(load_cassette(self.cassette_path))
        elif self.mode == "record" and has_torn_tail(self.cassette_path):
            raise CassetteFormatError(
                "Cassette does not end with a newline; its last record is probably "
                "truncated. Remove or repair that line before recording",
                self.cassette_path,
            )

        logger.info(
            "session.created",
            cassette_path=str(self.cassette_path),
            requested_mode=mode,
            mode=self.mode,
            entries=sum(len(queue) for queue in self._index.values()),
        )

    @classmethod
    def from_config(cls, config: CassetteConfig, redactor: Redactor | None = None) -> "CassetteSession":
        return cls(config.cassette_path, mode=config.mode, redactor=redactor)

    def wrap(
        self,
        call_name: str,
        func: AsyncFunc[T],
        strategy: CallStrategy | None = None,
    ) -> AsyncFunc[T]:
        """Return an async callable with the same signature as ``func``.

        ``call_name`` must differ between call sites that share an underlying
        function but should not share recordings.
        """
        call_strategy = strategy or CallStrategy()

        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            if self.mode == "passthrough":
                return await func(*args, **kwargs)

            request_hash = compute_request_hash(call_strategy.identity(args, kwargs))
            if self.mode == "replay":
                return self._replay(call_name, request_hash, args, kwargs, call_strategy)
            return await self._record(call_name, request_hash, func, args, kwargs, call_strategy)

        return wrapper

    def recorded(
        self, call_name: str, strategy: CallStrategy | None = None
    ) -> Callable[[AsyncFunc[T]], AsyncFunc[T]]:
        """Decorator form of :meth:`wrap`."""

        def decorator(func: AsyncFunc[T]) -> AsyncFunc[T]:
            return self.wrap(call_name, func, strategy)

        return decorator

    def get_session_stats(self) -> SessionStats:
        return SessionStats(mode=self.mode, **asdict(self._counters))

    def _replay(
        self,
        call_name: str,
        request_hash: str,
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
        strategy: CallStrategy,
    ) -> Any:
        self._counters.calls_replayed += 1
        entry = pop_next(self._index, call_name, request_hash)
        if entry is None:
            self._counters.replay_misses += 1
            logger.warning("replay.miss", call_name=call_name, request_hash=request_hash)
            try:
                args_preview = strategy.args_preview(args, kwargs)
            except Exception as exc:
                logger.warning(
                    "replay.miss_preview_failed",
                    call_name=call_name,
                    error_type=type(exc).__name__,
                )
                raise CassetteMissError(call_name, request_hash) from exc
            detail = format_miss_detail(self._index, call_name, args_preview, rule=self._redactor)
            raise CassetteMissError(call_name, request_hash, detail)

        self._counters.replay_hits += 1
        self._counters.total_tokens_saved_estimate += entry.total_tokens
        logger.debug("replay.hit", call_name=call_name, request_hash=request_hash, ok=entry.ok)
        if entry.error is not None:
            raise ReplayedError(entry.error.name, entry.error.message, entry.error.stack)
        return entry.result

    async def _record(
        self,
        call_name: str,
        request_hash: str,
        func: AsyncFunc[T],
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
        strategy: CallStrategy,
    ) -> T:
        args_preview = strategy.args_preview(args, kwargs)
        start = time.monotonic()
        try:
            result = await func(*args, **kwargs)
        except (Exception, asyncio.CancelledError) as exc:
            latency_ms = int((time.monotonic() - start) * 1000)
            self._append(
                CassetteEntry(
                    call_name=call_name,
                    request_hash=request_hash,
                    recorded_at_ms=_now_ms(),
                    latency_ms=latency_ms,
                    args_preview=args_preview,
                    error=RecordedError(
                        name=type(exc).__name__,
                        message=str(exc),
                        stack=_format_stack(exc),
                    ),
                )
            )
            self._counters.calls_recorded += 1
            logger.info(
                "call.record_failed",
                call_name=call_name,
                request_hash=request_hash,
                error_type=type(exc).__name__,
                latency_ms=latency_ms,
            )
            raise

        latency_ms = int((time.monotonic() - start) * 1000)
        meta = strategy.meta(result)
        self._append(
            CassetteEntry(
                call_name=call_name,
                request_hash=request_hash,
                recorded_at_ms=_now_ms(),
                latency_ms=latency_ms,
                args_preview=args_preview,
                result=result,
                meta=meta,
            )
        )
        self._counters.calls_recorded += 1
        self._counters.total_tokens_recorded += tokens_from_meta(meta)
        logger.info(
            "call.recorded",
            call_name=call_name,
            request_hash=request_hash,
            latency_ms=latency_ms,
        )
        return result

    def _append(self, entry: CassetteEntry) -> None:
        append_entry(self.cassette_path, entry, self._redactor)


def create_cassette(
    cassette_path: str | Path,
    mode: str = "record",
    redactor: Redactor | None = None,
) -> CassetteSession:
    return CassetteSession(cassette_path, mode=mode, redactor=redactor)
