from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping

from agent_cassette.config.models import CassetteMode


def default_call_payload(args: tuple[Any, ...], kwargs: Mapping[str, Any]) -> dict[str, Any]:
    return {"args": list(args), "kwargs": dict(kwargs)}


@dataclass(frozen=True)
class CallStrategy:
    """Per-call-site hooks, each called with the wrapped call's own arguments.

    ``build_identity`` decides which calls count as the same call during
    replay. ``build_args_preview`` controls what is stored for humans to read.
    ``build_meta`` receives the successful result and returns side-channel data
    such as ``{"total_tokens": 123}``.
    """

    build_identity: Callable[..., Any] | None = None
    build_args_preview: Callable[..., Any] | None = None
    build_meta: Callable[[Any], Mapping[str, Any] | None] | None = None

    def identity(self, args: tuple[Any, ...], kwargs: Mapping[str, Any]) -> Any:
        if self.build_identity is None:
            return default_call_payload(args, kwargs)
        return self.build_identity(*args, **kwargs)

    def args_preview(self, args: tuple[Any, ...], kwargs: Mapping[str, Any]) -> Any:
        if self.build_args_preview is None:
            return default_call_payload(args, kwargs)
        return self.build_args_preview(*args, **kwargs)

    def meta(self, result: Any) -> dict[str, Any] | None:
        if self.build_meta is None:
            return None
        meta = self.build_meta(result)
        return dict(meta) if meta is not None else None


@dataclass(frozen=True)
class SessionStats:
    mode: CassetteMode
    calls_recorded: int = 0
    calls_replayed: int = 0
    replay_hits: int = 0
    replay_misses: int = 0
    total_tokens_recorded: int | float = 0
    total_tokens_saved_estimate: int | float = 0

    @property
    def replay_hit_rate(self) -> float:
        if self.calls_replayed == 0:
            return 0.0
        return self.replay_hits / self.calls_replayed


@dataclass
class _Counters:
    calls_recorded: int = 0
    calls_replayed: int = 0
    replay_hits: int = 0
    replay_misses: int = 0
    total_tokens_recorded: int | float = 0
    total_tokens_saved_estimate: int | float = 0
