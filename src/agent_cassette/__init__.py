from .cassette import (
    CassetteEntry,
    CassetteError,
    CassetteFormatError,
    CassetteMissError,
    RecordedError,
    ReplayedError,
)
from .config import CassetteConfig, load_config
from .identity import build_openai_responses_identity, extract_openai_usage_meta
from .session import CallStrategy, CassetteSession, SessionStats, create_cassette
from .util import canonical_dumps, redact, redact_text, request_hash

__version__ = "0.1.0"

__all__ = [
    "CallStrategy",
    "CassetteConfig",
    "CassetteEntry",
    "CassetteError",
    "CassetteFormatError",
    "CassetteMissError",
    "CassetteSession",
    "RecordedError",
    "ReplayedError",
    "SessionStats",
    "build_openai_responses_identity",
    "canonical_dumps",
    "create_cassette",
    "extract_openai_usage_meta",
    "load_config",
    "redact",
    "redact_text",
    "request_hash",
]
