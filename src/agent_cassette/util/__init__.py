from .canonical_json import canonical_dumps, canonicalize_json, hash_canonical, request_hash
from .redaction import Redactor, redact, redact_text

__all__ = [
    "Redactor",
    "canonical_dumps",
    "canonicalize_json",
    "hash_canonical",
    "redact",
    "redact_text",
    "request_hash",
]
