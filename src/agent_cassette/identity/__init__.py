from .openai import build_openai_responses_identity, extract_openai_usage_meta

__all__ = ["build_openai_responses_identity", "extract_openai_usage_meta"]
