from .engine import CassetteSession, create_cassette, resolve_mode
from .models import CallStrategy, SessionStats

__all__ = ["CallStrategy", "CassetteSession", "SessionStats", "create_cassette", "resolve_mode"]
