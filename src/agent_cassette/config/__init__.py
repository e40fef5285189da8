from .loader import load_config
from .models import CASSETTE_MODES, CassetteConfig, CassetteMode

__all__ = ["CASSETTE_MODES", "CassetteConfig", "CassetteMode", "load_config"]
