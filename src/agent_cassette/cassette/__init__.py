from .errors import CassetteError, CassetteFormatError, CassetteMissError, ReplayedError
from .loader import has_torn_tail, load_cassette
from .match import build_index, format_miss_detail, pop_next
from .models import CASSETTE_VERSION, CassetteEntry, RecordedError
from .writer import append_entry

__all__ = [
    "CASSETTE_VERSION",
    "CassetteEntry",
    "CassetteError",
    "CassetteFormatError",
    "CassetteMissError",
    "RecordedError",
    "ReplayedError",
    "append_entry",
    "build_index",
    "format_miss_detail",
    "has_torn_tail",
    "load_cassette",
    "pop_next",
]
