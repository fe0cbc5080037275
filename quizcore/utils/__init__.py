"""Utility modules."""
from quizcore.utils.json_utils import (
    compact_dump,
    json_dump,
    json_load,
    read_json_file,
    write_json_file,
    write_text_atomic,
)
from quizcore.utils.time_utils import now_ms, utc_now

__all__ = [
    "compact_dump",
    "json_dump",
    "json_load",
    "read_json_file",
    "write_json_file",
    "write_text_atomic",
    "now_ms",
    "utc_now",
]
