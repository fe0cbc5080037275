"""Time utilities."""
import time
from datetime import datetime, timezone


def utc_now() -> str:
    """Get current UTC timestamp as ISO string."""
    return datetime.now(timezone.utc).isoformat()


def now_ms() -> int:
    """Get current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)
