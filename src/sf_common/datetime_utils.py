"""UTC datetime and clock utilities."""

import time
from collections.abc import Callable
from datetime import datetime, timezone

# Returns seconds as float. Wall clock for persisted timestamps,
# monotonic clock for in-memory staleness.
Clock = Callable[[], float]

wall_clock: Clock = time.time
monotonic_clock: Clock = time.monotonic


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)
