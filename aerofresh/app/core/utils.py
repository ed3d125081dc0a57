"""Utility functions for the API."""

import math
import time


def now_ms() -> int:
    """Current wall-clock time as integer epoch milliseconds."""
    return int(time.time() * 1000)


def ms_to_epoch_seconds(timestamp_ms: int) -> int:
    """Convert epoch milliseconds to epoch seconds, rounding up.

    Examples:
        >>> ms_to_epoch_seconds(1_700_000_000_001)
        1700000001
        >>> ms_to_epoch_seconds(1_700_000_000_000)
        1700000000
    """
    return math.ceil(timestamp_ms / 1000)
