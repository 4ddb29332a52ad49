"""
Time utility functions. All engine timestamps are integer epoch milliseconds.
"""
import time

MS_PER_DAY = 24 * 60 * 60 * 1000


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def days_to_ms(days: int) -> int:
    return days * MS_PER_DAY
