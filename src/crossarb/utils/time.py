"""
Time utilities.

Wall-clock timestamps for request signing and monotonic helpers for
measuring elapsed time on the hot path.
"""

import time


def get_timestamp_ms() -> int:
    """
    Get current timestamp in milliseconds.

    Used by both venues' signing schemes, which expect millisecond
    Unix timestamps.

    Returns:
        Current Unix timestamp in milliseconds.
    """
    return time.time_ns() // 1_000_000


def elapsed_since(start: float) -> float:
    """
    Seconds elapsed since a monotonic() reading.

    Args:
        start: Earlier monotonic() value.

    Returns:
        Elapsed seconds, 0.0 if `start` was never set.
    """
    if start <= 0:
        return 0.0
    return time.monotonic() - start


def format_duration(seconds: float) -> str:
    """
    Format a duration for log output.

    Examples:
        >>> format_duration(0.0123)
        '12.3ms'
        >>> format_duration(1.5)
        '1.50s'
    """
    if seconds < 1.0:
        return f"{seconds * 1000:.1f}ms"
    return f"{seconds:.2f}s"
