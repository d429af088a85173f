"""Utility functions for the arbitrage engine."""

from crossarb.utils.time import (
    elapsed_since,
    format_duration,
    get_timestamp_ms,
)


__all__ = [
    "elapsed_since",
    "format_duration",
    "get_timestamp_ms",
]
