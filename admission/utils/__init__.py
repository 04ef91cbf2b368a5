"""Utility helpers."""
from .time import (  # noqa: F401
    ManualClock,
    MonotonicClock,
    format_duration,
    retry_after_header,
)
