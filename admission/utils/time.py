"""Time helpers."""
from __future__ import annotations

import math
import time


class MonotonicClock:
    """Clock backed by ``time.monotonic``."""

    def __call__(self) -> float:
        return time.monotonic()


class ManualClock:
    """Deterministic clock that only moves when told to."""

    def __init__(self, start: float = 0.0) -> None:
        self._now = float(start)

    def __call__(self) -> float:
        return self._now

    def advance(self, seconds: float) -> float:
        self._now += seconds
        return self._now

    def set(self, value: float) -> None:
        self._now = float(value)


def format_duration(seconds: float) -> str:
    """Render a duration as ``"5 minutes"`` or ``"30 seconds"``."""

    total = max(1, math.ceil(seconds))
    if total < 60:
        count = total
        unit = "second"
    else:
        count = math.ceil(total / 60)
        unit = "minute"
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def retry_after_header(seconds: float | None) -> str:
    """Whole seconds for a ``Retry-After`` header, rounded up."""

    return str(max(0, math.ceil(seconds or 0)))
