"""Verdicts returned by admission checks."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

TEMPORARY_BLOCK = "temporary block"
RATE_LIMIT_EXCEEDED = "rate limit exceeded"
TOO_MANY_VIOLATIONS = "too many violations"
SESSION_FULL = "session has reached maximum capacity"


@dataclass(frozen=True)
class Verdict:
    """Allow/deny decision for a single check.

    ``reset_in`` and ``retry_after`` are seconds. ``retry_after`` and
    ``reason`` are only populated on denials.
    """

    allowed: bool
    remaining: int
    reset_in: float = 0.0
    retry_after: Optional[float] = None
    reason: Optional[str] = None

    @classmethod
    def allow(cls, remaining: int, reset_in: float = 0.0) -> "Verdict":
        return cls(allowed=True, remaining=remaining, reset_in=reset_in)

    @classmethod
    def deny(
        cls,
        reason: str,
        *,
        retry_after: Optional[float] = None,
        reset_in: float = 0.0,
    ) -> "Verdict":
        return cls(
            allowed=False,
            remaining=0,
            reset_in=reset_in,
            retry_after=retry_after,
            reason=reason,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "allowed": self.allowed,
            "remaining": self.remaining,
            "resetIn": self.reset_in,
            "retryAfter": self.retry_after,
            "reason": self.reason,
        }
