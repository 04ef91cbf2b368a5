"""Per-actor submission ledger with sliding-window counting and escalation."""
from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Optional

from admission.config import AdmissionPolicy
from admission.models import (
    RATE_LIMIT_EXCEEDED,
    TEMPORARY_BLOCK,
    TOO_MANY_VIOLATIONS,
    Verdict,
)
from admission.utils import format_duration

LOGGER = logging.getLogger(__name__)


@dataclass
class ActorLedger:
    """Recent accepted actions, violation streak and block state for one actor.

    Callers must hold the actor's lock for every method that mutates.
    """

    actor_id: str
    recent_actions: Deque[float] = field(default_factory=deque)
    violation_count: int = 0
    blocked_until: Optional[float] = None
    last_activity: float = 0.0

    def is_blocked(self, now: float) -> bool:
        return self.blocked_until is not None and self.blocked_until > now

    def prune(self, now: float, window: float) -> None:
        """Drop actions that have left the trailing window."""

        cutoff = now - window
        while self.recent_actions and self.recent_actions[0] <= cutoff:
            self.recent_actions.popleft()

    def reset_in(self, now: float, window: float) -> float:
        """Seconds until the oldest retained action leaves the window."""

        if not self.recent_actions:
            return 0.0
        return max(0.0, self.recent_actions[0] + window - now)

    def submit(self, now: float, policy: AdmissionPolicy) -> Verdict:
        self.last_activity = now

        if self.is_blocked(now):
            wait = self.blocked_until - now
            return Verdict.deny(TEMPORARY_BLOCK, retry_after=wait, reset_in=wait)

        if self.blocked_until is not None:
            # lapsed block: the streak starts over
            self.blocked_until = None
            self.violation_count = 0

        window = policy.window_seconds
        self.prune(now, window)

        if len(self.recent_actions) < policy.max_per_window:
            self.recent_actions.append(now)
            return Verdict.allow(
                policy.max_per_window - len(self.recent_actions),
                self.reset_in(now, window),
            )

        self.violation_count += 1
        if self.violation_count >= policy.max_violations:
            block = policy.block_seconds
            self.blocked_until = now + block
            self.violation_count = 0
            reason = f"{TOO_MANY_VIOLATIONS}: blocked for {format_duration(block)}"
            LOGGER.warning(
                "Actor blocked",
                extra={"actor_id": self.actor_id, "reason": reason, "retry_after": block},
            )
            return Verdict.deny(reason, retry_after=block, reset_in=block)

        wait = self.reset_in(now, window)
        LOGGER.debug(
            "Submission denied",
            extra={"actor_id": self.actor_id, "reason": RATE_LIMIT_EXCEEDED},
        )
        return Verdict.deny(RATE_LIMIT_EXCEEDED, retry_after=wait, reset_in=wait)

    def status(self, now: float, policy: AdmissionPolicy) -> Verdict:
        """Same decision as ``submit`` without recording anything."""

        if self.is_blocked(now):
            wait = self.blocked_until - now
            return Verdict.deny(TEMPORARY_BLOCK, retry_after=wait, reset_in=wait)

        window = policy.window_seconds
        cutoff = now - window
        active = [ts for ts in self.recent_actions if ts > cutoff]
        reset_in = max(0.0, active[0] + window - now) if active else 0.0
        remaining = max(0, policy.max_per_window - len(active))
        if remaining == 0:
            return Verdict.deny(RATE_LIMIT_EXCEEDED, retry_after=reset_in, reset_in=reset_in)
        return Verdict.allow(remaining, reset_in)

    def is_stale(self, now: float, stale_after: float) -> bool:
        return not self.is_blocked(now) and now - self.last_activity > stale_after
