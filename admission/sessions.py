"""Per-session capacity registry."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Set

from admission.models import SESSION_FULL, Verdict


@dataclass
class SessionRegistry:
    """Distinct actors currently counted against a session's capacity."""

    session_id: str
    members: Set[str] = field(default_factory=set)

    def join(self, actor_id: str, capacity: int) -> Verdict:
        if actor_id in self.members:
            return Verdict.allow(capacity - len(self.members))
        if len(self.members) >= capacity:
            return Verdict.deny(SESSION_FULL)
        self.members.add(actor_id)
        return Verdict.allow(capacity - len(self.members))

    def remove(self, actor_id: str) -> bool:
        if actor_id not in self.members:
            return False
        self.members.discard(actor_id)
        return True

    def __len__(self) -> int:
        return len(self.members)
