"""Admission control engine shared by request handlers."""
from __future__ import annotations

import logging
from typing import Callable, Dict, Optional

from admission.config import AdmissionPolicy
from admission.ledger import ActorLedger
from admission.locks import KeyedLocks
from admission.models import Verdict
from admission.sessions import SessionRegistry
from admission.sweep import ReclamationSweep
from admission.utils import MonotonicClock

LOGGER = logging.getLogger(__name__)


def _require_id(value: object, kind: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{kind} must be a non-empty string")
    return value


class AdmissionEngine:
    """Decides whether an actor may submit or join right now.

    Construct one per process and hand it to request handlers. Every
    per-key operation runs under that key's stripe lock; actors and
    sessions use separate lock pools. Denials are returned as
    :class:`Verdict` values, never raised.

    The engine assumes a clock that does not move backwards.
    """

    def __init__(
        self,
        policy: Optional[AdmissionPolicy] = None,
        clock: Optional[Callable[[], float]] = None,
        *,
        autostart: bool = True,
        stripes: int = 64,
    ) -> None:
        self.policy = policy or AdmissionPolicy()
        self._clock = clock or MonotonicClock()
        self._ledgers: Dict[str, ActorLedger] = {}
        self._sessions: Dict[str, SessionRegistry] = {}
        self._actor_locks = KeyedLocks(stripes)
        self._session_locks = KeyedLocks(stripes)
        self._sweeper = ReclamationSweep(self.policy.sweep_interval_seconds, self.sweep)
        if autostart:
            self.start()

    def __enter__(self) -> "AdmissionEngine":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.destroy()

    @property
    def sweeping(self) -> bool:
        return self._sweeper.running

    def start(self) -> None:
        """Start the periodic reclamation sweep if it is not running."""

        self._sweeper.start()

    # submissions

    def check_submission(self, actor_id: str) -> Verdict:
        """Record a submission attempt and return whether it is allowed."""

        _require_id(actor_id, "actor_id")
        if not self.policy.enforce:
            return Verdict.allow(self.policy.max_per_window)

        with self._actor_locks.lock_for(actor_id):
            now = self._clock()
            ledger = self._ledgers.get(actor_id)
            if ledger is None:
                ledger = ActorLedger(actor_id=actor_id, last_activity=now)
                self._ledgers[actor_id] = ledger
            return ledger.submit(now, self.policy)

    def get_status(self, actor_id: str) -> Verdict:
        """Report the current submission verdict without recording anything."""

        _require_id(actor_id, "actor_id")
        if not self.policy.enforce:
            return Verdict.allow(self.policy.max_per_window)

        with self._actor_locks.lock_for(actor_id):
            ledger = self._ledgers.get(actor_id)
            if ledger is None:
                return Verdict.allow(self.policy.max_per_window)
            return ledger.status(self._clock(), self.policy)

    def reset(self, actor_id: str) -> None:
        """Forget everything recorded for ``actor_id``."""

        _require_id(actor_id, "actor_id")
        with self._actor_locks.lock_for(actor_id):
            removed = self._ledgers.pop(actor_id, None)
        if removed is not None:
            LOGGER.info("Actor ledger reset", extra={"actor_id": actor_id})

    # sessions

    def check_join(self, session_id: str, actor_id: str) -> Verdict:
        """Admit ``actor_id`` to ``session_id`` unless the session is full."""

        _require_id(session_id, "session_id")
        _require_id(actor_id, "actor_id")
        if not self.policy.enforce:
            return Verdict.allow(self.policy.max_capacity)

        with self._session_locks.lock_for(session_id):
            registry = self._sessions.get(session_id)
            if registry is None:
                registry = SessionRegistry(session_id=session_id)
                self._sessions[session_id] = registry
            verdict = registry.join(actor_id, self.policy.max_capacity)
        if not verdict.allowed:
            LOGGER.info(
                "Session join denied",
                extra={"session_id": session_id, "actor_id": actor_id, "reason": verdict.reason},
            )
        return verdict

    def remove_participant(self, session_id: str, actor_id: str) -> None:
        _require_id(session_id, "session_id")
        _require_id(actor_id, "actor_id")
        with self._session_locks.lock_for(session_id):
            registry = self._sessions.get(session_id)
            if registry is None:
                return
            registry.remove(actor_id)
            if not registry.members:
                del self._sessions[session_id]

    def clear_session(self, session_id: str) -> None:
        _require_id(session_id, "session_id")
        with self._session_locks.lock_for(session_id):
            removed = self._sessions.pop(session_id, None)
        if removed is not None:
            LOGGER.info("Session cleared", extra={"session_id": session_id})

    def session_size(self, session_id: str) -> int:
        _require_id(session_id, "session_id")
        with self._session_locks.lock_for(session_id):
            registry = self._sessions.get(session_id)
            return len(registry) if registry is not None else 0

    # lifecycle

    def sweep(self) -> int:
        """Evict idle, unblocked actor ledgers. Returns the number evicted."""

        stale_after = self.policy.stale_after_seconds
        evicted = 0
        for actor_id in list(self._ledgers):
            with self._actor_locks.lock_for(actor_id):
                ledger = self._ledgers.get(actor_id)
                if ledger is None or not ledger.is_stale(self._clock(), stale_after):
                    continue
                del self._ledgers[actor_id]
                evicted += 1
        if evicted:
            LOGGER.info("Reclaimed idle actor ledgers", extra={"evicted": evicted})
        else:
            LOGGER.debug("Reclamation sweep found nothing to evict")
        return evicted

    def destroy(self) -> None:
        """Stop the sweep and drop all ledgers and registries."""

        self._sweeper.stop()
        self._ledgers.clear()
        self._sessions.clear()
