"""Striped locks for per-key critical sections."""
from __future__ import annotations

from threading import Lock
from typing import Hashable, List


class KeyedLocks:
    """Fixed pool of locks; each key always maps to the same stripe.

    Two keys may share a stripe, which only costs parallelism.
    """

    def __init__(self, stripes: int = 64) -> None:
        if stripes < 1:
            raise ValueError("stripes must be at least 1")
        self._locks: List[Lock] = [Lock() for _ in range(stripes)]

    def lock_for(self, key: Hashable) -> Lock:
        return self._locks[hash(key) % len(self._locks)]

    def __len__(self) -> int:
        return len(self._locks)
