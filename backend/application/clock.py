"""Source of "now" for the engine, plus per-store mutation locks."""
from __future__ import annotations

import threading
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterator, Optional


class Clock:
    """Wall clock in naive UTC, the form every timestamp is stored in."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc).replace(tzinfo=None)


class ManualClock(Clock):
    """Clock that only moves when told to; used by tests and replay tooling."""

    def __init__(self, start: Optional[datetime] = None):
        self._now = start or datetime(2024, 1, 1, 18, 0, 0)

    def now(self) -> datetime:
        return self._now

    def set(self, value: datetime) -> None:
        self._now = value

    def advance(self, minutes: float = 0, seconds: float = 0) -> datetime:
        self._now = self._now + timedelta(minutes=minutes, seconds=seconds)
        return self._now


class StoreLocks:
    """One re-entrant lock per store so mutations on a store never interleave."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.RLock] = {}

    @contextmanager
    def hold(self, store_id: str) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(store_id, threading.RLock())
        with lock:
            yield
