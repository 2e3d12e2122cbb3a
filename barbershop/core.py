# barbershop/core.py

import threading
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Dict, Optional

from .errors import LockTimeoutError


def overlaps(start_a, end_a, start_b, end_b) -> bool:
    return start_a < end_b and start_b < end_a


def interval(start: datetime, duration_minutes: int):
    return start, start + timedelta(minutes=duration_minutes)


class KeyedLocks:
    """One exclusive lock per key (barber id, appointment id, customer).

    Acquisition waits at most ``timeout`` seconds and then raises
    ``LockTimeoutError`` instead of hanging. A key's lock is dropped once
    nobody holds or waits for it.
    """

    def __init__(self, name: str, timeout: float):
        self.name = name
        self.timeout = timeout
        # key -> [lock, holders and waiters]
        self._locks: Dict[str, list] = {}
        self._guard = threading.Lock()

    def _checkout(self, key: str) -> list:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = [threading.Lock(), 0]
            entry[1] += 1
            return entry

    def _checkin(self, key: str, entry: list) -> None:
        with self._guard:
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[key]

    def active_keys(self) -> int:
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, key: str):
        entry = self._checkout(key)
        lock = entry[0]
        try:
            if not lock.acquire(timeout=self.timeout):
                raise LockTimeoutError(f"{self.name} {key} is busy, try again")
            try:
                yield
            finally:
                lock.release()
        finally:
            self._checkin(key, entry)


class AccessScope:
    """Who is looking. Non-admin staff only ever see their own appointments."""

    ALL = "all"

    def __init__(self, viewer_id: str, is_admin: bool = False):
        self.viewer_id = viewer_id
        self.is_admin = is_admin

    def barber_filter(self, requested: str = ALL) -> Optional[str]:
        """Barber id to restrict to, or None for the whole team."""
        if not self.is_admin:
            return self.viewer_id
        if requested in (None, "", self.ALL):
            return None
        return requested
