from __future__ import annotations

from contextlib import contextmanager
from threading import Lock
from typing import Iterator, Set


class InFlightGuard:
    """One in-flight answer per step; a second concurrent attempt is refused."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._keys: Set[str] = set()

    def acquire(self, key: str) -> bool:
        with self._lock:
            if key in self._keys:
                return False
            self._keys.add(key)
            return True

    def release(self, key: str) -> None:
        with self._lock:
            self._keys.discard(key)

    @contextmanager
    def hold(self, key: str) -> Iterator[bool]:
        acquired = self.acquire(key)
        try:
            yield acquired
        finally:
            if acquired:
                self.release(key)
