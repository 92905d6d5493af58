"""Per-key locks for serializing trigger work on the same assets."""

import threading
from contextlib import contextmanager
from typing import Iterable


class KeyedLock:
    """A registry of reentrant locks, one per key, created on demand.

    ``hold`` takes the locks for a set of keys in sorted order so two
    callers with overlapping keys cannot deadlock. Entries are dropped
    once nobody holds or waits on them.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[str, threading.RLock] = {}
        self._refs: dict[str, int] = {}

    def _acquire_entry(self, key: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.RLock()
            self._refs[key] = self._refs.get(key, 0) + 1
            return lock

    def _release_entry(self, key: str) -> None:
        with self._guard:
            self._refs[key] -= 1
            if self._refs[key] == 0:
                del self._refs[key]
                del self._locks[key]

    @contextmanager
    def hold(self, keys: Iterable[str]):
        ordered = sorted(set(keys))
        held = []
        try:
            for key in ordered:
                lock = self._acquire_entry(key)
                try:
                    lock.acquire()
                except BaseException:
                    self._release_entry(key)
                    raise
                held.append((key, lock))
            yield
        finally:
            for key, lock in reversed(held):
                lock.release()
                self._release_entry(key)

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


# Module-level singleton shared by all requests in this process
asset_locks = KeyedLock()
