"""
Per-key lock table.

Ledger writes for one user must not interleave inside a process; writes
for different users never contend. Entries are reference counted and
dropped when the last holder releases, so the table only holds keys
that are currently in use.
"""
import threading
from contextlib import contextmanager
from typing import Dict, Hashable, Iterator


class KeyedLock:
    """A lock per key, created on demand."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[Hashable, threading.Lock] = {}
        self._waiters: Dict[Hashable, int] = {}

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
                self._waiters[key] = 0
            self._waiters[key] += 1

        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                self._waiters[key] -= 1
                if self._waiters[key] == 0:
                    del self._waiters[key]
                    del self._locks[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


# Process-wide table guarding loyalty account writes
account_locks = KeyedLock()
