"""Per-payrun exclusive locks.

State-changing payrun operations hold the payrun's lock from the status
re-read until after commit, so operations on one payrun never interleave
inside this process. Across processes the status compare-and-set in
``PayrunRepository.claim`` (plus ``SELECT ... FOR UPDATE`` where the database
supports it) gives the same guarantee; this registry keeps in-process callers
from racing each other into that check.
"""
from __future__ import annotations
import threading
from collections.abc import Iterator
from contextlib import contextmanager


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.users = 0


class PayrunLockRegistry:
    """Locks are created on first use and dropped once nobody holds or waits on them."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[int, _Entry] = {}

    @contextmanager
    def hold(self, payrun_id: int) -> Iterator[None]:
        with self._guard:
            entry = self._locks.get(payrun_id)
            if entry is None:
                entry = self._locks[payrun_id] = _Entry()
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._locks[payrun_id]

    def is_held(self, payrun_id: int) -> bool:
        with self._guard:
            entry = self._locks.get(payrun_id)
            return entry is not None and entry.lock.locked()

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


payrun_locks = PayrunLockRegistry()
