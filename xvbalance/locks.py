"""Mutual-exclusion locks: spin locks owned by a CPU and sleep locks owned by a process."""

from __future__ import annotations

import threading
from typing import Hashable, Optional


class LockError(RuntimeError):
    """Raised when a lock is acquired twice or released by a non-holder."""


class SpinLock:
    """A lock that records which CPU holds it.

    Acquiring a lock the same CPU already holds, or releasing a lock the
    CPU does not hold, is a fatal error and raises :class:`LockError`.
    Contention from another CPU blocks until the lock is free.
    """

    def __init__(self, name: str = "") -> None:
        self.name = name
        self.cpu: Optional[Hashable] = None
        self._lock = threading.Lock()

    @property
    def locked(self) -> bool:
        """Whether any CPU currently holds the lock."""
        return self._lock.locked()

    def acquire(self, cpu: Hashable) -> None:
        """Take the lock on behalf of ``cpu``, waiting while another CPU holds it."""
        if self.holding(cpu):
            raise LockError(f"acquire: {self.name or 'lock'} already held by cpu {cpu}")
        self._lock.acquire()
        self.cpu = cpu

    def release(self, cpu: Hashable) -> None:
        """Give up the lock; ``cpu`` must be the holder."""
        if not self.holding(cpu):
            raise LockError(f"release: {self.name or 'lock'} not held by cpu {cpu}")
        self.cpu = None
        self._lock.release()

    def holding(self, cpu: Hashable) -> bool:
        """Whether ``cpu`` holds this lock."""
        return self._lock.locked() and self.cpu == cpu

    def __repr__(self) -> str:
        return f"SpinLock(name={self.name!r}, locked={self.locked}, cpu={self.cpu!r})"


class SleepLock:
    """A long-term lock; waiters sleep until the holder releases it."""

    def __init__(self, name: str = "") -> None:
        self.name = name
        self.locked = False
        self.pid = 0
        self._cond = threading.Condition()

    def acquire(self, pid: int) -> None:
        """Take the lock for process ``pid``, sleeping while it is held."""
        with self._cond:
            while self.locked:
                self._cond.wait()
            self.locked = True
            self.pid = pid

    def release(self) -> None:
        """Release the lock and wake every waiter."""
        with self._cond:
            self.locked = False
            self.pid = 0
            self._cond.notify_all()

    def holding(self, pid: int) -> bool:
        """Whether process ``pid`` holds the lock."""
        with self._cond:
            return self.locked and self.pid == pid

    def __repr__(self) -> str:
        return f"SleepLock(name={self.name!r}, locked={self.locked}, pid={self.pid})"