"""Spin locks and sleep locks between threads."""

from __future__ import annotations

import threading
import traceback

_MAX_PCS = 10


class LockError(RuntimeError):
    """Raised when a lock is acquired twice or released by a non-holder."""


class SpinLock:
    """A non-reentrant mutual exclusion lock that remembers its holder."""

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._lock = threading.Lock()
        self._owner: int | None = None
        self.pcs: tuple[traceback.FrameSummary, ...] = ()

    @property
    def locked(self) -> bool:
        return self._lock.locked()

    def acquire(self) -> None:
        """Wait until the lock is free, then take it."""
        if self.holding():
            raise LockError(f"acquire: {self.name!r} already held")
        self._lock.acquire()
        self._owner = threading.get_ident()
        self.pcs = tuple(traceback.extract_stack(limit=_MAX_PCS + 1)[:-1])

    def release(self) -> None:
        """Release a lock the current thread holds."""
        if not self.holding():
            raise LockError(f"release: {self.name!r} not held")
        self.pcs = ()
        self._owner = None
        self._lock.release()

    def holding(self) -> bool:
        """Whether the current thread holds the lock."""
        return self._lock.locked() and self._owner == threading.get_ident()

    def __enter__(self) -> SpinLock:
        self.acquire()
        return self

    def __exit__(self, *args: object) -> None:
        self.release()


class SleepLock:
    """A long-term lock; waiters sleep until it is released.

    As with the kernel's sleep locks, release does not check the holder.
    """

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._cond = threading.Condition(threading.Lock())
        self.locked = False
        self.holder = 0  # thread identifier of the holder, 0 when free

    def acquire(self) -> None:
        """Sleep until the lock is free, then take it."""
        with self._cond:
            while self.locked:
                self._cond.wait()
            self.locked = True
            self.holder = threading.get_ident()

    def release(self) -> None:
        """Free the lock and wake every waiter."""
        with self._cond:
            self.locked = False
            self.holder = 0
            self._cond.notify_all()

    def holding(self) -> bool:
        """Whether the current thread holds the lock."""
        with self._cond:
            return self.locked and self.holder == threading.get_ident()

    def __enter__(self) -> SleepLock:
        self.acquire()
        return self

    def __exit__(self, *args: object) -> None:
        self.release()