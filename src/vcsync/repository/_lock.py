"""Per-repository readers-writer lock."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator


class RepositoryLock:
    """Readers-writer lock guarding one repository.

    Any number of readers may hold the lock together; a writer holds it
    alone. Waiting writers block new readers so a steady stream of reads
    cannot starve a commit. The write side is reentrant for the owning
    thread, and the owner may also take the read side, so a commit can
    trigger a sync or a history lookup without deadlocking on itself.

    Example:
        >>> lock = RepositoryLock()
        >>> with lock.write():
        ...     with lock.read():
        ...         pass
    """

    __slots__ = ("__weakref__", "_cond", "_owner", "_readers", "_waiting_writers", "_write_depth")

    def __init__(self) -> None:
        self._cond: threading.Condition = threading.Condition(threading.Lock())
        self._readers: int = 0
        self._waiting_writers: int = 0
        self._owner: int | None = None
        self._write_depth: int = 0

    def acquire_read(self) -> None:
        """Acquire the lock in shared mode."""
        me = threading.get_ident()
        with self._cond:
            if self._owner == me:
                self._write_depth += 1
                return
            while self._owner is not None or self._waiting_writers:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        """Release a shared hold."""
        with self._cond:
            if self._owner == threading.get_ident():
                self._release_write_locked()
                return
            if self._readers <= 0:
                msg = "release_read() called without a matching acquire_read()"
                raise RuntimeError(msg)
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        """Acquire the lock in exclusive mode."""
        me = threading.get_ident()
        with self._cond:
            if self._owner == me:
                self._write_depth += 1
                return
            self._waiting_writers += 1
            try:
                while self._owner is not None or self._readers:
                    self._cond.wait()
            finally:
                self._waiting_writers -= 1
            self._owner = me
            self._write_depth = 1

    def release_write(self) -> None:
        """Release an exclusive hold."""
        with self._cond:
            if self._owner != threading.get_ident():
                msg = "release_write() called by a thread that does not own the lock"
                raise RuntimeError(msg)
            self._release_write_locked()

    def _release_write_locked(self) -> None:
        self._write_depth -= 1
        if self._write_depth == 0:
            self._owner = None
            self._cond.notify_all()

    @property
    def readers(self) -> int:
        """Return the number of threads holding the shared side."""
        return self._readers

    @property
    def write_locked(self) -> bool:
        """Return True if some thread holds the exclusive side."""
        return self._owner is not None

    @contextmanager
    def read(self) -> Iterator[None]:
        """Hold the lock in shared mode for the duration of the block."""
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write(self) -> Iterator[None]:
        """Hold the lock in exclusive mode for the duration of the block."""
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()
