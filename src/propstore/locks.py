"""Reentrant reader/writer lock.

Many threads may hold shared (read) access at once; exclusive (write) access
excludes everyone else. Rules:
- Waiting writers block new readers, so a stream of readers cannot starve a writer
- A thread already holding read access may take it again
- The write owner may take write access again, and may also take read access
- Upgrading read access to write access raises RuntimeError (it would deadlock)
"""

from __future__ import annotations

import contextlib
import threading
from collections.abc import Iterator


class ReadWriteLock:
    """Reentrant shared/exclusive lock built on a condition variable."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers: dict[int, int] = {}  # thread ident -> hold count
        self._writer: int | None = None
        self._write_count = 0
        self._waiting_writers = 0

    def acquire_read(self) -> None:
        me = threading.get_ident()
        with self._cond:
            if self._writer == me or me in self._readers:
                self._readers[me] = self._readers.get(me, 0) + 1
                return
            while self._writer is not None or self._waiting_writers:
                self._cond.wait()
            self._readers[me] = 1

    def release_read(self) -> None:
        me = threading.get_ident()
        with self._cond:
            count = self._readers.get(me)
            if not count:
                raise RuntimeError("Cannot release a read lock that is not held")
            if count == 1:
                del self._readers[me]
                if not self._readers:
                    self._cond.notify_all()
            else:
                self._readers[me] = count - 1

    def acquire_write(self) -> None:
        me = threading.get_ident()
        with self._cond:
            if self._writer == me:
                self._write_count += 1
                return
            if me in self._readers:
                raise RuntimeError("Cannot upgrade a read lock to a write lock")
            self._waiting_writers += 1
            try:
                while self._writer is not None or self._readers:
                    self._cond.wait()
            finally:
                self._waiting_writers -= 1
            self._writer = me
            self._write_count = 1

    def release_write(self) -> None:
        me = threading.get_ident()
        with self._cond:
            if self._writer != me:
                raise RuntimeError("Cannot release a write lock that is not held")
            self._write_count -= 1
            if self._write_count == 0:
                self._writer = None
                self._cond.notify_all()

    @contextlib.contextmanager
    def read_locked(self) -> Iterator[None]:
        """Hold shared access for the duration of the block."""
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextlib.contextmanager
    def write_locked(self) -> Iterator[None]:
        """Hold exclusive access for the duration of the block."""
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()

    @property
    def write_held(self) -> bool:
        """True if the calling thread holds exclusive access."""
        return self._writer == threading.get_ident()

    @property
    def reader_count(self) -> int:
        """Number of threads currently holding shared access."""
        with self._cond:
            return len(self._readers)
