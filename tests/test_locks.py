"""Tests for the reader/writer lock."""

from __future__ import annotations

import threading
import time

import pytest

from propstore.locks import ReadWriteLock


class TestReadWriteLock:
    """Test shared/exclusive semantics."""

    def test_readers_share(self) -> None:
        """Two readers hold the lock at the same time."""
        lock = ReadWriteLock()
        barrier = threading.Barrier(2, timeout=2.0)
        errors: list[BaseException] = []

        def reader() -> None:
            try:
                with lock.read_locked():
                    barrier.wait()
            except BaseException as e:
                errors.append(e)

        threads = [threading.Thread(target=reader) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5.0)
        assert errors == []

    def test_writer_excludes_readers(self) -> None:
        lock = ReadWriteLock()
        acquired = threading.Event()

        def reader() -> None:
            with lock.read_locked():
                acquired.set()

        with lock.write_locked():
            t = threading.Thread(target=reader)
            t.start()
            assert not acquired.wait(timeout=0.1)
        assert acquired.wait(timeout=2.0)
        t.join(timeout=2.0)

    def test_reader_excludes_writer(self) -> None:
        lock = ReadWriteLock()
        acquired = threading.Event()

        def writer() -> None:
            with lock.write_locked():
                acquired.set()

        with lock.read_locked():
            t = threading.Thread(target=writer)
            t.start()
            assert not acquired.wait(timeout=0.1)
        assert acquired.wait(timeout=2.0)
        t.join(timeout=2.0)

    def test_waiting_writer_blocks_new_readers(self) -> None:
        lock = ReadWriteLock()
        order: list[str] = []

        def writer() -> None:
            with lock.write_locked():
                order.append("writer")

        def reader() -> None:
            with lock.read_locked():
                order.append("reader")

        with lock.read_locked():
            w = threading.Thread(target=writer)
            w.start()
            # Let the writer queue up
            deadline = time.monotonic() + 2.0
            while lock._waiting_writers == 0 and time.monotonic() < deadline:
                time.sleep(0.001)
            r = threading.Thread(target=reader)
            r.start()
            time.sleep(0.05)
            assert order == []
        w.join(timeout=2.0)
        r.join(timeout=2.0)
        assert order == ["writer", "reader"]

    def test_write_reentrant(self) -> None:
        lock = ReadWriteLock()
        with lock.write_locked():
            with lock.write_locked():
                assert lock.write_held
            assert lock.write_held
        assert not lock.write_held

    def test_writer_may_read(self) -> None:
        lock = ReadWriteLock()
        with lock.write_locked():
            with lock.read_locked():
                assert lock.reader_count == 1
        assert lock.reader_count == 0

    def test_read_reentrant(self) -> None:
        lock = ReadWriteLock()
        with lock.read_locked():
            with lock.read_locked():
                assert lock.reader_count == 1
        assert lock.reader_count == 0

    def test_upgrade_refused(self) -> None:
        lock = ReadWriteLock()
        with lock.read_locked():
            with pytest.raises(RuntimeError):
                lock.acquire_write()

    def test_release_unheld(self) -> None:
        lock = ReadWriteLock()
        with pytest.raises(RuntimeError):
            lock.release_read()
        with pytest.raises(RuntimeError):
            lock.release_write()
