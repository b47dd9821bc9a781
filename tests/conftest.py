"""Root pytest configuration for all tests."""

from __future__ import annotations

import os
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from propstore.logging import reset_logging
from tests.utils import FakeClock

pytest_plugins = ("pytest_asyncio",)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def write_props(tmp_path: Path) -> Callable[..., Path]:
    """Write a properties file under tmp_path, optionally pinning its mtime."""

    def _write(name: str, content: str, mtime: float | None = None) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content.encode("latin-1"))
        if mtime is not None:
            os.utime(path, (mtime, mtime))
        return path

    return _write


@pytest.fixture(autouse=True)
def reset_propstore_logging() -> Iterator[None]:
    """Undo any setup_logging() a test performed."""
    yield
    reset_logging()
