"""Shared test utilities for propstore tests."""

from __future__ import annotations

from propstore.changes import ChangeDetector, SourceStamp
from propstore.resolver import Source, SourceResolver


class FakeClock:
    """Manually advanced wall clock."""

    def __init__(self, start: float = 1_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingResolver(SourceResolver):
    """SourceResolver that remembers which descriptors were read."""

    def __init__(self) -> None:
        super().__init__()
        self.reads: list[str] = []

    def read(self, descriptor: str) -> dict[str, str] | None:
        self.reads.append(descriptor)
        return super().read(descriptor)


class CountingDetector(ChangeDetector):
    """ChangeDetector that counts probes."""

    def __init__(self, resolver: SourceResolver) -> None:
        super().__init__(resolver)
        self.probes = 0

    def probe(self, source: Source) -> SourceStamp:
        self.probes += 1
        return super().probe(source)
