"""Merge policies: how multiple sources combine into one table.

Two policies exist:
- FIRST: the first source that exists wins, later sources are never touched
- MERGE: every existing source is loaded in order, later sources win on collisions

Sources that do not exist are skipped under both. A source that exists but cannot
be read or parsed raises LoadError.
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum
from typing import TYPE_CHECKING, Protocol

from propstore.errors import DescriptorError
from propstore.logging import TRACE, get_logger

if TYPE_CHECKING:
    from propstore.changes import ChangeDetector
    from propstore.resolver import SourceResolver

log = get_logger("load_type")


class LoadPolicy(Protocol):
    """Strategy interface shared by the two load types."""

    def load(self, sources: Sequence[str], resolver: SourceResolver) -> dict[str, str]: ...

    def needs_reload(
        self,
        sources: Sequence[str],
        resolver: SourceResolver,
        detector: ChangeDetector,
        since: float,
    ) -> bool: ...


class FirstAvailable:
    """Use the first source that exists."""

    def load(self, sources: Sequence[str], resolver: SourceResolver) -> dict[str, str]:
        for descriptor in sources:
            table = resolver.read(descriptor)
            if table is not None:
                return table
        return {}

    def needs_reload(
        self,
        sources: Sequence[str],
        resolver: SourceResolver,
        detector: ChangeDetector,
        since: float,
    ) -> bool:
        for descriptor in sources:
            stamp = detector.probe(resolver.resolve(descriptor))
            if stamp.exists:
                log.log(TRACE, "First source %s: %s", descriptor, stamp)
                return stamp.changed_since(since)
        return False


class MergeAll:
    """Merge every source that exists, later ones overriding earlier ones."""

    def load(self, sources: Sequence[str], resolver: SourceResolver) -> dict[str, str]:
        result: dict[str, str] = {}
        for descriptor in sources:
            table = resolver.read(descriptor)
            if table is not None:
                result.update(table)
        return result

    def needs_reload(
        self,
        sources: Sequence[str],
        resolver: SourceResolver,
        detector: ChangeDetector,
        since: float,
    ) -> bool:
        for descriptor in sources:
            stamp = detector.probe(resolver.resolve(descriptor))
            if stamp.changed_since(since):
                log.log(TRACE, "Source changed: %s", descriptor)
                return True
        return False


class LoadType(Enum):
    """Selects the merge policy of a config type."""

    FIRST = "first"
    MERGE = "merge"

    @property
    def policy(self) -> LoadPolicy:
        return _POLICIES[self]

    def load(self, sources: Sequence[str], resolver: SourceResolver) -> dict[str, str]:
        return self.policy.load(sources, resolver)

    def needs_reload(
        self,
        sources: Sequence[str],
        resolver: SourceResolver,
        detector: ChangeDetector,
        since: float,
    ) -> bool:
        return self.policy.needs_reload(sources, resolver, detector, since)

    @classmethod
    def parse(cls, text: str) -> LoadType:
        """Parse ``first``/``merge`` (also ``first-available``/``merge-all``)."""
        name = text.strip().lower().replace("_", "-")
        load_type = _ALIASES.get(name)
        if load_type is None:
            raise DescriptorError(f"Unknown load policy: {text!r}")
        return load_type


_POLICIES: dict[LoadType, LoadPolicy] = {
    LoadType.FIRST: FirstAvailable(),
    LoadType.MERGE: MergeAll(),
}

_ALIASES = {
    "first": LoadType.FIRST,
    "first-available": LoadType.FIRST,
    "merge": LoadType.MERGE,
    "merge-all": LoadType.MERGE,
}
