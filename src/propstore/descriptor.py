"""Config type descriptors.

A descriptor identifies the configuration being loaded: its name (used to derive
the default source), the ordered source list, the merge policy and the optional
hot reload setting. Descriptors are immutable and built once per manager.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

from propstore.errors import DescriptorError
from propstore.load_type import LoadType

CLASSPATH_SCHEME = "classpath"
PROPERTIES_SUFFIX = ".properties"


class TimeUnit(Enum):
    """Unit of a hot reload interval."""

    NANOSECONDS = "nanoseconds"
    MICROSECONDS = "microseconds"
    MILLISECONDS = "milliseconds"
    SECONDS = "seconds"
    MINUTES = "minutes"
    HOURS = "hours"
    DAYS = "days"

    def to_seconds(self, value: float) -> float:
        """Convert ``value`` expressed in this unit to seconds."""
        return value * _SECONDS_PER_UNIT[self]

    @classmethod
    def parse(cls, text: str) -> TimeUnit:
        """Parse a unit name such as ``"seconds"``, ``"ms"`` or ``"MINUTES"``."""
        name = text.strip().lower()
        unit = _UNIT_ALIASES.get(name)
        if unit is None:
            try:
                return cls(name)
            except ValueError:
                raise DescriptorError(f"Unknown time unit: {text!r}") from None
        return unit


_SECONDS_PER_UNIT = {
    TimeUnit.NANOSECONDS: 1e-9,
    TimeUnit.MICROSECONDS: 1e-6,
    TimeUnit.MILLISECONDS: 1e-3,
    TimeUnit.SECONDS: 1.0,
    TimeUnit.MINUTES: 60.0,
    TimeUnit.HOURS: 3600.0,
    TimeUnit.DAYS: 86400.0,
}

_UNIT_ALIASES = {
    "ns": TimeUnit.NANOSECONDS,
    "us": TimeUnit.MICROSECONDS,
    "ms": TimeUnit.MILLISECONDS,
    "s": TimeUnit.SECONDS,
    "sec": TimeUnit.SECONDS,
    "m": TimeUnit.MINUTES,
    "min": TimeUnit.MINUTES,
    "h": TimeUnit.HOURS,
    "d": TimeUnit.DAYS,
}


class HotReloadMode(Enum):
    """Who drives the reload check."""

    SYNC = "sync"  # checked on every get()
    ASYNC = "async"  # checked by a HotReloadWatcher


@dataclass(frozen=True)
class HotReload:
    """Hot reload setting: check interval plus enabled flag."""

    value: float = 5
    unit: TimeUnit = TimeUnit.SECONDS
    enabled: bool = True
    mode: HotReloadMode = HotReloadMode.SYNC

    def __post_init__(self) -> None:
        if self.value < 0:
            raise DescriptorError(f"Hot reload interval must not be negative: {self.value}")

    @property
    def interval(self) -> float:
        """Check interval in seconds."""
        return self.unit.to_seconds(self.value)


@dataclass(frozen=True)
class ConfigTypeDescriptor:
    """Identity, sources, merge policy and hot reload setting of a config type.

    Example:
        descriptor = ConfigTypeDescriptor(
            name="myapp.ServerConfig",
            sources=("file:${HOME}/.myapp/server.properties",
                     "classpath:myapp/ServerConfig.properties"),
            load_type=LoadType.MERGE,
            hot_reload=HotReload(500, TimeUnit.MILLISECONDS),
            defaults={"port": "80"},
        )
    """

    name: str
    sources: tuple[str, ...] = ()
    load_type: LoadType = LoadType.FIRST
    hot_reload: HotReload | None = None
    defaults: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.name:
            raise DescriptorError("Config type descriptor needs a name")
        # Freeze caller-provided containers
        object.__setattr__(self, "sources", tuple(self.sources))
        object.__setattr__(
            self,
            "defaults",
            MappingProxyType({str(k): str(v) for k, v in dict(self.defaults).items()}),
        )

    @classmethod
    def for_type(
        cls,
        config_type: type,
        sources: Iterable[str] = (),
        load_type: LoadType = LoadType.FIRST,
        hot_reload: HotReload | None = None,
        defaults: Mapping[str, Any] | None = None,
    ) -> ConfigTypeDescriptor:
        """Build a descriptor named after a Python class (``module.QualName``)."""
        return cls(
            name=f"{config_type.__module__}.{config_type.__qualname__}",
            sources=tuple(sources),
            load_type=load_type,
            hot_reload=hot_reload,
            defaults=dict(defaults or {}),
        )

    @property
    def default_source(self) -> str:
        """Classpath location derived from the name when no sources are declared."""
        return f"{CLASSPATH_SCHEME}:{self.name.replace('.', '/')}{PROPERTIES_SUFFIX}"

    @property
    def hot_reload_active(self) -> bool:
        """True when sources are declared and an enabled hot reload is set."""
        return bool(self.sources) and self.hot_reload is not None and self.hot_reload.enabled
