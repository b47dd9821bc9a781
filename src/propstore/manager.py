"""Properties manager: the live table, its locking and hot reload.

Loading builds a table from, in increasing priority:
1. The descriptor's built-in defaults
2. Imported mappings, applied in reverse declaration order (earliest wins)
3. The declared sources, combined per the descriptor's load type
   (or the default classpath location when no sources are declared)

Readers (get, list, ...) share the table lock; writers (load, reload, set,
remove, clear) hold it exclusively. The hot reload check runs under its own
small lock so that reads with no reload due never touch the table lock in
exclusive mode.

Reload builds the new table before touching the live one. A failed reload
raises LoadError and leaves the previous contents in place.
"""

from __future__ import annotations

import sys
import threading
import time
from collections.abc import Callable, Mapping, MutableMapping
from dataclasses import dataclass, field
from typing import Any, TextIO

from propstore.changes import ChangeDetector
from propstore.descriptor import ConfigTypeDescriptor, HotReloadMode
from propstore.locks import ReadWriteLock
from propstore.logging import TRACE, get_logger
from propstore.merge import coerce_table, merge_tables
from propstore.parser import list_properties
from propstore.resolver import SourceResolver

log = get_logger("manager")

ReloadListener = Callable[["ReloadEvent"], None]


@dataclass(frozen=True)
class ReloadEvent:
    """Delivered to reload listeners after a successful reload."""

    old: dict[str, str]
    new: dict[str, str]
    timestamp: float = field(default_factory=time.time)

    @property
    def changed_keys(self) -> set[str]:
        """Keys added, removed or given a different value."""
        keys = self.old.keys() | self.new.keys()
        return {k for k in keys if self.old.get(k) != self.new.get(k)}


class PropertiesManager:
    """Loads properties and manages concurrent access to them.

    Example:
        descriptor = ConfigTypeDescriptor(
            name="myapp.Server",
            sources=("file:/etc/myapp/server.properties",),
            hot_reload=HotReload(2, TimeUnit.SECONDS),
        )
        manager = PropertiesManager(descriptor, {"port": "8080"})
        manager.load()
        manager.get("port")
    """

    def __init__(
        self,
        descriptor: ConfigTypeDescriptor,
        *imports: Mapping[Any, Any],
        resolver: SourceResolver | None = None,
        detector: ChangeDetector | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the manager. Nothing is loaded until load() is called.

        Args:
            descriptor: The config type being managed.
            *imports: Mappings layered between defaults and sources.
            resolver: Source resolver (default: SourceResolver()).
            detector: Change detector used by reload checks.
            clock: Wall-clock source in seconds, comparable with file mtimes.
        """
        self.descriptor = descriptor
        self._imports = tuple(coerce_table(i) for i in imports)
        self._resolver = resolver or SourceResolver()
        self._detector = detector or ChangeDetector(self._resolver)
        self._clock = clock

        self._properties: dict[str, str] = {}
        self._lock = ReadWriteLock()
        self._check_lock = threading.Lock()

        hot_reload = descriptor.hot_reload
        self._interval = hot_reload.interval if hot_reload is not None else 0.0
        self._sync_hot_reload = (
            descriptor.hot_reload_active
            and hot_reload is not None
            and hot_reload.mode is HotReloadMode.SYNC
        )

        self._last_load_time = 0.0
        self._last_check_time: float | None = None
        self._loading = False

        self._listeners: list[ReloadListener] = []

    # -- load state ---------------------------------------------------------

    @property
    def last_load_time(self) -> float:
        return self._last_load_time

    @property
    def last_check_time(self) -> float | None:
        return self._last_check_time

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def resolver(self) -> SourceResolver:
        return self._resolver

    # -- loading ------------------------------------------------------------

    def _load_sources(self) -> dict[str, str]:
        if self.descriptor.sources:
            return self.descriptor.load_type.load(self.descriptor.sources, self._resolver)
        return self._resolver.read(self.descriptor.default_source) or {}

    def _build(self) -> dict[str, str]:
        """Build a complete table from defaults, imports and sources."""
        table = merge_tables(self.descriptor.defaults, *reversed(self._imports))
        table.update(self._load_sources())
        return table

    def _mark_loaded(self) -> None:
        self._last_load_time = self._clock()
        with self._check_lock:
            if self._last_check_time is None or self._last_check_time < self._last_load_time:
                self._last_check_time = self._last_load_time

    def load(self) -> dict[str, str]:
        """Load properties, overwriting keys already present in the table.

        Returns:
            A copy of the table after loading.

        Raises:
            LoadError: If an existing source cannot be read or parsed.
        """
        with self._lock.write_locked():
            self._loading = True
            try:
                log.debug("Loading %s", self.descriptor.name)
                fresh = self._build()
                self._properties.update(fresh)
                self._mark_loaded()
                log.debug("Loaded %s: %d properties", self.descriptor.name, len(self._properties))
                return dict(self._properties)
            finally:
                self._loading = False

    def reload(self) -> None:
        """Replace the table with a freshly loaded one.

        Readers never see an empty or partial table. On failure the previous
        contents stay in place and LoadError propagates.
        """
        with self._lock.write_locked():
            self._loading = True
            try:
                old = dict(self._properties)
                fresh = self._build()
                self._properties.clear()
                self._properties.update(fresh)
                self._mark_loaded()
            finally:
                self._loading = False

        log.debug("Reloaded %s: %d properties", self.descriptor.name, len(fresh))
        self._notify(ReloadEvent(old=old, new=dict(fresh), timestamp=self._last_load_time))

    # -- hot reload ---------------------------------------------------------

    def needs_reload(self) -> bool:
        """Gated reload check.

        Returns False while a load is running or when the interval since the
        last check has not elapsed. Otherwise claims the check slot (so
        concurrent callers skip) and asks the load type whether the sources
        changed since the last load.
        """
        if not self.descriptor.hot_reload_active or self._loading:
            return False

        now = self._clock()
        with self._check_lock:
            last_check = self._last_check_time or 0.0
            if now < last_check + self._interval:
                return False
            self._last_check_time = now

        log.log(TRACE, "Checking sources of %s for changes", self.descriptor.name)
        return self.descriptor.load_type.needs_reload(
            self.descriptor.sources,
            self._resolver,
            self._detector,
            self._last_load_time,
        )

    def check_and_reload(self) -> bool:
        """Run the gated check and reload if a source changed.

        Returns:
            True if a reload happened.
        """
        if not self.needs_reload():
            return False
        log.info("Sources of %s changed, reloading", self.descriptor.name)
        self.reload()
        return True

    def on_reload(self, callback: ReloadListener) -> Callable[[], None]:
        """Register a callback to be called after each successful reload.

        Args:
            callback: Function to call with the ReloadEvent.

        Returns:
            A function to unregister the callback.
        """
        self._listeners.append(callback)

        def unregister() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unregister

    def _notify(self, event: ReloadEvent) -> None:
        for callback in list(self._listeners):
            try:
                callback(event)
            except Exception as e:
                log.warning("Reload listener error: %s", e)

    # -- access -------------------------------------------------------------

    def get(self, key: str, default: str | None = None) -> str | None:
        """Current value of ``key``, checking for source changes first when hot
        reload is active."""
        if self._sync_hot_reload:
            self.check_and_reload()
        with self._lock.read_locked():
            return self._properties.get(key, default)

    def set(self, key: str, value: str | None) -> str | None:
        """Store a value and return the previous one. None removes the key."""
        with self._lock.write_locked():
            if value is None:
                return self.remove(key)
            previous = self._properties.get(key)
            self._properties[key] = str(value)
            return previous

    def remove(self, key: str) -> str | None:
        """Remove ``key`` and return its previous value."""
        with self._lock.write_locked():
            return self._properties.pop(key, None)

    def clear(self) -> None:
        with self._lock.write_locked():
            self._properties.clear()

    def list(self, out: TextIO | None = None) -> None:
        """Write a diagnostic dump of the table (default: stdout)."""
        with self._lock.read_locked():
            list_properties(self._properties, out if out is not None else sys.stdout)

    def property_names(self) -> list[str]:
        """Sorted list of keys."""
        with self._lock.read_locked():
            return sorted(self._properties)

    def fill(self, target: MutableMapping[str, str]) -> None:
        """Copy every property into ``target``."""
        with self._lock.read_locked():
            target.update(self._properties)

    def snapshot(self) -> dict[str, str]:
        """Consistent copy of the table."""
        with self._lock.read_locked():
            return dict(self._properties)

    def __contains__(self, key: object) -> bool:
        with self._lock.read_locked():
            return key in self._properties

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._properties)

    def __repr__(self) -> str:
        return f"PropertiesManager({self.descriptor.name!r})"


def load_properties_manager(
    descriptor: ConfigTypeDescriptor,
    *imports: Mapping[Any, Any],
    resolver: SourceResolver | None = None,
) -> PropertiesManager:
    """Create a manager and run its first load."""
    manager = PropertiesManager(descriptor, *imports, resolver=resolver)
    manager.load()
    return manager
