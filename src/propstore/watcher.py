"""Background hot reload for managers in async mode.

Polls on an interval and runs the manager's gated reload check in a worker
thread, so blocking source I/O never stalls the event loop.
"""

from __future__ import annotations

import asyncio

from propstore.logging import get_logger
from propstore.manager import PropertiesManager

log = get_logger("watcher")

# Default poll interval in seconds when the descriptor has no hot reload setting
DEFAULT_POLL_INTERVAL = 2.0

# Never poll faster than this
MIN_POLL_INTERVAL = 0.01


class HotReloadWatcher:
    """Periodically checks a manager's sources and reloads on change.

    Example:
        async with HotReloadWatcher(manager):
            await serve()
    """

    def __init__(
        self,
        manager: PropertiesManager,
        poll_interval: float | None = None,
    ) -> None:
        """Initialize the watcher.

        Args:
            manager: The manager to keep fresh.
            poll_interval: Seconds between checks (default: the descriptor's
                hot reload interval).
        """
        if poll_interval is None:
            hot_reload = manager.descriptor.hot_reload
            poll_interval = hot_reload.interval if hot_reload else DEFAULT_POLL_INTERVAL
        self._manager = manager
        self._poll_interval = max(MIN_POLL_INTERVAL, poll_interval)
        self._running = False
        self._task: asyncio.Task[None] | None = None
        self.reload_count = 0

    @property
    def poll_interval(self) -> float:
        return self._poll_interval

    def is_running(self) -> bool:
        return self._running

    async def poll_once(self) -> bool:
        """Run one check. Returns True if the manager reloaded."""
        reloaded = await asyncio.to_thread(self._manager.check_and_reload)
        if reloaded:
            self.reload_count += 1
        return reloaded

    async def _poll_loop(self) -> None:
        while self._running:
            await asyncio.sleep(self._poll_interval)

            if not self._running:
                break

            try:
                await self.poll_once()
            except Exception as e:
                log.error("Error reloading %s: %s", self._manager.descriptor.name, e)

    def start(self) -> None:
        """Start watching. Must be called from within a running event loop."""
        if self._running:
            return

        self._running = True
        self._task = asyncio.create_task(self._poll_loop())
        log.debug("Hot reload watcher started (interval=%.2fs)", self._poll_interval)

    def stop(self) -> None:
        """Stop watching."""
        self._running = False
        if self._task:
            self._task.cancel()
            self._task = None
        log.debug("Hot reload watcher stopped")

    async def __aenter__(self) -> HotReloadWatcher:
        self.start()
        return self

    async def __aexit__(self, *args: object) -> None:
        self.stop()
