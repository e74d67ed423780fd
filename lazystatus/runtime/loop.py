"""Main reconciliation loop for the terminal UI.

One cooperative, single-threaded loop renders when dirty, reads at most one
input token, drains watcher signals, and refreshes the session once the
debounce window (or the polling interval in fallback mode) has elapsed.
Feature logic lives in callbacks so the loop is testable without a tty.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from ..watch import WatchDrain

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RuntimeLoopTiming:
    """Timing constants controlling refresh scheduling and input polling."""

    debounce_seconds: float = 0.15
    poll_interval_seconds: float = 2.0
    pending_input_timeout_ms: int = 10
    idle_input_timeout_ms: int = 100


@dataclass(frozen=True)
class RuntimeLoopCallbacks:
    """Injected operations used by ``run_main_loop``."""

    render: Callable[[], None]
    screen_size: Callable[[], tuple[int, int]]
    read_key: Callable[[int], str]
    handle_key: Callable[[str], bool]
    refresh: Callable[[], None]
    expire_flash: Callable[[float], bool]
    drain_watcher: Callable[[], WatchDrain] | None = None


class RefreshScheduler:
    """Debounce and polling bookkeeping for watcher-driven refreshes."""

    def __init__(self, timing: RuntimeLoopTiming, now: float, *, polling: bool = False) -> None:
        self.timing = timing
        self.polling = polling
        self.pending_since: float | None = None
        self.last_refresh = now

    def note_change(self, now: float) -> None:
        """Restart the debounce window."""
        self.pending_since = now

    def switch_to_polling(self) -> bool:
        """Enter polling fallback; returns ``False`` if already polling."""
        if self.polling:
            return False
        self.polling = True
        return True

    def input_timeout_ms(self) -> int:
        if self.pending_since is not None:
            return self.timing.pending_input_timeout_ms
        return self.timing.idle_input_timeout_ms

    def due(self, now: float) -> bool:
        if self.pending_since is not None and now - self.pending_since >= self.timing.debounce_seconds:
            return True
        return self.polling and now - self.last_refresh >= self.timing.poll_interval_seconds

    def mark_refreshed(self, now: float) -> None:
        self.pending_since = None
        self.last_refresh = now


def run_main_loop(
    timing: RuntimeLoopTiming,
    callbacks: RuntimeLoopCallbacks,
    *,
    polling: bool = False,
    clock: Callable[[], float] = time.monotonic,
) -> None:
    """Run until ``handle_key`` reports a quit.

    Without a watcher drain the loop starts in polling fallback.
    """
    ops = callbacks
    scheduler = RefreshScheduler(timing, clock(), polling=polling or ops.drain_watcher is None)
    dirty = True
    last_size: tuple[int, int] | None = None

    while True:
        size = ops.screen_size()
        if size != last_size:
            last_size = size
            dirty = True
        if dirty:
            ops.render()
            dirty = False

        key = ops.read_key(scheduler.input_timeout_ms())
        if key:
            dirty = True
            if ops.handle_key(key):
                return

        if ops.drain_watcher is not None and not scheduler.polling:
            drained = ops.drain_watcher()
            if drained.signals:
                scheduler.note_change(clock())
            if drained.disconnected and scheduler.switch_to_polling():
                logger.warning(
                    "file watcher disconnected; polling every %.1fs",
                    timing.poll_interval_seconds,
                )

        now = clock()
        if scheduler.due(now):
            ops.refresh()
            scheduler.mark_refreshed(now)
            dirty = True

        if ops.expire_flash(now):
            dirty = True


__all__ = ["RefreshScheduler", "RuntimeLoopCallbacks", "RuntimeLoopTiming", "run_main_loop"]
