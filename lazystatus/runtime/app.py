"""Runtime bootstrap: terminal, watcher and main-loop wiring for one session."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from ..git.repository import GitError
from ..input import read_key
from ..render import ScreenLayout, render_screen
from ..session import Session
from ..terminal import TerminalController
from ..ui_theme import UITheme
from ..watch import RepositoryWatcher
from .keys import handle_key
from .loop import RuntimeLoopCallbacks, RuntimeLoopTiming, run_main_loop

logger = logging.getLogger(__name__)


@dataclass
class ScreenState:
    """Geometry of the most recent frame, shared by render and input dispatch."""

    layout: ScreenLayout | None = None


def start_watcher(
    session: Session,
    watcher_factory: Callable[..., RepositoryWatcher] = RepositoryWatcher,
) -> RepositoryWatcher | None:
    """Start change notification, or return ``None`` to fall back to polling."""
    watcher = watcher_factory(session.repo.root, session.repo.git_dir)
    try:
        watcher.start()
    except OSError as exc:
        logger.warning("file watcher failed to start (%s); falling back to polling", exc)
        return None
    return watcher


def refresh_session(session: Session) -> None:
    """Refresh from git; a failed status query keeps the previous model and flashes."""
    try:
        session.refresh()
    except GitError as exc:
        logger.warning("refresh failed: %s", exc)
        session.flash_error(f"Error: {exc}")


def run_app(
    session: Session,
    terminal: TerminalController,
    theme: UITheme,
    timing: RuntimeLoopTiming,
    *,
    use_polling: bool = False,
    watcher_factory: Callable[..., RepositoryWatcher] = RepositoryWatcher,
) -> None:
    """Run the dashboard until quit; the watcher thread is joined on every exit path."""
    watcher = None if use_polling else start_watcher(session, watcher_factory)
    if watcher is None:
        logger.info("polling every %.1fs", timing.poll_interval_seconds)
    screen = ScreenState()

    def render() -> None:
        width, height = terminal.size()
        layout = render_screen(session, width, height, theme)
        screen.layout = layout
        if not layout.too_small:
            session.file_list_height = layout.file_list_inner_height

    callbacks = RuntimeLoopCallbacks(
        render=render,
        screen_size=terminal.size,
        read_key=lambda timeout_ms: read_key(terminal.stdin_fd, timeout_ms=timeout_ms),
        handle_key=lambda key: handle_key(session, key, screen.layout),
        refresh=lambda: refresh_session(session),
        expire_flash=session.check_flash_expiry,
        drain_watcher=watcher.drain if watcher is not None else None,
    )

    try:
        with terminal.raw_mode():
            run_main_loop(timing, callbacks, polling=watcher is None)
    finally:
        if watcher is not None:
            watcher.stop()


__all__ = ["ScreenState", "refresh_session", "run_app", "start_watcher"]
