"""Runtime wiring: main loop, key dispatch and app bootstrap."""

from .app import run_app
from .loop import RefreshScheduler, RuntimeLoopCallbacks, RuntimeLoopTiming, run_main_loop

__all__ = [
    "RefreshScheduler",
    "RuntimeLoopCallbacks",
    "RuntimeLoopTiming",
    "run_app",
    "run_main_loop",
]
