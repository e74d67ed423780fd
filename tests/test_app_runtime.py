"""Runtime bootstrap wiring tests.

Checks watcher lifecycle, polling fallback and the render/refresh callbacks
handed to the main loop, without a real terminal.
"""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
import unittest
from unittest import mock

from lazystatus.git.repository import GitCommandError
from lazystatus.render import ScreenLayout
from lazystatus.runtime import app
from lazystatus.runtime.loop import RuntimeLoopTiming
from lazystatus.ui_theme import PLAIN_THEME
from lazystatus.watch import WatchDrain


class _FakeTerminal:
    def __init__(self) -> None:
        self.stdin_fd = 0
        self.stdout_fd = 1
        self.raw_mode_entries = 0

    @contextmanager
    def raw_mode(self):
        self.raw_mode_entries += 1
        yield self

    def size(self) -> tuple[int, int]:
        return (80, 24)


class _FakeWatcher:
    instances: list["_FakeWatcher"] = []

    def __init__(self, repo_root: Path, git_dir: Path, fail: bool = False) -> None:
        self.repo_root = repo_root
        self.git_dir = git_dir
        self.fail = fail
        self.started = False
        self.stopped = False
        _FakeWatcher.instances.append(self)

    def start(self) -> None:
        if self.fail:
            raise OSError("inotify limit reached")
        self.started = True

    def drain(self) -> WatchDrain:
        return WatchDrain(signals=0, disconnected=False)

    def stop(self, timeout: float = 2.0) -> None:
        self.stopped = True


def _session() -> mock.Mock:
    session = mock.Mock()
    session.repo.root = Path("/repo")
    session.repo.git_dir = Path("/repo/.git")
    return session


class RunAppTests(unittest.TestCase):
    def setUp(self) -> None:
        _FakeWatcher.instances.clear()

    def test_watcher_started_and_stopped_around_loop(self) -> None:
        session = _session()
        terminal = _FakeTerminal()

        with mock.patch("lazystatus.runtime.app.run_main_loop") as loop_mock:
            app.run_app(session, terminal, PLAIN_THEME, RuntimeLoopTiming(), watcher_factory=_FakeWatcher)

        watcher = _FakeWatcher.instances[0]
        self.assertTrue(watcher.started)
        self.assertTrue(watcher.stopped)
        self.assertEqual(terminal.raw_mode_entries, 1)
        self.assertFalse(loop_mock.call_args.kwargs["polling"])
        self.assertIsNotNone(loop_mock.call_args.args[1].drain_watcher)

    def test_watcher_stopped_when_loop_raises(self) -> None:
        with mock.patch("lazystatus.runtime.app.run_main_loop", side_effect=RuntimeError("boom")):
            with self.assertRaises(RuntimeError):
                app.run_app(_session(), _FakeTerminal(), PLAIN_THEME, RuntimeLoopTiming(), watcher_factory=_FakeWatcher)

        self.assertTrue(_FakeWatcher.instances[0].stopped)

    def test_watcher_start_failure_falls_back_to_polling(self) -> None:
        def failing_factory(root, git_dir):
            return _FakeWatcher(root, git_dir, fail=True)

        with mock.patch("lazystatus.runtime.app.run_main_loop") as loop_mock:
            with self.assertLogs("lazystatus.runtime.app", level="WARNING") as logs:
                app.run_app(_session(), _FakeTerminal(), PLAIN_THEME, RuntimeLoopTiming(), watcher_factory=failing_factory)

        self.assertEqual(len(logs.records), 1)
        self.assertTrue(loop_mock.call_args.kwargs["polling"])
        self.assertIsNone(loop_mock.call_args.args[1].drain_watcher)

    def test_poll_flag_skips_watcher(self) -> None:
        with mock.patch("lazystatus.runtime.app.run_main_loop") as loop_mock:
            app.run_app(
                _session(),
                _FakeTerminal(),
                PLAIN_THEME,
                RuntimeLoopTiming(),
                use_polling=True,
                watcher_factory=_FakeWatcher,
            )

        self.assertEqual(_FakeWatcher.instances, [])
        self.assertTrue(loop_mock.call_args.kwargs["polling"])

    def test_render_callback_records_file_list_height(self) -> None:
        session = _session()
        layout = mock.Mock(spec=ScreenLayout)
        layout.too_small = False
        layout.file_list_inner_height = 7

        with mock.patch("lazystatus.runtime.app.run_main_loop") as loop_mock, mock.patch(
            "lazystatus.runtime.app.render_screen", return_value=layout
        ) as render_mock:
            app.run_app(session, _FakeTerminal(), PLAIN_THEME, RuntimeLoopTiming(), use_polling=True)
            callbacks = loop_mock.call_args.args[1]
            callbacks.render()

        render_mock.assert_called_once_with(session, 80, 24, PLAIN_THEME)
        self.assertEqual(session.file_list_height, 7)


class RefreshSessionTests(unittest.TestCase):
    def test_refresh_failure_flashes_and_keeps_running(self) -> None:
        session = _session()
        session.refresh.side_effect = GitCommandError(["status"], 128, "fatal: bad index")

        with self.assertLogs("lazystatus.runtime.app", level="WARNING"):
            app.refresh_session(session)

        session.flash_error.assert_called_once_with("Error: fatal: bad index")


if __name__ == "__main__":
    unittest.main()
