"""Terminal control for the dashboard session.

Owns raw-mode lifecycle, alternate-screen switching and mouse reporting. The
``raw_mode`` context manager restores the saved tty state on every exit path.
"""

from __future__ import annotations

import contextlib
import os
import shutil
import termios
import tty

ENTER_TUI = b"\x1b[?1049h\x1b[?25l\x1b[?1000h\x1b[?1006h"
LEAVE_TUI = b"\x1b[?1000l\x1b[?1006l\x1b[?25h\x1b[?1049l"
DEFAULT_SIZE = (80, 24)


class TerminalController:
    """Switch the controlling tty between cooked mode and the full-screen UI."""

    def __init__(self, stdin_fd: int, stdout_fd: int) -> None:
        self.stdin_fd = stdin_fd
        self.stdout_fd = stdout_fd
        # Raises termios.error when stdin is not a terminal.
        self._saved_tty_state = termios.tcgetattr(stdin_fd)
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def enable_tui_mode(self) -> None:
        """Enter raw alternate-screen mode with SGR mouse reporting enabled."""
        tty.setraw(self.stdin_fd, termios.TCSAFLUSH)
        os.write(self.stdout_fd, ENTER_TUI)
        self._active = True

    def disable_tui_mode(self) -> None:
        os.write(self.stdout_fd, LEAVE_TUI)
        self._active = False
        termios.tcsetattr(self.stdin_fd, termios.TCSAFLUSH, self._saved_tty_state)

    def size(self) -> tuple[int, int]:
        """Current ``(columns, lines)``."""
        term = shutil.get_terminal_size(DEFAULT_SIZE)
        return term.columns, term.lines

    @contextlib.contextmanager
    def raw_mode(self):
        try:
            self.enable_tui_mode()
            yield self
        finally:
            self.disable_tui_mode()


__all__ = ["TerminalController"]
