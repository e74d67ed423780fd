"""Key and mouse dispatch onto session operations."""

from __future__ import annotations

import logging
from collections.abc import Callable

from ..git.repository import GitError
from ..input import parse_mouse_key
from ..render import ScreenLayout
from ..session import Session

logger = logging.getLogger(__name__)

MOUSE_WHEEL_ROWS = 3
QUIT_KEYS = frozenset({"q", "CTRL_C"})
CONFIRM_KEYS = frozenset({"y", "Y"})


def run_action(session: Session, action: Callable[[], None]) -> None:
    """Run a mutating session action, turning git and filesystem failures into an error flash."""
    try:
        action()
    except (GitError, OSError) as exc:
        logger.warning("action failed: %s", exc)
        session.flash_error(f"Error: {exc}")


def handle_mouse(session: Session, key: str, layout: ScreenLayout | None) -> None:
    parsed = parse_mouse_key(key)
    if parsed is None or layout is None or layout.too_small:
        return
    kind, col, row = parsed
    # Terminal coordinates are 1-based.
    x, y = col - 1, row - 1
    in_file_list = layout.file_list.contains(x, y)
    in_diff = layout.diff.contains(x, y)

    if kind in ("MOUSE_WHEEL_UP", "MOUSE_WHEEL_DOWN"):
        delta = -MOUSE_WHEEL_ROWS if kind == "MOUSE_WHEEL_UP" else MOUSE_WHEEL_ROWS
        if in_file_list:
            session.move_highlight(delta)
        elif in_diff:
            session.scroll_diff(delta, layout.diff_viewport_height, layout.diff_content_width)
    elif kind == "MOUSE_LEFT_DOWN" and in_file_list:
        session.click_file_list(y - layout.file_list.inner().top)


def handle_key(session: Session, key: str, layout: ScreenLayout | None) -> bool:
    """Apply one input token. Returns ``True`` when the app should quit."""
    if key.startswith("MOUSE"):
        handle_mouse(session, key, layout)
        return False

    if session.confirm_prompt is not None:
        confirmed = key in CONFIRM_KEYS
        run_action(session, lambda: session.handle_confirm(confirmed))
        return False

    session.clear_flash()

    if key in QUIT_KEYS:
        return True
    if key == "ESC":
        if not session.multi_selected:
            return True
        session.clear_multi_select()
    elif key in ("UP", "k"):
        session.move_highlight(-1)
    elif key in ("DOWN", "j"):
        session.move_highlight(1)
    elif key == "HOME":
        session.move_highlight(-len(session.visible_rows))
    elif key == "END":
        session.move_highlight(len(session.visible_rows))
    elif key == " ":
        session.toggle_multi_select()
    elif key == "ENTER":
        session.select_current()
    elif key == "s":
        run_action(session, session.stage_selected)
    elif key == "u":
        run_action(session, session.unstage_selected)
    elif key == "S":
        session.show_stage_all_confirm()
    elif key == "U":
        session.show_unstage_all_confirm()
    elif key == "d":
        session.show_discard_selected_confirm()
    elif key == "D":
        session.show_discard_all_confirm()
    elif key == "CTRL_Z":
        run_action(session, session.undo)
    elif key in ("PAGE_UP", "PAGE_DOWN") and layout is not None and not layout.too_small:
        session.page_scroll_diff(key == "PAGE_DOWN", layout.diff_viewport_height, layout.diff_content_width)
    return False


__all__ = ["MOUSE_WHEEL_ROWS", "handle_key", "handle_mouse", "run_action"]
