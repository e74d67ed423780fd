"""Syntax coloring for diff line bodies and terminal-safe text.

Lexers are picked from the changed file's name through Pygments. Control
bytes are escaped first so diff content can never drive the terminal.
"""

from __future__ import annotations

import logging
import re
from functools import lru_cache
from pathlib import PurePosixPath

from pygments import highlight as pygments_highlight
from pygments.formatters import TerminalFormatter
from pygments.lexer import Lexer
from pygments.lexers import get_lexer_for_filename
from pygments.util import ClassNotFound

logger = logging.getLogger(__name__)

_CONTROL_RE = re.compile(r"[\x00-\x08\x0a-\x1f\x7f-\x9f]")
_FORMATTER = TerminalFormatter(bg="dark")


def sanitize_terminal_text(text: str) -> str:
    """Escape control bytes (bell, cursor moves, carriage returns) as ``\\xNN``.

    Tabs are kept; the ANSI helpers expand them.
    """
    if _CONTROL_RE.search(text) is None:
        return text
    return _CONTROL_RE.sub(lambda match: f"\\x{ord(match.group(0)):02x}", text)


@lru_cache(maxsize=64)
def lexer_for_path(path: str) -> Lexer | None:
    name = PurePosixPath(path).name
    try:
        return get_lexer_for_filename(name, stripnl=False, ensurenl=False)
    except ClassNotFound:
        return None


def highlight_line(text: str, path: str) -> str:
    """Colorize one already-sanitized line; unknown file types come back unchanged."""
    if not text.strip():
        return text
    lexer = lexer_for_path(path)
    if lexer is None:
        return text
    try:
        rendered = pygments_highlight(text, lexer, _FORMATTER)
    except Exception as exc:
        logger.debug("highlighting %s failed: %s", path, exc)
        return text
    return rendered.rstrip("\n")


__all__ = ["highlight_line", "lexer_for_path", "sanitize_terminal_text"]
