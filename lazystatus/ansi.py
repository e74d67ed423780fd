"""ANSI-aware width measurement, clipping and wrapping.

Escape sequences never count toward width; tabs expand to 8-column stops and
East Asian wide characters take two cells.
"""

from __future__ import annotations

import re
import unicodedata

ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]")
TAB_STOP = 8


def char_display_width(ch: str, col: int) -> int:
    """Return terminal column width for ``ch`` drawn at visual column ``col``."""
    if ch == "\t":
        return TAB_STOP - (col % TAB_STOP)
    if unicodedata.combining(ch):
        return 0
    if unicodedata.east_asian_width(ch) in {"W", "F"}:
        return 2
    return 1


def strip_ansi(text: str) -> str:
    return ANSI_ESCAPE_RE.sub("", text)


def display_width(text: str) -> int:
    col = 0
    for ch in strip_ansi(text):
        col += char_display_width(ch, col)
    return col


def _tokens(text: str):
    """Yield ``(is_escape, value)`` pieces of a styled string."""
    i = 0
    n = len(text)
    while i < n:
        if text[i] == "\x1b":
            match = ANSI_ESCAPE_RE.match(text, i)
            if match:
                yield True, match.group(0)
                i = match.end()
                continue
        yield False, text[i]
        i += 1


def clip_ansi_line(text: str, max_cols: int) -> str:
    """Trim a styled line to ``max_cols`` display columns, keeping escapes."""
    if max_cols <= 0 or not text:
        return ""
    out: list[str] = []
    col = 0
    for is_escape, value in _tokens(text):
        if is_escape:
            out.append(value)
            continue
        width = char_display_width(value, col)
        if col + width > max_cols:
            break
        out.append(" " * width if value == "\t" else value)
        col += width
    return "".join(out)


def wrap_ansi_line(text: str, width: int) -> list[str]:
    """Split a styled line into chunks of at most ``width`` display columns.

    Always returns at least one chunk, so an empty line still takes a row.
    """
    if width <= 0 or not text:
        return [""]
    wrapped: list[str] = []
    chunk: list[str] = []
    col = 0
    for is_escape, value in _tokens(text):
        if is_escape:
            chunk.append(value)
            continue
        w = char_display_width(value, col)
        if col + w > width and col > 0:
            wrapped.append("".join(chunk))
            chunk = []
            col = 0
            w = char_display_width(value, col)
        chunk.append(" " * w if value == "\t" else value)
        col += w
    wrapped.append("".join(chunk))
    return wrapped


def pad_ansi_line(text: str, width: int) -> str:
    """Clip or right-pad a styled line to exactly ``width`` columns."""
    clipped = clip_ansi_line(text, width)
    missing = width - display_width(clipped)
    if missing > 0:
        clipped += " " * missing
    return clipped


__all__ = [
    "ANSI_ESCAPE_RE",
    "TAB_STOP",
    "char_display_width",
    "clip_ansi_line",
    "display_width",
    "pad_ansi_line",
    "strip_ansi",
    "wrap_ansi_line",
]
