"""Frame composition for the status dashboard.

Lays out the status bar, file list, diff pane and footer line, then writes a
fully composed ANSI frame. Pane geometry is returned as a ``ScreenLayout`` so
mouse routing and diff scrolling use exactly what was drawn.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .ansi import ANSI_ESCAPE_RE, clip_ansi_line, display_width, pad_ansi_line, wrap_ansi_line
from .git.types import DiffContent, DiffContentKind, DiffLine, DiffLineKind, FileEntry, FileStatus, Section
from .highlight import highlight_line, sanitize_terminal_text
from .ui_theme import UITheme

if TYPE_CHECKING:
    from .session import Session

MIN_WIDTH = 30
MIN_HEIGHT = 10
MIN_FILE_LIST_HEIGHT = 5
MAX_INDENT_LEVEL = 4
GUTTER_SEPARATOR = " │"

PLACEHOLDERS: dict[DiffContentKind, str] = {
    DiffContentKind.EMPTY: "↑/↓ navigate, Enter to view diff",
    DiffContentKind.CLEAN: "No changes (q to quit)",
    DiffContentKind.BINARY: "Binary file",
    DiffContentKind.INVALID_UTF8: "File contains invalid UTF-8 encoding",
    DiffContentKind.CONFLICT: "Conflict - resolve before viewing diff",
}

KEY_HINTS = "q quit  ↑↓ move  Enter diff  Space mark  s/u stage  S/U all  d/D discard  ^Z undo"


@dataclass(frozen=True)
class Rect:
    """Zero-based screen rectangle."""

    left: int
    top: int
    width: int
    height: int

    def contains(self, col: int, row: int) -> bool:
        return self.left <= col < self.left + self.width and self.top <= row < self.top + self.height

    def inner(self) -> Rect:
        """Area inside a one-cell border."""
        return Rect(self.left + 1, self.top + 1, max(0, self.width - 2), max(0, self.height - 2))


_EMPTY_RECT = Rect(0, 0, 0, 0)


@dataclass(frozen=True)
class ScreenLayout:
    width: int
    height: int
    status_bar: Rect = _EMPTY_RECT
    file_list: Rect = _EMPTY_RECT
    diff: Rect = _EMPTY_RECT
    footer: Rect = _EMPTY_RECT
    too_small: bool = False

    @property
    def file_list_inner_height(self) -> int:
        return self.file_list.inner().height

    @property
    def diff_viewport_height(self) -> int:
        return self.diff.inner().height

    @property
    def diff_content_width(self) -> int:
        return self.diff.inner().width


def file_list_pane_height(staged_len: int, unstaged_len: int, screen_height: int) -> int:
    rows = 0
    if staged_len:
        rows += 1 + staged_len
    if unstaged_len:
        rows += 1 + unstaged_len
    return min(rows + 2, max(screen_height // 3, MIN_FILE_LIST_HEIGHT))


def compute_layout(width: int, height: int, staged_len: int, unstaged_len: int) -> ScreenLayout:
    if width < MIN_WIDTH or height < MIN_HEIGHT:
        return ScreenLayout(width, height, too_small=True)
    list_height = file_list_pane_height(staged_len, unstaged_len, height)
    diff_top = 1 + list_height
    return ScreenLayout(
        width=width,
        height=height,
        status_bar=Rect(0, 0, width, 1),
        file_list=Rect(0, 1, width, list_height),
        diff=Rect(0, diff_top, width, max(0, height - 1 - diff_top)),
        footer=Rect(0, height - 1, width, 1),
    )


# Diff rows


def gutter_number_width(lines: tuple[DiffLine, ...]) -> int:
    numbers = [line.new_line_number for line in lines if line.new_line_number is not None]
    return max(3, len(str(max(numbers)))) if numbers else 3


def _gutter_label(line: DiffLine) -> str:
    if line.kind is DiffLineKind.DELETED:
        return "-"
    if line.kind in (DiffLineKind.CONTEXT, DiffLineKind.ADDED) and line.new_line_number is not None:
        return str(line.new_line_number)
    return ""


def _origin_marker(kind: DiffLineKind) -> str:
    if kind is DiffLineKind.ADDED:
        return "+"
    if kind is DiffLineKind.DELETED:
        return "-"
    if kind is DiffLineKind.CONTEXT:
        return " "
    return ""


def plain_diff_row(line: DiffLine, number_width: int) -> str:
    """Visible text of one diff row, gutter included."""
    gutter = f"{_gutter_label(line):>{number_width}}{GUTTER_SEPARATOR}"
    return gutter + _origin_marker(line.kind) + sanitize_terminal_text(line.content)


def diff_row_count(diff: DiffContent, width: int) -> int:
    """Number of screen rows ``diff`` occupies when wrapped at ``width`` columns."""
    if diff.kind is not DiffContentKind.TEXT:
        return 2
    number_width = gutter_number_width(diff.lines)
    return sum(len(wrap_ansi_line(plain_diff_row(line, number_width), width)) for line in diff.lines)


def max_diff_scroll(diff: DiffContent, viewport_height: int, viewport_width: int) -> int:
    return max(0, diff_row_count(diff, viewport_width) - viewport_height)


def with_background(text: str, bg_sgr: str) -> str:
    """Keep ``bg_sgr`` active across every SGR reset inside ``text``."""
    if not bg_sgr or not text:
        return text
    out: list[str] = [f"\033[{bg_sgr}m"]
    idx = 0
    while idx < len(text):
        if text[idx] == "\x1b":
            match = ANSI_ESCAPE_RE.match(text, idx)
            if match is not None:
                seq = match.group(0)
                if seq.endswith("m"):
                    params = seq[2:-1]
                    out.append(f"\033[{params};{bg_sgr}m" if params else f"\033[{bg_sgr}m")
                else:
                    out.append(seq)
                idx = match.end()
                continue
        out.append(text[idx])
        idx += 1
    out.append("\033[49m")
    return "".join(out)


def styled_diff_row(line: DiffLine, number_width: int, path: str, theme: UITheme) -> str:
    gutter = f"{theme.gutter}{_gutter_label(line):>{number_width}}{GUTTER_SEPARATOR}{theme.reset}"
    body = sanitize_terminal_text(line.content)
    kind = line.kind

    if kind in (DiffLineKind.HEADER, DiffLineKind.HUNK):
        return f"{gutter}{theme.diff_header}{body}{theme.reset}"
    if kind is DiffLineKind.CONTEXT:
        if theme.syntax:
            return f"{gutter} {highlight_line(body, path)}{theme.reset}"
        return f"{gutter}{theme.diff_context} {body}{theme.reset}"

    color, bg = (
        (theme.diff_added, theme.diff_added_bg)
        if kind is DiffLineKind.ADDED
        else (theme.diff_deleted, theme.diff_deleted_bg)
    )
    marker = _origin_marker(kind)
    if theme.syntax:
        return gutter + with_background(f"{color}{marker}{theme.reset}{highlight_line(body, path)}", bg) + theme.reset
    return f"{gutter}{color}{marker}{body}{theme.reset}"


def _wrap_styled(text: str, width: int) -> list[str]:
    """Wrap a styled row, re-opening the latest SGR on continuation chunks."""
    chunks = wrap_ansi_line(text, width)
    if len(chunks) == 1:
        return chunks
    out = [chunks[0]]
    pending = ""
    for previous, chunk in zip(chunks, chunks[1:]):
        sgrs = [seq for seq in ANSI_ESCAPE_RE.findall(previous) if seq.endswith("m")]
        if sgrs:
            pending = sgrs[-1]
        out.append(pending + chunk)
    return out


def diff_pane_rows(diff: DiffContent, path: str, width: int, theme: UITheme) -> list[str]:
    if diff.kind is not DiffContentKind.TEXT:
        color = theme.conflict_note if diff.kind is DiffContentKind.CONFLICT else theme.placeholder
        return ["", f"{color}{PLACEHOLDERS[diff.kind]}{theme.reset}"]
    number_width = gutter_number_width(diff.lines)
    rows: list[str] = []
    for line in diff.lines:
        rows.extend(_wrap_styled(styled_diff_row(line, number_width, path, theme), width))
    return rows


# File list rows


def format_line_counts(entry: FileEntry) -> str:
    if entry.is_binary:
        return "-/-"
    if entry.added_lines is None or entry.deleted_lines is None:
        return ""
    return f"+{entry.added_lines}/-{entry.deleted_lines}"


def fit_path(path: str, counts: str, available: int) -> tuple[str, bool]:
    """Shorten ``path`` for ``available`` columns; returns text and whether counts fit."""
    counts_width = len(counts) + 1 if counts else 0
    if len(path) + counts_width <= available:
        return path, True
    if len(path) <= available:
        return path, False
    filename = path.rsplit("/", 1)[-1]
    if len(filename) < available:
        keep = available - 1
        return "…" + path[len(path) - keep :], False
    if available > 0:
        return filename[:available], False
    return "", False


def _status_color(status: FileStatus, theme: UITheme) -> str:
    return {
        FileStatus.ADDED: theme.status_added,
        FileStatus.MODIFIED: theme.status_modified,
        FileStatus.DELETED: theme.status_deleted,
        FileStatus.RENAMED: theme.status_renamed,
        FileStatus.UNTRACKED: theme.status_untracked,
        FileStatus.CONFLICT: theme.status_conflict,
    }[status]


def format_file_row(
    entry: FileEntry,
    width: int,
    theme: UITheme,
    *,
    highlighted: bool,
    selected: bool,
    marked: bool,
) -> str:
    prefix = (">" if highlighted else " ") + ("●" if selected else " ") + ("*" if marked else " ")
    indent = "  " * min(entry.path.count("/"), MAX_INDENT_LEVEL)
    counts = format_line_counts(entry)
    available = width - len(prefix) - 3 - len(indent)
    path_text, show_counts = fit_path(entry.path, counts, available)

    base = theme.bold if highlighted else ""
    row = (
        f"{base}{theme.file_text}{prefix}{theme.reset} "
        f"{base}{_status_color(entry.status, theme)}{entry.status.symbol}{theme.reset} "
        f"{indent}{base}{theme.file_text}{path_text}{theme.reset}"
    )
    if show_counts and counts:
        row += f" {theme.line_counts}{counts}{theme.reset}"
    return row


def file_list_rows(session: Session, width: int, theme: UITheme) -> list[str]:
    rows: list[str] = []
    index = 0
    for section, label, entries in (
        (Section.STAGED, "[STAGED]", session.staged),
        (Section.UNSTAGED, "[UNSTAGED]", session.unstaged),
    ):
        if not entries:
            continue
        rows.append(f"{theme.section_header}{label}{theme.reset}")
        for entry in entries:
            key = (section, entry.path)
            rows.append(
                format_file_row(
                    entry,
                    width,
                    theme,
                    highlighted=session.highlight_index == index,
                    selected=session.selected == key,
                    marked=key in session.multi_selected,
                )
            )
            index += 1
    return rows


# Frame


def _boxed(rect: Rect, title: str, body: list[str], theme: UITheme) -> list[str]:
    inner = rect.inner()
    label = clip_ansi_line(f"─ {title} ", inner.width) if title else ""
    top_fill = max(0, inner.width - display_width(label))
    lines = [f"{theme.border}┌{theme.reset}{theme.title}{label}{theme.reset}{theme.border}{'─' * top_fill}┐{theme.reset}"]
    for row in range(inner.height):
        content = body[row] if row < len(body) else ""
        lines.append(f"{theme.border}│{theme.reset}{pad_ansi_line(content, inner.width)}{theme.reset}{theme.border}│{theme.reset}")
    lines.append(f"{theme.border}└{'─' * inner.width}┘{theme.reset}")
    return lines[: rect.height]


def build_status_bar(session: Session, width: int, theme: UITheme) -> str:
    text = (
        f"{theme.branch}{session.branch.display()}{theme.reset}{theme.status_bar} "
        f"{theme.count_label}S:{theme.count_staged}{session.staged_count} "
        f"{theme.count_label}U:{theme.count_unstaged}{session.unstaged_count} "
        f"{theme.count_label}?:{theme.count_untracked}{session.untracked_count}"
    )
    return f"{theme.status_bar}{pad_ansi_line(theme.status_bar + text, width)}{theme.reset}"


def build_footer(session: Session, width: int, theme: UITheme) -> str:
    if session.confirm_prompt is not None:
        text = f"{theme.prompt}{session.confirm_prompt.message}"
    elif session.flash is not None:
        color = theme.flash_error if session.flash.is_error else theme.flash_ok
        text = f"{color}{session.flash.text}"
    else:
        marked = f"{len(session.multi_selected)} marked  " if session.multi_selected else ""
        text = f"{theme.hint}{marked}{KEY_HINTS}"
    return pad_ansi_line(text, width) + theme.reset


def _diff_title(session: Session) -> str:
    if session.selected is None:
        return "Diff"
    section, path = session.selected
    side = "staged" if section is Section.STAGED else "unstaged"
    return f"Diff: {path} ({side})"


def build_frame(session: Session, width: int, height: int, theme: UITheme) -> tuple[str, ScreenLayout]:
    """Compose one full frame without writing it."""
    layout = compute_layout(width, height, len(session.staged), len(session.unstaged))
    out: list[str] = ["\033[H\033[J"]
    if layout.too_small:
        out.append(f"{theme.placeholder}Terminal too small{theme.reset}")
        return "".join(out), layout

    lines: list[str] = [build_status_bar(session, width, theme)]

    list_inner = layout.file_list.inner()
    list_rows = file_list_rows(session, list_inner.width, theme)
    list_start = min(session.file_list_scroll, max(0, len(list_rows) - list_inner.height))
    lines.extend(_boxed(layout.file_list, "Files", list_rows[list_start:], theme))

    diff_inner = layout.diff.inner()
    path = session.selected[1] if session.selected is not None else ""
    diff_rows = diff_pane_rows(session.diff, path, diff_inner.width, theme)
    diff_start = min(session.diff_scroll, max(0, len(diff_rows) - diff_inner.height))
    lines.extend(_boxed(layout.diff, _diff_title(session), diff_rows[diff_start:], theme))

    lines.append(build_footer(session, width, theme))
    out.append("\r\n".join(lines))
    return "".join(out), layout


def render_screen(session: Session, width: int, height: int, theme: UITheme) -> ScreenLayout:
    """Write one frame to stdout and return the layout it used."""
    frame, layout = build_frame(session, width, height, theme)
    os.write(sys.stdout.fileno(), frame.encode("utf-8", errors="replace"))
    return layout


__all__ = [
    "MIN_HEIGHT",
    "MIN_WIDTH",
    "PLACEHOLDERS",
    "Rect",
    "ScreenLayout",
    "build_frame",
    "compute_layout",
    "diff_pane_rows",
    "diff_row_count",
    "file_list_pane_height",
    "fit_path",
    "format_line_counts",
    "max_diff_scroll",
    "plain_diff_row",
    "render_screen",
    "with_background",
]
