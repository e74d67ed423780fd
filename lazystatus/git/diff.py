"""Turn single-path git patches into line-addressable diff rows.

Rows carry the new-side line number for context and added lines so the diff
pane can draw a gutter. Binary, conflicted and undecodable content map to
sentinel ``DiffContent`` kinds instead of partial output.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from .types import DiffContent, DiffLine, DiffLineKind, Section

if TYPE_CHECKING:
    from .repository import GitRepository

_HUNK_RE = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")


def _split_raw_lines(raw: bytes) -> list[bytes]:
    lines = raw.split(b"\n")
    if lines and lines[-1] == b"":
        lines.pop()
    return lines


def parse_patch(raw: bytes) -> DiffContent:
    """Parse raw ``git diff`` output for one path.

    Every line is decoded strictly as UTF-8; a single undecodable line turns
    the whole result into ``INVALID_UTF8``.
    """
    raw_lines = _split_raw_lines(raw)
    if not raw_lines:
        return DiffContent.empty()

    rows: list[DiffLine] = []
    in_hunk = False
    new_line = 0
    for raw_line in raw_lines:
        try:
            line = raw_line.decode("utf-8")
        except UnicodeDecodeError:
            return DiffContent.invalid_utf8()

        if line.startswith("diff --git "):
            in_hunk = False
            rows.append(DiffLine(DiffLineKind.HEADER, line))
            continue

        if line.startswith("@@"):
            match = _HUNK_RE.match(line)
            if match is None:
                rows.append(DiffLine(DiffLineKind.HEADER, line))
                continue
            in_hunk = True
            new_line = int(match.group(3))
            rows.append(DiffLine(DiffLineKind.HUNK, line))
            continue

        if not in_hunk:
            rows.append(DiffLine(DiffLineKind.HEADER, line))
            continue

        marker, body = line[:1], line[1:]
        if marker == "+":
            rows.append(DiffLine(DiffLineKind.ADDED, body, new_line))
            new_line += 1
        elif marker == " ":
            rows.append(DiffLine(DiffLineKind.CONTEXT, body, new_line))
            new_line += 1
        elif marker == "-":
            rows.append(DiffLine(DiffLineKind.DELETED, body))
        else:
            # "\ No newline at end of file" and anything unexpected.
            rows.append(DiffLine(DiffLineKind.HEADER, line))

    if not rows:
        return DiffContent.empty()
    return DiffContent.text(rows)


def materialize(repo: GitRepository, path: str, old_path: str | None, section: Section) -> DiffContent:
    """Structured diff of a tracked path in ``section`` (``--cached`` for staged)."""
    numstat = repo.numstat(path, old_path, section)
    if numstat is not None and any(row.is_binary for row in numstat):
        return DiffContent.binary()
    raw = repo.patch(path, old_path, section)
    if raw is None:
        return DiffContent.empty()
    return parse_patch(raw)


def synthesize_untracked(path: str, content: bytes) -> DiffContent:
    """Render an untracked file as an all-added new-file patch."""
    try:
        text = content.decode("utf-8")
    except UnicodeDecodeError:
        return DiffContent.invalid_utf8()

    rows = [
        DiffLine(DiffLineKind.HEADER, f"diff --git a/{path} b/{path}"),
        DiffLine(DiffLineKind.HEADER, "new file"),
        DiffLine(DiffLineKind.HEADER, "--- /dev/null"),
        DiffLine(DiffLineKind.HEADER, f"+++ b/{path}"),
    ]
    body = text.split("\n")
    if body and body[-1] == "":
        body.pop()
    if body:
        rows.append(DiffLine(DiffLineKind.HUNK, f"@@ -0,0 +1,{len(body)} @@"))
        for number, line in enumerate(body, start=1):
            rows.append(DiffLine(DiffLineKind.ADDED, line.removesuffix("\r"), number))
    return DiffContent.text(rows)


def materialize_untracked(repo: GitRepository, path: str) -> DiffContent:
    content = repo.read_worktree_file(path)
    if content is None:
        return DiffContent.empty()
    return synthesize_untracked(path, content)


__all__ = ["materialize", "materialize_untracked", "parse_patch", "synthesize_untracked"]
