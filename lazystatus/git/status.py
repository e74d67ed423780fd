"""Classify raw porcelain status records into staged and unstaged file lists.

``classify_records`` is the pure core; ``classify`` wires it to a repository.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING

from .types import FileEntry, FileStatus, Section, StatusRecord, StatusResult

if TYPE_CHECKING:
    from .repository import GitRepository

LineCounter = Callable[[str, "str | None", Section], "tuple[int | None, int | None, bool]"]
UntrackedCounter = Callable[[str], "tuple[int, bool]"]

_UNCHANGED = "."
_CONFLICT_PAIRS = {("A", "A"), ("D", "D")}


def count_file_lines(content: bytes | None) -> tuple[int, bool]:
    """Return ``(line_count, is_binary)`` for raw untracked file content.

    A final line without a trailing newline still counts. NUL bytes mark the
    file binary; undecodable text counts as zero lines.
    """
    if content is None:
        return 0, False
    if b"\0" in content:
        return 0, True
    try:
        text = content.decode("utf-8")
    except UnicodeDecodeError:
        return 0, False
    if not text:
        return 0, False
    count = text.count("\n")
    if not text.endswith("\n"):
        count += 1
    return count, False


def is_conflict_record(record: StatusRecord) -> bool:
    if record.is_conflict:
        return True
    if record.index == "U" or record.worktree == "U":
        return True
    return (record.index, record.worktree) in _CONFLICT_PAIRS


def staged_status(letter: str) -> FileStatus:
    # Copies land in the index as a new path.
    if letter in ("A", "C"):
        return FileStatus.ADDED
    if letter == "D":
        return FileStatus.DELETED
    if letter == "R":
        return FileStatus.RENAMED
    return FileStatus.MODIFIED


def unstaged_status(letter: str) -> FileStatus:
    if letter == "D":
        return FileStatus.DELETED
    if letter == "R":
        return FileStatus.RENAMED
    return FileStatus.MODIFIED


def _counted_entry(
    line_counter: LineCounter,
    section: Section,
    path: str,
    status: FileStatus,
    old_path: str | None = None,
    is_submodule: bool = False,
) -> FileEntry:
    added, deleted, is_binary = line_counter(path, old_path, section)
    if is_binary:
        added, deleted = None, None
    return FileEntry(
        path=path,
        status=status,
        old_path=old_path,
        added_lines=added,
        deleted_lines=deleted,
        is_binary=is_binary,
        is_submodule=is_submodule,
    )


def classify_records(
    records: Iterable[StatusRecord],
    line_counter: LineCounter,
    untracked_counter: UntrackedCounter,
) -> StatusResult:
    """Turn raw records into sorted staged/unstaged entry lists and path counts."""
    staged: list[FileEntry] = []
    unstaged: list[FileEntry] = []
    staged_paths: set[str] = set()
    unstaged_paths: set[str] = set()
    untracked_paths: set[str] = set()

    for record in records:
        path = record.path
        index_changed = record.index not in (_UNCHANGED, "?")
        worktree_changed = record.worktree not in (_UNCHANGED, "?")

        if is_conflict_record(record):
            unstaged_paths.add(path)
            unstaged.append(FileEntry(path=path, status=FileStatus.CONFLICT))
            continue

        if record.is_untracked:
            untracked_paths.add(path)
            unstaged_paths.add(path)
            lines, is_binary = untracked_counter(path)
            unstaged.append(
                FileEntry(
                    path=path,
                    status=FileStatus.UNTRACKED,
                    added_lines=lines,
                    deleted_lines=0,
                    is_binary=is_binary,
                )
            )
            continue

        renamed_from = record.orig_path if record.index in ("R", "C") else None
        if record.is_submodule or "T" in (record.index, record.worktree):
            if index_changed:
                staged_paths.add(path)
                staged.append(
                    _counted_entry(
                        line_counter,
                        Section.STAGED,
                        path,
                        staged_status(record.index),
                        old_path=renamed_from if record.index == "R" else None,
                        is_submodule=True,
                    )
                )
            elif worktree_changed:
                unstaged_paths.add(path)
                unstaged.append(
                    _counted_entry(
                        line_counter,
                        Section.UNSTAGED,
                        path,
                        unstaged_status(record.worktree),
                        is_submodule=True,
                    )
                )
            continue

        if index_changed:
            staged_paths.add(path)
            staged.append(
                _counted_entry(
                    line_counter,
                    Section.STAGED,
                    path,
                    staged_status(record.index),
                    old_path=renamed_from if record.index == "R" else None,
                )
            )
        if worktree_changed:
            unstaged_paths.add(path)
            worktree_old = record.orig_path if record.worktree == "R" else None
            unstaged.append(
                _counted_entry(
                    line_counter,
                    Section.UNSTAGED,
                    path,
                    unstaged_status(record.worktree),
                    old_path=worktree_old,
                )
            )

    staged.sort(key=lambda entry: entry.path)
    unstaged.sort(key=lambda entry: entry.path)
    return StatusResult(
        staged=tuple(staged),
        unstaged=tuple(unstaged),
        staged_count=len(staged_paths),
        unstaged_count=len(unstaged_paths),
        untracked_count=len(untracked_paths),
    )


def classify(repo: GitRepository) -> StatusResult:
    """Query the repository and classify its current status."""

    def line_counter(path: str, old_path: str | None, section: Section) -> tuple[int | None, int | None, bool]:
        rows = repo.numstat(path, old_path, section)
        if rows is None:
            return None, None, False
        if any(row.is_binary for row in rows):
            return None, None, True
        added = sum(row.added or 0 for row in rows)
        deleted = sum(row.deleted or 0 for row in rows)
        return added, deleted, False

    def untracked_counter(path: str) -> tuple[int, bool]:
        return count_file_lines(repo.read_worktree_file(path))

    return classify_records(repo.status_records(), line_counter, untracked_counter)


__all__ = [
    "classify",
    "classify_records",
    "count_file_lines",
    "is_conflict_record",
    "staged_status",
    "unstaged_status",
]
