"""Domain datatypes for classified repository status and structured diffs.

Every value here is rebuilt wholesale on refresh and never mutated in place.
Tagged unions carry a ``kind`` enum; consumers branch on it exhaustively.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Section(Enum):
    """Which side of the index an entry belongs to."""

    STAGED = "staged"
    UNSTAGED = "unstaged"


class FileStatus(Enum):
    ADDED = "A"
    MODIFIED = "M"
    DELETED = "D"
    RENAMED = "R"
    UNTRACKED = "?"
    CONFLICT = "C"

    @property
    def symbol(self) -> str:
        """One-letter tag shown in the file list."""
        return self.value


SelectionKey = tuple[Section, str]


@dataclass(frozen=True)
class FileEntry:
    """One classified change, staged or unstaged."""

    path: str
    status: FileStatus
    old_path: str | None = None
    added_lines: int | None = None
    deleted_lines: int | None = None
    is_binary: bool = False
    is_submodule: bool = False


@dataclass(frozen=True)
class VisibleRow:
    section: Section
    path: str

    @property
    def key(self) -> SelectionKey:
        return (self.section, self.path)


@dataclass(frozen=True)
class StatusRecord:
    """Raw per-path status as reported by the engine.

    ``index`` and ``worktree`` hold porcelain status letters, ``"."`` when
    that side is unchanged.
    """

    path: str
    index: str = "."
    worktree: str = "."
    orig_path: str | None = None
    is_conflict: bool = False
    is_untracked: bool = False
    is_submodule: bool = False


@dataclass(frozen=True)
class StatusResult:
    staged: tuple[FileEntry, ...]
    unstaged: tuple[FileEntry, ...]
    staged_count: int
    unstaged_count: int
    untracked_count: int


class BranchKind(Enum):
    BRANCH = "branch"
    DETACHED = "detached"


@dataclass(frozen=True)
class BranchInfo:
    kind: BranchKind
    name: str

    @classmethod
    def branch(cls, name: str) -> BranchInfo:
        return cls(BranchKind.BRANCH, name)

    @classmethod
    def detached(cls, short_hash: str) -> BranchInfo:
        return cls(BranchKind.DETACHED, short_hash)

    def display(self) -> str:
        if self.kind is BranchKind.BRANCH:
            return self.name
        return f"HEAD@{self.name}"


class DiffLineKind(Enum):
    HEADER = "header"
    HUNK = "hunk"
    CONTEXT = "context"
    ADDED = "added"
    DELETED = "deleted"


@dataclass(frozen=True)
class DiffLine:
    """One patch row; ``new_line_number`` is set only on context/added rows."""

    kind: DiffLineKind
    content: str
    new_line_number: int | None = None


class DiffContentKind(Enum):
    EMPTY = "empty"
    CLEAN = "clean"
    TEXT = "text"
    BINARY = "binary"
    INVALID_UTF8 = "invalid_utf8"
    CONFLICT = "conflict"


@dataclass(frozen=True)
class DiffContent:
    """Structured diff for the selected entry, or a sentinel explaining its absence."""

    kind: DiffContentKind
    lines: tuple[DiffLine, ...] = ()

    @classmethod
    def empty(cls) -> DiffContent:
        return cls(DiffContentKind.EMPTY)

    @classmethod
    def clean(cls) -> DiffContent:
        return cls(DiffContentKind.CLEAN)

    @classmethod
    def binary(cls) -> DiffContent:
        return cls(DiffContentKind.BINARY)

    @classmethod
    def invalid_utf8(cls) -> DiffContent:
        return cls(DiffContentKind.INVALID_UTF8)

    @classmethod
    def conflict(cls) -> DiffContent:
        return cls(DiffContentKind.CONFLICT)

    @classmethod
    def text(cls, lines: list[DiffLine] | tuple[DiffLine, ...]) -> DiffContent:
        return cls(DiffContentKind.TEXT, tuple(lines))


class ConfirmActionKind(Enum):
    STAGE_ALL = "stage_all"
    UNSTAGE_ALL = "unstage_all"
    DISCARD_ALL = "discard_all"
    DISCARD_SELECTED = "discard_selected"


@dataclass(frozen=True)
class ConfirmAction:
    kind: ConfirmActionKind
    targets: tuple[SelectionKey, ...] = ()


@dataclass(frozen=True)
class ConfirmPrompt:
    message: str
    action: ConfirmAction


class UndoKind(Enum):
    STAGE = "stage"
    UNSTAGE = "unstage"


@dataclass(frozen=True)
class UndoAction:
    kind: UndoKind
    paths: tuple[str, ...]


@dataclass(frozen=True)
class FlashMessage:
    text: str
    is_error: bool
    shown_at: float

    def is_expired(self, now: float, timeout_seconds: float) -> bool:
        return now - self.shown_at >= timeout_seconds


__all__ = [
    "BranchInfo",
    "BranchKind",
    "ConfirmAction",
    "ConfirmActionKind",
    "ConfirmPrompt",
    "DiffContent",
    "DiffContentKind",
    "DiffLine",
    "DiffLineKind",
    "FileEntry",
    "FileStatus",
    "FlashMessage",
    "Section",
    "SelectionKey",
    "StatusRecord",
    "StatusResult",
    "UndoAction",
    "UndoKind",
    "VisibleRow",
]
