"""Interactive session state over one repository.

Owns the classified file lists, the structured diff of the selected entry,
cursor and scroll positions, multi-select, confirmation prompt, the single
undo slot and the flash message. Every mutating action refreshes the model
from git before returning.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from pathlib import Path

from .git.diff import materialize, materialize_untracked
from .git.repository import GitRepository
from .git.status import classify
from .git.types import (
    BranchInfo,
    ConfirmAction,
    ConfirmActionKind,
    ConfirmPrompt,
    DiffContent,
    FileEntry,
    FileStatus,
    FlashMessage,
    Section,
    SelectionKey,
    StatusResult,
    UndoAction,
    UndoKind,
    VisibleRow,
)
from .render import max_diff_scroll

logger = logging.getLogger(__name__)

FLASH_TIMEOUT_SECONDS = 3.0


def plural_s(count: int) -> str:
    return "" if count == 1 else "s"


def build_visible_rows(staged: tuple[FileEntry, ...], unstaged: tuple[FileEntry, ...]) -> list[VisibleRow]:
    """Flatten both sections into one navigable list, staged rows first."""
    rows = [VisibleRow(Section.STAGED, entry.path) for entry in staged]
    rows.extend(VisibleRow(Section.UNSTAGED, entry.path) for entry in unstaged)
    return rows


def build_display_rows(staged_len: int, unstaged_len: int) -> list[int | None]:
    """Map file-list display rows to visible-row indexes; ``None`` marks a section header."""
    display: list[int | None] = []
    if staged_len:
        display.append(None)
        display.extend(range(staged_len))
    if unstaged_len:
        display.append(None)
        display.extend(range(staged_len, staged_len + unstaged_len))
    return display


def count_headers_before(file_index: int, staged_len: int, unstaged_len: int) -> int:
    headers = 0
    if staged_len:
        headers += 1
    if unstaged_len and file_index >= staged_len:
        headers += 1
    return headers


class Session:
    """Mutable dashboard state bound to one ``GitRepository``."""

    def __init__(
        self,
        repo: GitRepository,
        *,
        flash_seconds: float = FLASH_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.repo = repo
        self.flash_seconds = flash_seconds
        self.clock = clock

        self.branch: BranchInfo = BranchInfo.detached("unknown")
        self.staged: tuple[FileEntry, ...] = ()
        self.unstaged: tuple[FileEntry, ...] = ()
        self.staged_count = 0
        self.unstaged_count = 0
        self.untracked_count = 0
        self.visible_rows: list[VisibleRow] = []

        self.highlight_index: int | None = None
        self.selected: SelectionKey | None = None
        self.multi_selected: set[SelectionKey] = set()
        self.file_list_scroll = 0
        self.file_list_height = 0

        self.diff: DiffContent = DiffContent.empty()
        self.diff_scroll = 0

        self.confirm_prompt: ConfirmPrompt | None = None
        self.flash: FlashMessage | None = None
        self.last_action: UndoAction | None = None

    @classmethod
    def open(
        cls,
        path: Path,
        *,
        flash_seconds: float = FLASH_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> Session:
        """Open ``path`` and load the initial model.

        ``RepositoryError`` and status failures propagate to the caller.
        """
        session = cls(GitRepository.open(path), flash_seconds=flash_seconds, clock=clock)
        session.branch = session.repo.branch_info()
        session._apply_status(classify(session.repo))
        session.highlight_index = 0 if session.visible_rows else None
        session.diff = DiffContent.clean() if not session.visible_rows else DiffContent.empty()
        logger.info("opened %s on %s", session.repo.root, session.branch.display())
        return session

    def _apply_status(self, status: StatusResult) -> None:
        self.staged = status.staged
        self.unstaged = status.unstaged
        self.staged_count = status.staged_count
        self.unstaged_count = status.unstaged_count
        self.untracked_count = status.untracked_count
        self.visible_rows = build_visible_rows(self.staged, self.unstaged)

    def entry_for(self, key: SelectionKey) -> FileEntry | None:
        section, path = key
        entries = self.staged if section is Section.STAGED else self.unstaged
        for entry in entries:
            if entry.path == path:
                return entry
        return None

    def highlighted_row(self) -> VisibleRow | None:
        if self.highlight_index is None:
            return None
        if 0 <= self.highlight_index < len(self.visible_rows):
            return self.visible_rows[self.highlight_index]
        return None

    def refresh(self) -> None:
        """Re-query branch and status, then reconcile cursor, selection and diff."""
        self.branch = self.repo.branch_info()
        self._apply_status(classify(self.repo))

        if not self.visible_rows:
            self.highlight_index = None
            self.selected = None
            self.multi_selected.clear()
            self.diff = DiffContent.clean()
            self.diff_scroll = 0
            return

        present = {row.key for row in self.visible_rows}
        self.multi_selected &= present

        if self.highlight_index is None:
            self.highlight_index = 0
        elif self.highlight_index >= len(self.visible_rows):
            self.highlight_index = len(self.visible_rows) - 1

        if self.selected is not None and self.selected not in present:
            self.selected = None
            self.diff = DiffContent.empty()
            self.diff_scroll = 0
        elif self.selected is not None:
            self._update_diff_for_selected()
        else:
            self.diff = DiffContent.empty()

        self._update_scroll_for_highlight()

    def _update_diff_for_selected(self) -> None:
        if self.selected is None:
            return
        entry = self.entry_for(self.selected)
        if entry is None:
            return
        section = self.selected[0]
        if entry.status is FileStatus.CONFLICT:
            self.diff = DiffContent.conflict()
        elif entry.is_binary:
            self.diff = DiffContent.binary()
        elif entry.status is FileStatus.UNTRACKED:
            self.diff = materialize_untracked(self.repo, entry.path)
        else:
            self.diff = materialize(self.repo, entry.path, entry.old_path, section)

    # Navigation and selection

    def move_highlight(self, delta: int) -> None:
        if not self.visible_rows:
            return
        current = self.highlight_index if self.highlight_index is not None else 0
        self.highlight_index = max(0, min(current + delta, len(self.visible_rows) - 1))
        self._update_scroll_for_highlight()

    def _update_scroll_for_highlight(self) -> None:
        if self.file_list_height > 0:
            total = len(build_display_rows(len(self.staged), len(self.unstaged)))
            self.file_list_scroll = min(self.file_list_scroll, max(0, total - self.file_list_height))
        if self.highlight_index is None:
            return
        visual = self.highlight_index + count_headers_before(
            self.highlight_index, len(self.staged), len(self.unstaged)
        )
        if visual < self.file_list_scroll:
            self.file_list_scroll = visual
        elif self.file_list_height > 0 and visual >= self.file_list_scroll + self.file_list_height:
            self.file_list_scroll = visual - self.file_list_height + 1

    def select_current(self) -> None:
        row = self.highlighted_row()
        if row is None:
            return
        self.selected = row.key
        self.diff_scroll = 0
        self._update_diff_for_selected()

    def toggle_multi_select(self) -> None:
        row = self.highlighted_row()
        if row is None:
            return
        if row.key in self.multi_selected:
            self.multi_selected.discard(row.key)
        else:
            self.multi_selected.add(row.key)

    def clear_multi_select(self) -> None:
        self.multi_selected.clear()

    def get_action_targets(self) -> list[SelectionKey]:
        if not self.multi_selected:
            row = self.highlighted_row()
            return [row.key] if row is not None else []
        return sorted(self.multi_selected, key=lambda key: (key[0] is Section.UNSTAGED, key[1]))

    def click_file_list(self, inner_row: int) -> None:
        """Highlight and select the file shown at ``inner_row`` of the file list.

        Rows are counted from the first row inside the pane; header rows and
        blank space below the list are ignored.
        """
        if inner_row < 0:
            return
        if self.file_list_height > 0 and inner_row >= self.file_list_height:
            return
        display = build_display_rows(len(self.staged), len(self.unstaged))
        visual = self.file_list_scroll + inner_row
        if visual >= len(display):
            return
        file_index = display[visual]
        if file_index is None or file_index >= len(self.visible_rows):
            return
        self.highlight_index = file_index
        self.select_current()

    # Diff scrolling

    def scroll_diff(self, delta: int, viewport_height: int, viewport_width: int) -> None:
        limit = max_diff_scroll(self.diff, viewport_height, viewport_width)
        self.diff_scroll = max(0, min(self.diff_scroll + delta, limit))

    def page_scroll_diff(self, down: bool, viewport_height: int, viewport_width: int) -> None:
        delta = viewport_height if down else -viewport_height
        self.scroll_diff(delta, viewport_height, viewport_width)

    # Stage, unstage, undo

    def _section_paths(self, section: Section) -> list[str]:
        return [path for key_section, path in self.get_action_targets() if key_section is section]

    def stage_selected(self) -> None:
        """Stage the unstaged action targets; raises ``GitCommandError`` on failure."""
        paths = self._section_paths(Section.UNSTAGED)
        if not paths:
            return
        self.repo.stage(paths)
        self.last_action = UndoAction(UndoKind.STAGE, tuple(paths))
        self.clear_multi_select()
        self.refresh()
        self.flash_success(f"Staged {len(paths)} file{plural_s(len(paths))}")

    def unstage_selected(self) -> None:
        paths = self._section_paths(Section.STAGED)
        if not paths:
            return
        self.repo.unstage(paths)
        self.last_action = UndoAction(UndoKind.UNSTAGE, tuple(paths))
        self.clear_multi_select()
        self.refresh()
        self.flash_success(f"Unstaged {len(paths)} file{plural_s(len(paths))}")

    def undo(self) -> None:
        """Invert the last stage or unstage. The slot survives a failed inverse."""
        action = self.last_action
        if action is None:
            return
        paths = list(action.paths)
        count = len(paths)
        if action.kind is UndoKind.STAGE:
            self.repo.unstage(paths)
            message = f"Undid stage of {count} file{plural_s(count)}"
        else:
            self.repo.stage(paths)
            message = f"Undid unstage of {count} file{plural_s(count)}"
        self.last_action = None
        self.refresh()
        self.flash_success(message)
        logger.debug("undo %s of %d path(s)", action.kind.value, count)

    # Confirmation prompts

    def show_stage_all_confirm(self) -> None:
        count = len(self.unstaged)
        if count == 0:
            return
        self.confirm_prompt = ConfirmPrompt(
            f"Stage {count} file{plural_s(count)}? [y/N]",
            ConfirmAction(ConfirmActionKind.STAGE_ALL),
        )

    def show_unstage_all_confirm(self) -> None:
        count = len(self.staged)
        if count == 0:
            return
        self.confirm_prompt = ConfirmPrompt(
            f"Unstage {count} file{plural_s(count)}? [y/N]",
            ConfirmAction(ConfirmActionKind.UNSTAGE_ALL),
        )

    def show_discard_selected_confirm(self) -> None:
        targets = [key for key in self.get_action_targets() if key[0] is Section.UNSTAGED]
        if not targets:
            return
        entries = [entry for entry in (self.entry_for(key) for key in targets) if entry is not None]
        if any(entry.status is FileStatus.CONFLICT for entry in entries):
            self.flash_error("Cannot discard conflicted files. Resolve conflicts first.")
            return
        has_untracked = any(entry.status is FileStatus.UNTRACKED for entry in entries)

        count = len(targets)
        if count == 1:
            message = "Delete untracked file? [y/N]" if has_untracked else "Discard changes? [y/N]"
        elif has_untracked:
            message = f"Discard {count} changes (including untracked files)? [y/N]"
        else:
            message = f"Discard {count} changes? [y/N]"
        self.confirm_prompt = ConfirmPrompt(
            message,
            ConfirmAction(ConfirmActionKind.DISCARD_SELECTED, tuple(targets)),
        )

    def show_discard_all_confirm(self) -> None:
        count = len(self.unstaged)
        if count == 0:
            return
        files = f"{count} file{plural_s(count)}"
        if any(entry.status is FileStatus.UNTRACKED for entry in self.unstaged):
            message = f"Discard all changes and delete untracked files ({files})? [y/N]"
        else:
            message = f"Discard all changes ({files})? [y/N]"
        self.confirm_prompt = ConfirmPrompt(message, ConfirmAction(ConfirmActionKind.DISCARD_ALL))

    def handle_confirm(self, confirmed: bool) -> None:
        """Answer the live prompt. Mutation errors propagate after the prompt is dropped."""
        prompt = self.confirm_prompt
        self.confirm_prompt = None
        if prompt is None or not confirmed:
            return

        kind = prompt.action.kind
        if kind is ConfirmActionKind.STAGE_ALL:
            self._stage_all()
        elif kind is ConfirmActionKind.UNSTAGE_ALL:
            self._unstage_all()
        elif kind is ConfirmActionKind.DISCARD_SELECTED:
            self._discard([path for _section, path in prompt.action.targets])
        elif kind is ConfirmActionKind.DISCARD_ALL:
            self._discard([entry.path for entry in self.unstaged])

    def _stage_all(self) -> None:
        paths = [entry.path for entry in self.unstaged]
        if paths:
            self.repo.stage(paths)
            self.last_action = UndoAction(UndoKind.STAGE, tuple(paths))
        self.clear_multi_select()
        self.refresh()
        if paths:
            self.flash_success(f"Staged {len(paths)} file{plural_s(len(paths))}")

    def _unstage_all(self) -> None:
        paths = [entry.path for entry in self.staged]
        if paths:
            self.repo.unstage(paths)
            self.last_action = UndoAction(UndoKind.UNSTAGE, tuple(paths))
        self.clear_multi_select()
        self.refresh()
        if paths:
            self.flash_success(f"Unstaged {len(paths)} file{plural_s(len(paths))}")

    def _discard(self, paths: list[str]) -> None:
        tracked: list[str] = []
        untracked: list[str] = []
        skipped = 0
        for path in paths:
            entry = self.entry_for((Section.UNSTAGED, path))
            if entry is None:
                continue
            if entry.status is FileStatus.CONFLICT:
                skipped += 1
            elif entry.status is FileStatus.UNTRACKED:
                untracked.append(path)
            else:
                tracked.append(path)

        # Partial work still invalidates the undo slot and the cached lists.
        try:
            if tracked:
                self.repo.restore_worktree(tracked)
            for path in untracked:
                self.repo.delete_untracked(path)
        finally:
            self.last_action = None
            self.clear_multi_select()
            self.refresh()

        discarded = len(tracked) + len(untracked)
        logger.debug("discarded %d path(s), skipped %d conflict(s)", discarded, skipped)

        if discarded and skipped:
            self.flash_success(
                f"Discarded {discarded} file{plural_s(discarded)} "
                f"({skipped} conflict{plural_s(skipped)} skipped)"
            )
        elif discarded:
            self.flash_success(f"Discarded {discarded} file{plural_s(discarded)}")
        elif skipped:
            self.flash_error(f"No files discarded ({skipped} conflict{plural_s(skipped)} skipped)")

    # Flash messages

    def flash_success(self, text: str) -> None:
        self.flash = FlashMessage(text, False, self.clock())

    def flash_error(self, text: str) -> None:
        self.flash = FlashMessage(text, True, self.clock())

    def clear_flash(self) -> None:
        self.flash = None

    def check_flash_expiry(self, now: float | None = None) -> bool:
        """Drop an expired flash; returns whether one was dropped."""
        if self.flash is None:
            return False
        if now is None:
            now = self.clock()
        if self.flash.is_expired(now, self.flash_seconds):
            self.flash = None
            return True
        return False


__all__ = [
    "FLASH_TIMEOUT_SECONDS",
    "Session",
    "build_display_rows",
    "build_visible_rows",
    "count_headers_before",
    "plural_s",
]
