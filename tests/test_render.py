"""Frame composition tests for layout, file rows, diff rows and footer."""

from __future__ import annotations

from types import SimpleNamespace
import unittest
from unittest import mock

from lazystatus.ansi import display_width, strip_ansi
from lazystatus.git.types import (
    BranchInfo,
    ConfirmAction,
    ConfirmActionKind,
    ConfirmPrompt,
    DiffContent,
    DiffLine,
    DiffLineKind,
    FileEntry,
    FileStatus,
    FlashMessage,
    Section,
)
from lazystatus.render import (
    KEY_HINTS,
    build_frame,
    compute_layout,
    diff_pane_rows,
    diff_row_count,
    file_list_pane_height,
    fit_path,
    format_line_counts,
    max_diff_scroll,
    plain_diff_row,
    render_screen,
    with_background,
)
from lazystatus.ui_theme import DEFAULT_THEME, PLAIN_THEME


def _session(**overrides) -> SimpleNamespace:
    values = dict(
        branch=BranchInfo.branch("main"),
        staged=(FileEntry("src/app.py", FileStatus.MODIFIED, added_lines=3, deleted_lines=1),),
        unstaged=(
            FileEntry("README.md", FileStatus.MODIFIED, added_lines=1, deleted_lines=0),
            FileEntry("new.txt", FileStatus.UNTRACKED, added_lines=2, deleted_lines=0),
        ),
        staged_count=1,
        unstaged_count=2,
        untracked_count=1,
        highlight_index=0,
        selected=None,
        multi_selected=set(),
        file_list_scroll=0,
        diff=DiffContent.empty(),
        diff_scroll=0,
        confirm_prompt=None,
        flash=None,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


def _frame_rows(session, width: int = 60, height: int = 24) -> list[str]:
    frame, _layout = build_frame(session, width, height, PLAIN_THEME)
    return frame.removeprefix("\033[H\033[J").split("\r\n")


class LayoutTests(unittest.TestCase):
    def test_file_list_height_fits_rows_then_caps_at_a_third(self) -> None:
        self.assertEqual(file_list_pane_height(1, 2, 30), 7)
        self.assertEqual(file_list_pane_height(10, 10, 30), 10)
        self.assertEqual(file_list_pane_height(0, 0, 30), 2)
        self.assertEqual(file_list_pane_height(10, 0, 12), 5)

    def test_panes_stack_between_status_bar_and_footer(self) -> None:
        layout = compute_layout(80, 24, 1, 2)

        self.assertEqual(layout.status_bar.top, 0)
        self.assertEqual(layout.file_list.top, 1)
        self.assertEqual(layout.diff.top, layout.file_list.top + layout.file_list.height)
        self.assertEqual(layout.diff.top + layout.diff.height, layout.footer.top)
        self.assertEqual(layout.footer.top, 23)
        self.assertEqual(layout.diff_content_width, 78)

    def test_too_small_terminal(self) -> None:
        self.assertTrue(compute_layout(29, 24, 1, 1).too_small)
        self.assertTrue(compute_layout(80, 9, 1, 1).too_small)
        self.assertFalse(compute_layout(30, 10, 1, 1).too_small)


class FileRowTests(unittest.TestCase):
    def test_line_count_labels(self) -> None:
        self.assertEqual(format_line_counts(FileEntry("a", FileStatus.MODIFIED, added_lines=4, deleted_lines=2)), "+4/-2")
        self.assertEqual(format_line_counts(FileEntry("a", FileStatus.MODIFIED, is_binary=True)), "-/-")
        self.assertEqual(format_line_counts(FileEntry("a", FileStatus.CONFLICT)), "")

    def test_fit_path_drops_counts_then_truncates_from_the_left(self) -> None:
        self.assertEqual(fit_path("a/b.txt", "+1/-0", 20), ("a/b.txt", True))
        self.assertEqual(fit_path("a/b.txt", "+1/-0", 8), ("a/b.txt", False))
        self.assertEqual(fit_path("long/dir/name.txt", "", 10), ("…/name.txt", False))
        self.assertEqual(fit_path("dir/averyveryverylongname.txt", "", 6), ("averyv", False))

    def test_sections_headers_and_markers(self) -> None:
        session = _session(
            highlight_index=1,
            selected=(Section.UNSTAGED, "README.md"),
            multi_selected={(Section.UNSTAGED, "new.txt")},
        )

        rows = _frame_rows(session)

        self.assertIn("[STAGED]", rows[2])
        self.assertIn("M   src/app.py +3/-1", rows[3])
        self.assertIn("[UNSTAGED]", rows[4])
        self.assertTrue(rows[5].startswith("│>●  M README.md"))
        self.assertTrue(rows[6].startswith("│  * ? new.txt"))


class DiffRowTests(unittest.TestCase):
    def test_gutter_shows_new_line_numbers_and_minus_for_deletions(self) -> None:
        self.assertEqual(plain_diff_row(DiffLine(DiffLineKind.ADDED, "x = 1", 12), 3), " 12 │+x = 1")
        self.assertEqual(plain_diff_row(DiffLine(DiffLineKind.DELETED, "old"), 3), "  - │-old")
        self.assertEqual(plain_diff_row(DiffLine(DiffLineKind.HUNK, "@@ -1 +1 @@"), 3), "    │@@ -1 +1 @@")

    def test_control_characters_are_escaped(self) -> None:
        row = plain_diff_row(DiffLine(DiffLineKind.ADDED, "bell\x07\x1b[2J", 1), 3)

        self.assertIn("\\x07", row)
        self.assertNotIn("\x1b", row)

    def test_row_count_and_max_scroll_include_wrapping(self) -> None:
        diff = DiffContent.text(
            [
                DiffLine(DiffLineKind.HUNK, "@@ -0,0 +1,2 @@"),
                DiffLine(DiffLineKind.ADDED, "a" * 30, 1),
                DiffLine(DiffLineKind.ADDED, "b", 2),
            ]
        )

        # Gutter is five columns plus the marker, so the long line spans two rows at width 20.
        self.assertEqual(diff_row_count(diff, 20), 4)
        self.assertEqual(max_diff_scroll(diff, 3, 20), 1)
        self.assertEqual(max_diff_scroll(diff, 10, 20), 0)

    def test_sentinel_diffs_render_placeholder_text(self) -> None:
        expectations = {
            DiffContent.empty(): "↑/↓ navigate, Enter to view diff",
            DiffContent.clean(): "No changes (q to quit)",
            DiffContent.binary(): "Binary file",
            DiffContent.invalid_utf8(): "File contains invalid UTF-8 encoding",
            DiffContent.conflict(): "Conflict - resolve before viewing diff",
        }
        for diff, text in expectations.items():
            with self.subTest(kind=diff.kind):
                self.assertEqual(diff_pane_rows(diff, "", 40, PLAIN_THEME), ["", text])

    def test_styled_rows_keep_background_through_resets(self) -> None:
        styled = with_background("\033[32mx\033[0my", "48;5;22")

        self.assertTrue(styled.startswith("\033[48;5;22m"))
        self.assertIn("\033[0;48;5;22m", styled)
        self.assertTrue(styled.endswith("\033[49m"))

    def test_colored_rows_wrap_to_pane_width(self) -> None:
        diff = DiffContent.text([DiffLine(DiffLineKind.ADDED, "value = " + "x" * 80, 1)])

        rows = diff_pane_rows(diff, "example.py", 40, DEFAULT_THEME)

        self.assertGreater(len(rows), 1)
        self.assertTrue(all(display_width(row) <= 40 for row in rows))


class FrameTests(unittest.TestCase):
    def test_status_bar_shows_branch_and_counts(self) -> None:
        rows = _frame_rows(_session(branch=BranchInfo.detached("abc1234")))

        self.assertTrue(rows[0].startswith("HEAD@abc1234 S:1 U:2 ?:1"))

    def test_every_row_fills_the_width(self) -> None:
        session = _session(
            selected=(Section.STAGED, "src/app.py"),
            diff=DiffContent.text([DiffLine(DiffLineKind.CONTEXT, "line", 1)]),
        )
        frame, _layout = build_frame(session, 50, 16, DEFAULT_THEME)
        rows = frame.removeprefix("\033[H\033[J").split("\r\n")

        self.assertEqual(len(rows), 16)
        self.assertTrue(all(display_width(row) == 50 for row in rows))

    def test_diff_title_names_selected_side(self) -> None:
        rows = _frame_rows(_session(selected=(Section.STAGED, "src/app.py")))

        self.assertTrue(any("Diff: src/app.py (staged)" in row for row in rows))

    def test_footer_precedence_prompt_over_flash_over_hints(self) -> None:
        prompt = ConfirmPrompt("Stage 2 files? [y/N]", ConfirmAction(ConfirmActionKind.STAGE_ALL))
        flash = FlashMessage("Staged 1 file", False, 0.0)

        self.assertTrue(_frame_rows(_session(confirm_prompt=prompt, flash=flash))[-1].startswith("Stage 2 files? [y/N]"))
        self.assertTrue(_frame_rows(_session(flash=flash))[-1].startswith("Staged 1 file"))
        self.assertTrue(_frame_rows(_session(), width=120)[-1].startswith(KEY_HINTS))

    def test_footer_shows_mark_count(self) -> None:
        rows = _frame_rows(_session(multi_selected={(Section.UNSTAGED, "new.txt")}), width=120)

        self.assertTrue(rows[-1].startswith("1 marked"))

    def test_too_small_frame(self) -> None:
        frame, layout = build_frame(_session(), 20, 5, DEFAULT_THEME)

        self.assertTrue(layout.too_small)
        self.assertIn("Terminal too small", strip_ansi(frame))

    def test_render_screen_writes_frame_to_stdout(self) -> None:
        with mock.patch("lazystatus.render.os.write") as write_mock, mock.patch(
            "lazystatus.render.sys.stdout"
        ) as stdout_mock:
            stdout_mock.fileno.return_value = 1
            layout = render_screen(_session(), 60, 20, PLAIN_THEME)

        self.assertFalse(layout.too_small)
        fd, payload = write_mock.call_args.args
        self.assertEqual(fd, 1)
        self.assertTrue(payload.startswith(b"\x1b[H\x1b[J"))


if __name__ == "__main__":
    unittest.main()
