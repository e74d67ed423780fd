"""UI theme definitions and selection helpers.

Themes are ANSI palettes for the status bar, file list, diff pane and footer.
``plain`` carries no escapes at all and is forced by ``--no-color``.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class UITheme:
    """Semantic ANSI palette used by the renderer."""

    name: str
    reset: str
    bold: str
    border: str
    title: str
    status_bar: str
    branch: str
    count_label: str
    count_staged: str
    count_unstaged: str
    count_untracked: str
    section_header: str
    file_text: str
    line_counts: str
    status_added: str
    status_modified: str
    status_deleted: str
    status_renamed: str
    status_untracked: str
    status_conflict: str
    gutter: str
    diff_header: str
    diff_context: str
    diff_added: str
    diff_deleted: str
    diff_added_bg: str
    diff_deleted_bg: str
    placeholder: str
    conflict_note: str
    flash_ok: str
    flash_error: str
    prompt: str
    hint: str
    syntax: bool = True


def _rgb(r: int, g: int, b: int) -> str:
    return f"\033[38;2;{r};{g};{b}m"


DEFAULT_THEME = UITheme(
    name="default",
    reset="\033[0m",
    bold="\033[1m",
    border=_rgb(108, 112, 134),
    title="\033[1m" + _rgb(205, 214, 244),
    status_bar="\033[48;2;49;50;68m",
    branch=_rgb(148, 226, 213),
    count_label=_rgb(205, 214, 244),
    count_staged=_rgb(166, 227, 161),
    count_unstaged=_rgb(249, 226, 175),
    count_untracked=_rgb(147, 153, 178),
    section_header="\033[1m" + _rgb(148, 226, 213),
    file_text=_rgb(205, 214, 244),
    line_counts=_rgb(147, 153, 178),
    status_added=_rgb(166, 227, 161),
    status_modified=_rgb(249, 226, 175),
    status_deleted=_rgb(243, 139, 168),
    status_renamed=_rgb(137, 180, 250),
    status_untracked=_rgb(147, 153, 178),
    status_conflict=_rgb(245, 194, 231),
    gutter=_rgb(147, 153, 178),
    diff_header=_rgb(148, 226, 213),
    diff_context=_rgb(205, 214, 244),
    diff_added=_rgb(166, 227, 161),
    diff_deleted=_rgb(243, 139, 168),
    diff_added_bg="48;2;36;74;52",
    diff_deleted_bg="48;2;92;43;49",
    placeholder=_rgb(147, 153, 178),
    conflict_note=_rgb(245, 194, 231),
    flash_ok=_rgb(166, 227, 161),
    flash_error="\033[1m" + _rgb(243, 139, 168),
    prompt="\033[1m" + _rgb(249, 226, 175),
    hint="\033[2m",
)

OCEAN_THEME = UITheme(
    name="ocean",
    reset="\033[0m",
    bold="\033[1m",
    border="\033[2;38;5;31m",
    title="\033[1;38;5;45m",
    status_bar="\033[48;5;24m",
    branch="\033[38;5;45m",
    count_label="\033[38;5;153m",
    count_staged="\033[38;5;84m",
    count_unstaged="\033[38;5;215m",
    count_untracked="\033[38;5;110m",
    section_header="\033[1;38;5;39m",
    file_text="\033[38;5;252m",
    line_counts="\033[38;5;73m",
    status_added="\033[38;5;84m",
    status_modified="\033[38;5;215m",
    status_deleted="\033[38;5;203m",
    status_renamed="\033[38;5;117m",
    status_untracked="\033[38;5;110m",
    status_conflict="\033[38;5;213m",
    gutter="\033[38;5;73m",
    diff_header="\033[38;5;39m",
    diff_context="\033[38;5;252m",
    diff_added="\033[38;5;84m",
    diff_deleted="\033[38;5;203m",
    diff_added_bg="48;5;22",
    diff_deleted_bg="48;5;52",
    placeholder="\033[2;38;5;110m",
    conflict_note="\033[38;5;213m",
    flash_ok="\033[38;5;84m",
    flash_error="\033[1;38;5;203m",
    prompt="\033[1;38;5;153m",
    hint="\033[2;38;5;110m",
)

PLAIN_THEME = UITheme(
    name="plain",
    reset="",
    bold="",
    border="",
    title="",
    status_bar="",
    branch="",
    count_label="",
    count_staged="",
    count_unstaged="",
    count_untracked="",
    section_header="",
    file_text="",
    line_counts="",
    status_added="",
    status_modified="",
    status_deleted="",
    status_renamed="",
    status_untracked="",
    status_conflict="",
    gutter="",
    diff_header="",
    diff_context="",
    diff_added="",
    diff_deleted="",
    diff_added_bg="",
    diff_deleted_bg="",
    placeholder="",
    conflict_note="",
    flash_ok="",
    flash_error="",
    prompt="",
    hint="",
    syntax=False,
)

_THEMES: dict[str, UITheme] = {
    DEFAULT_THEME.name: DEFAULT_THEME,
    OCEAN_THEME.name: OCEAN_THEME,
    PLAIN_THEME.name: PLAIN_THEME,
}


def available_theme_names() -> tuple[str, ...]:
    return tuple(sorted(_THEMES.keys()))


def normalize_theme_name(name: str | None) -> str:
    """Return a valid theme name, falling back to default."""
    if not name:
        return DEFAULT_THEME.name
    candidate = str(name).strip().lower()
    if candidate in _THEMES:
        return candidate
    return DEFAULT_THEME.name


def resolve_theme(name: str | None, *, no_color: bool = False) -> UITheme:
    """Return concrete theme for requested name and color mode."""
    if no_color:
        return PLAIN_THEME
    return _THEMES[normalize_theme_name(name)]


__all__ = [
    "DEFAULT_THEME",
    "OCEAN_THEME",
    "PLAIN_THEME",
    "UITheme",
    "available_theme_names",
    "normalize_theme_name",
    "resolve_theme",
]
