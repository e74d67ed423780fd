"""Command-line front door for lazystatus.

Parses CLI options, configures file logging, opens the repository session,
then dispatches into the interactive runtime.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
import termios
from pathlib import Path

from platformdirs import user_log_dir

from .config import load_settings, save_theme_name
from .git.repository import GitError
from .runtime import RuntimeLoopTiming, run_app
from .session import Session
from .terminal import TerminalController
from .ui_theme import available_theme_names, resolve_theme

LOG_FILENAME = "lazystatus.log"
DEBUG_ENV_VAR = "LAZYSTATUS_DEBUG"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def default_log_path() -> Path:
    return Path(user_log_dir("lazystatus", appauthor=False)) / LOG_FILENAME


def configure_logging(log_path: Path) -> None:
    """Route package logs to ``log_path``; the terminal belongs to the UI."""
    level = logging.DEBUG if os.environ.get(DEBUG_ENV_VAR) == "1" else logging.INFO
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(log_path, encoding="utf-8")
    except OSError:
        handler = logging.NullHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    package_logger = logging.getLogger("lazystatus")
    package_logger.setLevel(level)
    package_logger.addHandler(handler)
    package_logger.propagate = False


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lazystatus",
        description="Watch a git working tree and stage, unstage or discard changes interactively.",
    )
    parser.add_argument("path", nargs="?", default=None, help="Path inside the repository. Defaults to current directory.")
    parser.add_argument(
        "--theme",
        default=None,
        help=f"UI theme name ({', '.join(available_theme_names())}). Remembered for later runs.",
    )
    parser.add_argument("--no-color", action="store_true", help="Disable color output.")
    parser.add_argument("--poll", action="store_true", help="Skip the file watcher and poll for changes.")
    parser.add_argument("--log-file", metavar="PATH", default=None, help="Write logs to PATH.")
    return parser


def main(default_path: Path | None = None) -> None:
    """Parse CLI arguments and launch the dashboard on a repository.

    ``default_path`` is primarily for tests; when omitted the current working
    directory is used.
    """
    args = build_parser().parse_args()

    configure_logging(Path(args.log_file) if args.log_file else default_log_path())

    if default_path is None:
        default_path = Path.cwd()
    path = Path(args.path or default_path)
    if not path.exists():
        raise SystemExit(f"Path not found: {path}")

    settings = load_settings()
    theme_name = settings.theme
    if args.theme is not None:
        theme_name = args.theme
        save_theme_name(args.theme)
    theme = resolve_theme(theme_name, no_color=args.no_color)

    if not (sys.stdin.isatty() and sys.stdout.isatty()):
        raise SystemExit("lazystatus needs an interactive terminal.")

    try:
        session = Session.open(path, flash_seconds=settings.flash_seconds)
    except GitError as exc:
        raise SystemExit(str(exc)) from exc

    try:
        terminal = TerminalController(sys.stdin.fileno(), sys.stdout.fileno())
    except termios.error as exc:
        raise SystemExit(f"Cannot control terminal: {exc}") from exc

    timing = RuntimeLoopTiming(
        debounce_seconds=settings.debounce_seconds,
        poll_interval_seconds=settings.poll_interval_seconds,
    )
    run_app(session, terminal, theme, timing, use_polling=args.poll)


if __name__ == "__main__":
    main()
