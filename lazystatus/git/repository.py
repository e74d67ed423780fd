"""Thin adapter over the ``git`` command-line program.

This is the only module that spawns git. Query helpers are tolerant (they
return ``None`` when git fails) while index and worktree mutations raise
``GitCommandError`` so callers can surface the failure.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

from .types import BranchInfo, Section, StatusRecord

logger = logging.getLogger(__name__)

QUERY_TIMEOUT_SECONDS = 10.0
MUTATION_TIMEOUT_SECONDS = 30.0
SHORT_HASH_LENGTH = 7


class GitError(Exception):
    """Base class for git adapter failures."""


class RepositoryError(GitError):
    """The target path cannot be used as a working-tree repository."""


class GitCommandError(GitError):
    """A git invocation exited non-zero or could not be run."""

    def __init__(self, args: list[str], returncode: int | None, stderr: str) -> None:
        self.git_args = list(args)
        self.returncode = returncode
        self.stderr = stderr.strip()
        detail = self.stderr or f"git {' '.join(args[:2])} failed"
        super().__init__(detail)


@dataclass(frozen=True)
class NumstatRow:
    """Insertion/deletion counts for one delta; ``None`` counts mean binary."""

    added: int | None
    deleted: int | None

    @property
    def is_binary(self) -> bool:
        return self.added is None or self.deleted is None


def _run_git(
    cwd: Path,
    args: list[str],
    timeout_seconds: float = QUERY_TIMEOUT_SECONDS,
) -> subprocess.CompletedProcess[str] | None:
    try:
        return subprocess.run(
            ["git", "-C", str(cwd), *args],
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="surrogateescape",
            check=False,
            timeout=timeout_seconds,
        )
    except (OSError, subprocess.SubprocessError) as exc:
        logger.debug("git %s could not run: %s", " ".join(args[:2]), exc)
        return None


def _run_git_bytes(
    cwd: Path,
    args: list[str],
    timeout_seconds: float = QUERY_TIMEOUT_SECONDS,
) -> subprocess.CompletedProcess[bytes] | None:
    try:
        return subprocess.run(
            ["git", "-C", str(cwd), *args],
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            check=False,
            timeout=timeout_seconds,
        )
    except (OSError, subprocess.SubprocessError) as exc:
        logger.debug("git %s could not run: %s", " ".join(args[:2]), exc)
        return None


def _run_git_checked(cwd: Path, args: list[str]) -> str:
    """Run a mutating git command, raising ``GitCommandError`` on any failure."""
    try:
        proc = subprocess.run(
            ["git", "-C", str(cwd), *args],
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=False,
            timeout=MUTATION_TIMEOUT_SECONDS,
        )
    except FileNotFoundError as exc:
        raise GitCommandError(args, None, "git is not installed or not on PATH") from exc
    except subprocess.TimeoutExpired as exc:
        raise GitCommandError(args, None, f"git timed out after {MUTATION_TIMEOUT_SECONDS:.0f}s") from exc
    except OSError as exc:
        raise GitCommandError(args, None, str(exc)) from exc
    if proc.returncode != 0:
        raise GitCommandError(args, proc.returncode, proc.stderr)
    return proc.stdout


def _pathspec(path: str, old_path: str | None = None) -> list[str]:
    paths = ["--", path]
    if old_path and old_path != path:
        paths.append(old_path)
    return paths


def parse_porcelain_v2(output: str) -> list[StatusRecord]:
    """Parse ``git status --porcelain=v2 -z`` output into raw status records."""
    records: list[StatusRecord] = []
    tokens = output.split("\0")
    index = 0
    while index < len(tokens):
        token = tokens[index]
        index += 1
        if not token:
            continue

        kind = token[0]
        if kind == "1":
            fields = token.split(" ", 8)
            if len(fields) < 9:
                continue
            xy, sub = fields[1], fields[2]
            records.append(
                StatusRecord(
                    path=fields[8],
                    index=xy[0],
                    worktree=xy[1],
                    is_submodule=sub.startswith("S"),
                )
            )
        elif kind == "2":
            fields = token.split(" ", 9)
            if len(fields) < 10:
                continue
            # Rename/copy records carry the source path in the next token.
            orig_path = tokens[index] if index < len(tokens) else None
            index += 1
            xy, sub = fields[1], fields[2]
            records.append(
                StatusRecord(
                    path=fields[9],
                    index=xy[0],
                    worktree=xy[1],
                    orig_path=orig_path or None,
                    is_submodule=sub.startswith("S"),
                )
            )
        elif kind == "u":
            fields = token.split(" ", 10)
            if len(fields) < 11:
                continue
            xy = fields[1]
            records.append(
                StatusRecord(
                    path=fields[10],
                    index=xy[0],
                    worktree=xy[1],
                    is_conflict=True,
                )
            )
        elif kind == "?":
            records.append(StatusRecord(path=token[2:], index="?", worktree="?", is_untracked=True))
        # "!" ignored entries and "#" headers are not part of the model.

    return records


def parse_numstat(output: str) -> list[NumstatRow]:
    """Parse ``git diff --numstat -z`` output."""
    rows: list[NumstatRow] = []
    tokens = output.split("\0")
    index = 0
    while index < len(tokens):
        token = tokens[index]
        index += 1
        if not token:
            continue
        parts = token.split("\t", 2)
        if len(parts) < 3:
            continue
        added_text, deleted_text, path_text = parts
        if path_text == "":
            # Renames list "<old>\0<new>\0" after an empty path field.
            index += 2
        added = int(added_text) if added_text.isdigit() else None
        deleted = int(deleted_text) if deleted_text.isdigit() else None
        rows.append(NumstatRow(added=added, deleted=deleted))
    return rows


class GitRepository:
    """Working-tree repository handle backed by the git CLI."""

    def __init__(self, root: Path, git_dir: Path) -> None:
        self.root = root
        self.git_dir = git_dir

    @classmethod
    def open(cls, path: Path) -> GitRepository:
        """Open the repository containing ``path``.

        Raises ``RepositoryError`` when git is missing, ``path`` is not inside
        a repository, or the repository has no working directory.
        """
        target = Path(path).expanduser()
        if not target.exists():
            raise RepositoryError(f"Path not found: {target}")
        if shutil.which("git") is None:
            raise RepositoryError("git is not installed or not on PATH")
        probe_dir = target if target.is_dir() else target.parent

        proc = _run_git(probe_dir, ["rev-parse", "--is-bare-repository", "--absolute-git-dir"])
        if proc is None or proc.returncode != 0:
            raise RepositoryError(f"Not a git repository: {target}")
        lines = [line.strip() for line in proc.stdout.splitlines() if line.strip()]
        if len(lines) < 2:
            raise RepositoryError(f"Not a git repository: {target}")
        if lines[0] == "true":
            raise RepositoryError("Repository has no working directory")
        git_dir = Path(lines[1]).resolve()

        top = _run_git(probe_dir, ["rev-parse", "--show-toplevel"])
        if top is None or top.returncode != 0 or not top.stdout.strip():
            raise RepositoryError("Repository has no working directory")
        root = Path(top.stdout.strip()).resolve()
        return cls(root, git_dir)

    def branch_info(self) -> BranchInfo:
        ref = _run_git(self.root, ["symbolic-ref", "-q", "--short", "HEAD"])
        if ref is not None and ref.returncode == 0 and ref.stdout.strip():
            return BranchInfo.branch(ref.stdout.strip())
        head = _run_git(self.root, ["rev-parse", "--verify", "-q", "HEAD"])
        if head is not None and head.returncode == 0 and head.stdout.strip():
            return BranchInfo.detached(head.stdout.strip()[:SHORT_HASH_LENGTH])
        return BranchInfo.detached("unknown")

    def has_head(self) -> bool:
        proc = _run_git(self.root, ["rev-parse", "--verify", "-q", "HEAD"])
        return proc is not None and proc.returncode == 0

    def status_records(self) -> list[StatusRecord]:
        """Enumerate changed, untracked and conflicted paths.

        Raises ``GitCommandError`` since an unreadable status leaves nothing
        sensible to show.
        """
        args = ["--no-optional-locks", "status", "--porcelain=v2", "-z", "--untracked-files=all"]
        proc = _run_git(self.root, args)
        if proc is None:
            raise GitCommandError(args, None, "git status could not be run")
        if proc.returncode != 0:
            raise GitCommandError(args, proc.returncode, proc.stderr)
        return parse_porcelain_v2(proc.stdout)

    def numstat(self, path: str, old_path: str | None, section: Section) -> list[NumstatRow] | None:
        args = ["--literal-pathspecs", "diff", "--numstat", "-z", "-M", "--no-ext-diff"]
        if section is Section.STAGED:
            args.append("--cached")
        args.extend(_pathspec(path, old_path))
        proc = _run_git(self.root, args)
        if proc is None or proc.returncode != 0:
            return None
        return parse_numstat(proc.stdout)

    def patch(self, path: str, old_path: str | None, section: Section) -> bytes | None:
        """Return raw single-path patch bytes, undecoded."""
        args = ["--literal-pathspecs", "diff", "--no-color", "--no-ext-diff", "-M"]
        if section is Section.STAGED:
            args.append("--cached")
        args.extend(_pathspec(path, old_path))
        proc = _run_git_bytes(self.root, args)
        if proc is None or proc.returncode != 0:
            return None
        return proc.stdout

    def read_worktree_file(self, path: str) -> bytes | None:
        try:
            return (self.root / path).read_bytes()
        except OSError:
            return None

    def stage(self, paths: list[str]) -> None:
        """Add worktree content (or removal) of ``paths`` to the index.

        Renames are best-effort: only the given paths are staged, an old path
        is not staged alongside its new name.
        """
        if not paths:
            return
        _run_git_checked(self.root, ["--literal-pathspecs", "add", "--all", "--", *paths])
        logger.debug("staged %d path(s)", len(paths))

    def unstage(self, paths: list[str]) -> None:
        """Reset index entries for ``paths`` to HEAD, dropping ones HEAD lacks."""
        if not paths:
            return
        if self.has_head():
            _run_git_checked(self.root, ["--literal-pathspecs", "restore", "--staged", "--", *paths])
        else:
            _run_git_checked(
                self.root,
                ["--literal-pathspecs", "rm", "--cached", "-r", "-q", "--ignore-unmatch", "--", *paths],
            )
        logger.debug("unstaged %d path(s)", len(paths))

    def restore_worktree(self, paths: list[str]) -> None:
        """Overwrite worktree files with their index content."""
        if not paths:
            return
        _run_git_checked(self.root, ["--literal-pathspecs", "restore", "--worktree", "--", *paths])
        logger.debug("restored %d path(s) from index", len(paths))

    def delete_untracked(self, path: str) -> None:
        """Remove an untracked file from disk.

        A path that is already gone counts as removed; other ``OSError``s
        propagate.
        """
        target = self.root / path
        try:
            if target.is_dir() and not target.is_symlink():
                shutil.rmtree(target)
            else:
                target.unlink()
        except FileNotFoundError:
            logger.debug("untracked %s already gone", path)
            return
        logger.debug("deleted untracked %s", path)


__all__ = [
    "GitCommandError",
    "GitError",
    "GitRepository",
    "NumstatRow",
    "RepositoryError",
    "parse_numstat",
    "parse_porcelain_v2",
]
