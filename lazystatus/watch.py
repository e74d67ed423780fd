"""Change detection for the working tree and git metadata.

A background thread recomputes cheap stat-based digests over the git dir and
the working tree and publishes an opaque signal whenever either changes.
The main loop drains signals without blocking and debounces refreshes.
"""

from __future__ import annotations

import hashlib
import logging
import os
import threading
from dataclasses import dataclass
from pathlib import Path
from queue import Empty, Queue

logger = logging.getLogger(__name__)

DEFAULT_WATCH_INTERVAL_SECONDS = 0.5
MAX_WORKTREE_ENTRIES = 20_000
CHANGED = "changed"
DISCONNECTED = "disconnected"


def _update_digest(digest, token: str) -> None:
    digest.update(token.encode("utf-8", errors="surrogateescape"))
    digest.update(b"\0")


def _stat_token(path: Path) -> str:
    try:
        st = path.stat()
    except FileNotFoundError:
        return "missing"
    except OSError:
        return "error"
    return f"{st.st_mtime_ns}:{st.st_size}:{st.st_mode}"


def build_git_signature(git_dir: Path) -> str:
    """Digest of the git control files that affect status and branch display."""
    digest = hashlib.blake2b(digest_size=20)
    head_path = git_dir / "HEAD"
    for label in ("index", "HEAD", "MERGE_HEAD", "CHERRY_PICK_HEAD", "REBASE_HEAD"):
        _update_digest(digest, f"{label}:{_stat_token(git_dir / label)}")

    try:
        head_text = head_path.read_text(encoding="utf-8", errors="replace").strip()
    except OSError:
        head_text = ""
    _update_digest(digest, f"head:{head_text}")
    if head_text.startswith("ref: "):
        ref_name = head_text[5:].strip()
        _update_digest(digest, f"ref:{_stat_token(git_dir / ref_name)}")
    _update_digest(digest, f"packed_refs:{_stat_token(git_dir / 'packed-refs')}")
    return digest.hexdigest()


def build_worktree_signature(root: Path, max_entries: int = MAX_WORKTREE_ENTRIES) -> str:
    """Digest of path, mtime, size and mode for files under ``root``.

    ``.git`` directories are skipped. Walking stops after ``max_entries``
    entries so very large trees stay cheap to poll.
    """
    digest = hashlib.blake2b(digest_size=20)
    seen = 0
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(name for name in dirnames if name != ".git")
        rel_dir = os.path.relpath(dirpath, root)
        _update_digest(digest, f"dir:{rel_dir}:{_stat_token(Path(dirpath))}")
        for name in sorted(filenames):
            seen += 1
            if seen > max_entries:
                _update_digest(digest, "truncated")
                return digest.hexdigest()
            try:
                st = os.lstat(os.path.join(dirpath, name))
            except OSError:
                _update_digest(digest, f"file:{rel_dir}/{name}:error")
                continue
            _update_digest(digest, f"file:{rel_dir}/{name}:{st.st_mtime_ns}:{st.st_size}:{st.st_mode}")
    return digest.hexdigest()


def build_repository_signature(repo_root: Path, git_dir: Path) -> str:
    return build_git_signature(git_dir) + build_worktree_signature(repo_root)


@dataclass(frozen=True)
class WatchDrain:
    """Result of one non-blocking drain of the watcher channel."""

    signals: int
    disconnected: bool


class RepositoryWatcher:
    """Polls repository signatures on a daemon thread and queues change signals."""

    def __init__(
        self,
        repo_root: Path,
        git_dir: Path,
        interval: float = DEFAULT_WATCH_INTERVAL_SECONDS,
    ) -> None:
        self.repo_root = repo_root
        self.git_dir = git_dir
        self.interval = interval
        self._events: Queue[str] = Queue()
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._signature = ""

    def start(self) -> None:
        """Take the baseline signature and start the thread.

        Raises ``OSError`` when the repository cannot be scanned.
        """
        if not self.repo_root.is_dir():
            raise OSError(f"cannot watch {self.repo_root}: not a directory")
        self._signature = build_repository_signature(self.repo_root, self.git_dir)
        self._thread = threading.Thread(target=self._run, name="lazystatus-watch", daemon=True)
        self._thread.start()
        logger.info("watching %s every %.2fs", self.repo_root, self.interval)

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            try:
                signature = build_repository_signature(self.repo_root, self.git_dir)
            except Exception:
                logger.exception("repository watcher stopped")
                self._events.put(DISCONNECTED)
                return
            if signature != self._signature:
                self._signature = signature
                self._events.put(CHANGED)

    def drain(self) -> WatchDrain:
        signals = 0
        disconnected = False
        while True:
            try:
                event = self._events.get_nowait()
            except Empty:
                break
            if event == DISCONNECTED:
                disconnected = True
            else:
                signals += 1
        return WatchDrain(signals=signals, disconnected=disconnected)

    def stop(self, timeout: float = 2.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None


__all__ = [
    "RepositoryWatcher",
    "WatchDrain",
    "build_git_signature",
    "build_repository_signature",
    "build_worktree_signature",
]
