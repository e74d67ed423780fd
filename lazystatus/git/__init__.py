"""Git engine adapter, status classifier and diff materializer."""

from .diff import materialize, materialize_untracked, parse_patch
from .repository import GitCommandError, GitError, GitRepository, RepositoryError
from .status import classify, classify_records
from .types import DiffContent, DiffContentKind, FileEntry, FileStatus, Section

__all__ = [
    "DiffContent",
    "DiffContentKind",
    "FileEntry",
    "FileStatus",
    "GitCommandError",
    "GitError",
    "GitRepository",
    "RepositoryError",
    "Section",
    "classify",
    "classify_records",
    "materialize",
    "materialize_untracked",
    "parse_patch",
]
