"""Local entity repositories.

This package provides the local half of the engine: repository lifecycle
(RepositoryManager), commit writing (VersionWriter) and history retrieval
(HistoryReader). Each entity owns one git repository under the storage root.

Example:
    >>> from vcsync.repository import HistoryReader, RepositoryManager, VersionWriter
    >>> manager = RepositoryManager(Path("/data/repositories"))
    >>> handle = manager.ensure_repository("project-42")
    >>> sha = VersionWriter(manager).commit(handle, "notes.md", "hi", "Add notes").sha
    >>> HistoryReader(manager).read_at(handle, "notes.md", sha)
    b'hi'
"""

from vcsync.repository._git import GitOutput, GitRunner
from vcsync.repository._history import HistoryReader
from vcsync.repository._lock import RepositoryLock
from vcsync.repository._manager import (
    DEFAULT_IDENTITY,
    GITIGNORE_PATTERNS,
    INITIAL_COMMIT_MESSAGE,
    RepositoryHandle,
    RepositoryManager,
)
from vcsync.repository._models import CommitInfo, CommitResult, Identity, RepositoryStats
from vcsync.repository._paths import normalize_tracked_path, validate_entity_id
from vcsync.repository._writer import Content, VersionWriter

__all__ = [
    "DEFAULT_IDENTITY",
    "GITIGNORE_PATTERNS",
    "INITIAL_COMMIT_MESSAGE",
    "CommitInfo",
    "CommitResult",
    "Content",
    "GitOutput",
    "GitRunner",
    "HistoryReader",
    "Identity",
    "RepositoryHandle",
    "RepositoryLock",
    "RepositoryManager",
    "RepositoryStats",
    "VersionWriter",
    "normalize_tracked_path",
    "validate_entity_id",
]
