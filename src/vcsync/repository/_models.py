# ruff: noqa: TC003  # datetime and Path needed at runtime for dataclass fields
"""Repository models.

This module defines the value objects returned by repository operations.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from vcsync.sync._models import SyncResult


@dataclass(frozen=True, slots=True)
class Identity:
    """Name and email recorded on a commit.

    Attributes:
        name: Display name.
        email: Email address.
    """

    name: str
    email: str

    def __str__(self) -> str:
        return f"{self.name} <{self.email}>"


@dataclass(frozen=True, slots=True)
class CommitResult:
    """Result of a commit operation.

    Attributes:
        sha: Commit SHA hex string. For a save that changed nothing this is
            the unchanged HEAD.
        paths: Tracked paths included in the commit.
        no_changes: True if the content matched HEAD and nothing was committed.
        sync: Outcome of the remote sync triggered by the commit, or None if
            no sync ran.
    """

    sha: str
    paths: tuple[str, ...]
    no_changes: bool = False
    sync: SyncResult | None = None


@dataclass(frozen=True, slots=True)
class CommitInfo:
    """Information about a single commit.

    Attributes:
        sha: Full 40-character commit SHA hex string.
        message: Complete commit message (subject + body).
        author_name: Author name from commit.
        author_email: Author email from commit.
        timestamp: Commit timestamp as UTC datetime.
        parent_shas: SHA hex strings of parent commits (empty tuple for the
            initial commit).
    """

    sha: str
    message: str
    author_name: str
    author_email: str
    timestamp: datetime
    parent_shas: tuple[str, ...] = ()

    @property
    def short_sha(self) -> str:
        """Return the first 8 characters of the SHA."""
        return self.sha[:8]

    @property
    def subject(self) -> str:
        """Return the first line of the commit message."""
        return self.message.split("\n", 1)[0]


@dataclass(frozen=True, slots=True)
class RepositoryStats:
    """Summary of one entity repository.

    Attributes:
        entity_id: The owning entity.
        path: Repository directory.
        head: Current HEAD SHA, or None for an empty repository.
        branch: Checked-out branch, or None when HEAD is detached.
        commit_count: Number of commits reachable from HEAD.
        tracked_files: Number of files in the index.
        has_remote: Whether a remote is configured.
    """

    entity_id: str
    path: Path
    head: str | None
    branch: str | None
    commit_count: int
    tracked_files: int
    has_remote: bool
