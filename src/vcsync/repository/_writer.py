"""Version writer: write, stage and commit tracked content."""

from __future__ import annotations

import dataclasses
import time
from typing import TYPE_CHECKING, TypeAlias

from git.exc import GitCommandError

from vcsync.exceptions import (
    CommitError,
    ContentNotFoundError,
    GitTimeoutError,
    WriteError,
)
from vcsync.repository._manager import RepositoryHandle
from vcsync.repository._models import CommitResult, Identity
from vcsync.repository._paths import normalize_tracked_path, resolve_in_repository
from vcsync.utils import get_default_logger

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

    from structlog.typing import FilteringBoundLogger

    from vcsync.repository._git import GitOutput
    from vcsync.repository._manager import RepositoryManager
    from vcsync.sync import RemoteSynchronizer

Content: TypeAlias = bytes | str


def _encode(content: Content) -> bytes:
    return content.encode("utf-8") if isinstance(content, str) else content


class VersionWriter:
    """Commits tracked content to entity repositories.

    Each call stages exactly the paths it was given, so unrelated files in
    the working tree are never swept into a commit. Saving content that is
    byte-identical to HEAD is a successful no-op that returns the HEAD SHA.

    Commit timestamps strictly increase within a repository: a commit made
    in the same second as its parent is dated one second after it. History
    order therefore always agrees with timestamp order.

    If a synchronizer is attached and ``auto_push`` is set, every commit is
    followed by a best-effort remote sync. Its outcome is attached to the
    result and never turns a successful local commit into a failure.

    Example:
        >>> writer = VersionWriter(manager)
        >>> result = writer.commit(handle, "docs/spec.md", "# Spec", "Add spec")
        >>> result.no_changes
        False
    """

    def __init__(
        self,
        manager: RepositoryManager,
        *,
        synchronizer: RemoteSynchronizer | None = None,
        auto_push: bool = True,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the writer.

        Args:
            manager: Manager used to resolve entity ids and the platform identity.
            synchronizer: Optional synchronizer run after each commit.
            auto_push: Whether to sync after commits when a synchronizer is set.
            logger: Logger; a stderr logger is created if omitted.
        """
        self._manager: RepositoryManager = manager
        self._synchronizer: RemoteSynchronizer | None = synchronizer
        self._auto_push: bool = auto_push
        self._logger: FilteringBoundLogger = (logger or get_default_logger()).bind(
            component="writer"
        )

    # =========================================================================
    # Public API
    # =========================================================================

    def commit(
        self,
        handle: RepositoryHandle | str,
        path: str,
        content: Content,
        message: str,
        author: Identity | None = None,
    ) -> CommitResult:
        """Write one tracked path and commit it.

        Args:
            handle: Repository handle, or an entity id to resolve.
            path: Tracked path relative to the repository root.
            content: New content; str is encoded as UTF-8.
            message: Commit message, passed through unchanged.
            author: Commit author; the platform identity if omitted.

        Returns:
            The commit result. ``no_changes`` is True when the content
            already matched HEAD.

        Raises:
            PathViolationError: If the path is not a valid tracked path.
            WriteError: If the file cannot be written. Nothing is committed.
            CommitError: If staging or committing fails.
        """
        return self.commit_files(handle, {path: content}, message, author)

    def commit_files(
        self,
        handle: RepositoryHandle | str,
        files: Mapping[str, Content],
        message: str,
        author: Identity | None = None,
    ) -> CommitResult:
        """Write several tracked paths and commit them together.

        Args:
            handle: Repository handle, or an entity id to resolve.
            files: Mapping of tracked path to new content.
            message: Commit message, passed through unchanged.
            author: Commit author; the platform identity if omitted.

        Returns:
            The commit result.

        Raises:
            PathViolationError: If any path is not a valid tracked path.
            WriteError: If a file cannot be written. Nothing is committed.
            CommitError: If staging or committing fails.
        """
        if not files:
            msg = "commit_files() needs at least one file"
            raise ValueError(msg)

        handle = self._resolve(handle)
        normalized = {normalize_tracked_path(path): _encode(data) for path, data in files.items()}
        paths = tuple(normalized)

        with handle.lock.write():
            targets = {path: resolve_in_repository(handle.path, path) for path in paths}
            for path, data in normalized.items():
                self._write_file(targets[path], path, data)
            result = self._stage_and_commit(handle, paths, message, author, ("add", "--force"))

        return self._after_commit(handle, result)

    def delete(
        self,
        handle: RepositoryHandle | str,
        path: str,
        message: str,
        author: Identity | None = None,
    ) -> CommitResult:
        """Remove a tracked file or directory and commit the removal.

        Args:
            handle: Repository handle, or an entity id to resolve.
            path: Tracked path of a file or a content directory.
            message: Commit message, passed through unchanged.
            author: Commit author; the platform identity if omitted.

        Returns:
            The commit result.

        Raises:
            PathViolationError: If the path is not a valid tracked path.
            ContentNotFoundError: If nothing is tracked at the path.
            CommitError: If the removal or commit fails.
        """
        handle = self._resolve(handle)
        tracked_path = normalize_tracked_path(path)

        with handle.lock.write():
            listed = self._git(handle, (tracked_path,), "ls-files", "-z", "--", tracked_path)
            if not listed.stdout.strip(b"\x00"):
                msg = f"Path is not tracked in {handle.entity_id!r}: {tracked_path}"
                raise ContentNotFoundError(msg, path=tracked_path)
            result = self._stage_and_commit(
                handle, (tracked_path,), message, author, ("rm", "-r", "--force", "--quiet")
            )

        return self._after_commit(handle, result)

    # =========================================================================
    # Internals
    # =========================================================================

    def _resolve(self, handle: RepositoryHandle | str) -> RepositoryHandle:
        if isinstance(handle, RepositoryHandle):
            return handle
        return self._manager.ensure_repository(handle)

    def _write_file(self, target: Path, tracked_path: str, data: bytes) -> None:
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            _ = target.write_bytes(data)
        except OSError as e:
            msg = f"Failed to write {tracked_path}: {e}"
            raise WriteError(msg, path=tracked_path) from e

    def _git(
        self,
        handle: RepositoryHandle,
        paths: tuple[str, ...],
        *args: str,
        env: Mapping[str, str] | None = None,
    ) -> GitOutput:
        try:
            return handle.git.check(*args, env=env)
        except (GitCommandError, GitTimeoutError) as e:
            msg = f"git {args[0]} failed in {handle.entity_id!r}: {e}"
            raise CommitError(msg, paths=paths) from e

    def _stage_and_commit(
        self,
        handle: RepositoryHandle,
        paths: tuple[str, ...],
        message: str,
        author: Identity | None,
        stage_command: tuple[str, ...],
    ) -> CommitResult:
        head_before = self._head(handle, paths)
        try:
            _ = self._git(handle, paths, *stage_command, "--", *paths)

            staged = handle.git.run("diff", "--cached", "--quiet", "--", *paths)
            if staged.status == 0:
                self._logger.debug("commit_noop", entity_id=handle.entity_id, paths=list(paths))
                return CommitResult(sha=head_before, paths=paths, no_changes=True)

            _ = self._git(
                handle,
                paths,
                "commit",
                "--quiet",
                "--no-verify",
                "--allow-empty-message",
                "-m",
                message,
                "--",
                *paths,
                env=self._commit_env(handle, author),
            )
        except CommitError:
            self._unstage(handle, paths)
            raise

        sha = self._head(handle, paths)
        self._logger.info(
            "commit_created",
            entity_id=handle.entity_id,
            sha=sha,
            paths=list(paths),
            author=(author or self._manager.identity).email,
        )
        return CommitResult(sha=sha, paths=paths)

    def _head(self, handle: RepositoryHandle, paths: tuple[str, ...]) -> str:
        return self._git(handle, paths, "rev-parse", "--verify", "HEAD").text

    def _commit_env(self, handle: RepositoryHandle, author: Identity | None) -> dict[str, str]:
        """Build author, committer and date variables for one commit."""
        committer = self._manager.identity
        author = author or committer

        head_time = handle.git.run("show", "-s", "--format=%ct", "HEAD")
        previous = int(head_time.text) if head_time.ok and head_time.text.isdigit() else 0
        stamp = f"@{max(int(time.time()), previous + 1)} +0000"

        return {
            "GIT_AUTHOR_NAME": author.name,
            "GIT_AUTHOR_EMAIL": author.email,
            "GIT_AUTHOR_DATE": stamp,
            "GIT_COMMITTER_NAME": committer.name,
            "GIT_COMMITTER_EMAIL": committer.email,
            "GIT_COMMITTER_DATE": stamp,
        }

    def _unstage(self, handle: RepositoryHandle, paths: tuple[str, ...]) -> None:
        """Reset the index entries of a failed commit so nothing stays staged."""
        output = handle.git.run("reset", "--quiet", "HEAD", "--", *paths)
        if not output.ok:
            self._logger.warning(
                "unstage_failed",
                entity_id=handle.entity_id,
                paths=list(paths),
                stderr=output.stderr,
            )

    def _after_commit(self, handle: RepositoryHandle, result: CommitResult) -> CommitResult:
        if result.no_changes or self._synchronizer is None or not self._auto_push:
            return result

        sync = self._synchronizer.sync(handle)
        if not sync.ok and not sync.skipped_no_remote:
            self._logger.warning(
                "sync_failed_after_commit",
                entity_id=handle.entity_id,
                sha=result.sha,
                failure=str(sync.failure) if sync.failure else None,
                error=sync.error,
                detail="saved locally, not yet mirrored",
            )
        return dataclasses.replace(result, sync=sync)

