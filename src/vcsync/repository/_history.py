"""History reader: commit log, point-in-time content and diffs."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Final

from git.exc import GitCommandError

from vcsync.exceptions import ContentNotFoundError, RepositoryError
from vcsync.repository._manager import RepositoryHandle
from vcsync.repository._models import CommitInfo, RepositoryStats
from vcsync.repository._paths import normalize_tracked_path

if TYPE_CHECKING:
    from vcsync.repository._git import GitOutput
    from vcsync.repository._manager import RepositoryManager

# Unit and record separators keep log parsing safe for any message text.
_FIELD_SEP: Final = "\x1f"
_RECORD_SEP: Final = "\x1e"
_LOG_FORMAT: Final = _FIELD_SEP.join(("%H", "%P", "%an", "%ae", "%ct", "%B")) + _RECORD_SEP

_TREE_ENTRY_FIELDS: Final = 3


class HistoryReader:
    """Read-only access to the version history of tracked paths.

    Readers hold the repository lock in shared mode, so any number of reads
    run together while commits and syncs wait for them.

    Example:
        >>> reader = HistoryReader(manager)
        >>> [c.subject for c in reader.log(handle, "docs/spec.md")]
        ['Edit spec', 'Add spec']
    """

    def __init__(self, manager: RepositoryManager) -> None:
        self._manager: RepositoryManager = manager

    def _resolve(self, handle: RepositoryHandle | str) -> RepositoryHandle:
        if isinstance(handle, RepositoryHandle):
            return handle
        return self._manager.ensure_repository(handle)

    # =========================================================================
    # Public API
    # =========================================================================

    def log(self, handle: RepositoryHandle | str, path: str) -> list[CommitInfo]:
        """Return the commits that touched a path, newest first.

        Renames are followed for file paths. A path with no history yields
        an empty list rather than an error.

        Args:
            handle: Repository handle, or an entity id to resolve.
            path: Tracked path.

        Returns:
            Commits in reverse chronological order.
        """
        handle = self._resolve(handle)
        tracked_path = normalize_tracked_path(path)

        with handle.lock.read():
            args = ["log", f"--format={_LOG_FORMAT}"]
            # --follow only applies to a single file
            if self._object_type(handle, "HEAD", tracked_path) != "tree":
                args.append("--follow")
            output = self._check(handle, *args, "--", tracked_path)

        return _parse_log(output.stdout.decode("utf-8", errors="replace"))

    def read_at(
        self,
        handle: RepositoryHandle | str,
        path: str,
        commit: str | None = None,
    ) -> bytes:
        """Return the content of a path as of a commit.

        Args:
            handle: Repository handle, or an entity id to resolve.
            path: Tracked path of a file.
            commit: Commit SHA or revision; None reads HEAD.

        Returns:
            The file content.

        Raises:
            ContentNotFoundError: If the commit is unknown or the path was
                not a file at that commit.
        """
        handle = self._resolve(handle)
        tracked_path = normalize_tracked_path(path)
        revision = commit if commit is not None else "HEAD"

        with handle.lock.read():
            sha = self._resolve_commit(handle, revision, tracked_path)
            entry = self._tree_entry(handle, sha, tracked_path)
            if entry is None or entry[1] != "blob":
                msg = f"{tracked_path} does not exist at {revision}"
                raise ContentNotFoundError(msg, path=tracked_path, commit=revision)
            return self._check(handle, "cat-file", "blob", entry[2]).stdout

    def diff(
        self,
        handle: RepositoryHandle | str,
        path: str,
        from_commit: str,
        to_commit: str,
    ) -> str:
        """Return a unified diff of a path between two commits.

        Args:
            handle: Repository handle, or an entity id to resolve.
            path: Tracked path.
            from_commit: Older commit SHA or revision.
            to_commit: Newer commit SHA or revision.

        Returns:
            The diff text; an empty string when the content is identical.

        Raises:
            ContentNotFoundError: If either commit is unknown or the path
                exists at neither commit.
        """
        handle = self._resolve(handle)
        tracked_path = normalize_tracked_path(path)

        with handle.lock.read():
            old = self._resolve_commit(handle, from_commit, tracked_path)
            new = self._resolve_commit(handle, to_commit, tracked_path)
            if (
                self._tree_entry(handle, old, tracked_path) is None
                and self._tree_entry(handle, new, tracked_path) is None
            ):
                msg = f"{tracked_path} exists at neither {from_commit} nor {to_commit}"
                raise ContentNotFoundError(msg, path=tracked_path, commit=from_commit)
            if old == new:
                return ""
            output = self._check(
                handle,
                "diff",
                "--no-color",
                "--no-ext-diff",
                "--no-textconv",
                old,
                new,
                "--",
                tracked_path,
            )

        return output.stdout.decode("utf-8", errors="replace")

    def head(self, handle: RepositoryHandle | str) -> str | None:
        """Return the HEAD commit SHA, or None for an empty repository."""
        handle = self._resolve(handle)
        with handle.lock.read():
            output = handle.git.run("rev-parse", "--verify", "--quiet", "HEAD")
        return output.text if output.ok else None

    def stats(self, handle: RepositoryHandle | str) -> RepositoryStats:
        """Return a summary of the repository's state."""
        handle = self._resolve(handle)
        with handle.lock.read():
            head = handle.git.run("rev-parse", "--verify", "--quiet", "HEAD")
            branch = handle.git.run("symbolic-ref", "--quiet", "--short", "HEAD")
            count = handle.git.run("rev-list", "--count", "HEAD") if head.ok else None
            files = self._check(handle, "ls-files", "-z")
            remotes = self._check(handle, "remote")

        return RepositoryStats(
            entity_id=handle.entity_id,
            path=handle.path,
            head=head.text if head.ok else None,
            branch=branch.text if branch.ok else None,
            commit_count=int(count.text) if count is not None and count.ok else 0,
            tracked_files=len([f for f in files.stdout.split(b"\x00") if f]),
            has_remote=bool(remotes.text),
        )

    # =========================================================================
    # Internals
    # =========================================================================

    def _check(self, handle: RepositoryHandle, *args: str) -> GitOutput:
        try:
            return handle.git.check(*args)
        except GitCommandError as e:
            msg = f"git {args[0]} failed in {handle.entity_id!r}: {e}"
            raise RepositoryError(msg) from e

    def _resolve_commit(self, handle: RepositoryHandle, revision: str, path: str) -> str:
        if revision.startswith("-"):
            msg = f"Unknown commit: {revision}"
            raise ContentNotFoundError(msg, path=path, commit=revision)
        output = handle.git.run("rev-parse", "--verify", "--quiet", f"{revision}^{{commit}}")
        if not output.ok or not output.text:
            msg = f"Unknown commit: {revision}"
            raise ContentNotFoundError(msg, path=path, commit=revision)
        return output.text

    def _tree_entry(
        self, handle: RepositoryHandle, sha: str, path: str
    ) -> tuple[str, str, str] | None:
        """Return (mode, type, object) for a path at a commit, if present."""
        output = handle.git.run("ls-tree", "-z", sha, "--", path)
        if not output.ok:
            return None
        for record in output.stdout.split(b"\x00"):
            if not record:
                continue
            meta, _, name = record.decode("utf-8", errors="replace").partition("\t")
            fields = meta.split()
            if name == path and len(fields) == _TREE_ENTRY_FIELDS:
                return fields[0], fields[1], fields[2]
        return None

    def _object_type(self, handle: RepositoryHandle, revision: str, path: str) -> str | None:
        entry = self._tree_entry(handle, revision, path)
        return entry[1] if entry is not None else None


def _parse_log(raw: str) -> list[CommitInfo]:
    """Parse ``git log`` output produced with the record format above."""
    commits: list[CommitInfo] = []
    for chunk in raw.split(_RECORD_SEP):
        record = chunk.strip("\n")
        if not record:
            continue
        sha, parents, name, email, timestamp, message = record.split(_FIELD_SEP, 5)
        commits.append(
            CommitInfo(
                sha=sha,
                message=message.rstrip("\n"),
                author_name=name,
                author_email=email,
                timestamp=datetime.fromtimestamp(int(timestamp), tz=UTC),
                parent_shas=tuple(parents.split()),
            )
        )
    return commits
