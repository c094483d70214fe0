"""Entity-level facade over the repository, sync and provider components.

VersionStore wires the components from a Config and exposes the
operations callers need, addressed by entity id. AsyncVersionStore offers
the same operations as coroutines for async services.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import TYPE_CHECKING, ParamSpec, TypeVar

import anyio.to_thread

from vcsync.config import Config
from vcsync.provider import RemoteProvisioner
from vcsync.repository import (
    HistoryReader,
    Identity,
    RepositoryManager,
    VersionWriter,
)
from vcsync.sync import RemoteSynchronizer
from vcsync.utils import create_logger

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping
    from types import TracebackType
    from typing import Self

    from structlog.typing import FilteringBoundLogger

    from vcsync.provider import RemoteInfo
    from vcsync.repository import (
        CommitInfo,
        CommitResult,
        Content,
        RepositoryHandle,
        RepositoryStats,
    )
    from vcsync.sync import SyncResult

P = ParamSpec("P")
R = TypeVar("R")


@dataclass(frozen=True, slots=True)
class VersionEntry:
    """A commit numbered the way the metadata store numbers versions.

    Attributes:
        number: 1 for the oldest commit touching the path, counting up.
        commit: The commit.
    """

    number: int
    commit: CommitInfo


class VersionStore:
    """Versioned content storage for platform entities.

    Example:
        >>> with VersionStore.from_config(Config.load()) as store:
        ...     result = store.save("project-42", "docs/spec.md", "# Spec", "Add spec")
        ...     store.read("project-42", "docs/spec.md", result.sha)
        b'# Spec'
    """

    def __init__(
        self,
        manager: RepositoryManager,
        writer: VersionWriter,
        reader: HistoryReader,
        synchronizer: RemoteSynchronizer,
        provisioner: RemoteProvisioner,
    ) -> None:
        self._manager: RepositoryManager = manager
        self._writer: VersionWriter = writer
        self._reader: HistoryReader = reader
        self._synchronizer: RemoteSynchronizer = synchronizer
        self._provisioner: RemoteProvisioner = provisioner

    @classmethod
    def from_config(
        cls,
        config: Config | None = None,
        *,
        logger: FilteringBoundLogger | None = None,
    ) -> Self:
        """Build a store and its components from configuration.

        Args:
            config: Configuration; defaults are used if omitted.
            logger: Logger; built from the logging section if omitted.

        Returns:
            A ready store.
        """
        config = config or Config.from_dict({})
        logger = logger or create_logger(
            level=config.logging.level.value,
            log_format="json" if config.logging.format.value == "json" else "text",
            log_file=config.logging.file,
        )

        manager = RepositoryManager(
            config.storage_root,
            identity=Identity(name=config.identity.name, email=config.identity.email),
            default_branch=config.git.default_branch,
            timeout=config.git.timeout_seconds,
            registry_size=config.storage.registry_size,
            logger=logger,
        )
        synchronizer = RemoteSynchronizer(
            default_branch=config.git.default_branch,
            secondary_branch=config.git.secondary_branch,
            remote_name=config.git.remote_name,
            network_timeout=config.git.network_timeout_seconds,
            logger=logger,
        )
        writer = VersionWriter(
            manager,
            synchronizer=synchronizer,
            auto_push=config.git.auto_push,
            logger=logger,
        )
        provisioner = RemoteProvisioner(
            synchronizer,
            api_url=config.provider.api_url,
            timeout=config.provider.timeout_seconds,
            logger=logger,
        )
        return cls(manager, writer, HistoryReader(manager), synchronizer, provisioner)

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    @property
    def manager(self) -> RepositoryManager:
        """Return the repository manager."""
        return self._manager

    def close(self) -> None:
        """Close every open repository handle."""
        self._manager.close()

    # =========================================================================
    # Repository
    # =========================================================================

    def repository(self, entity_id: str) -> RepositoryHandle:
        """Return the entity's repository, creating it on first use."""
        return self._manager.ensure_repository(entity_id)

    def exists(self, entity_id: str) -> bool:
        """Return True if the entity already has a repository."""
        return self._manager.repository_exists(entity_id)

    def stats(self, entity_id: str) -> RepositoryStats:
        """Return a summary of the entity's repository."""
        return self._reader.stats(self.repository(entity_id))

    # =========================================================================
    # Writes
    # =========================================================================

    def save(
        self,
        entity_id: str,
        path: str,
        content: Content,
        message: str,
        author: Identity | None = None,
    ) -> CommitResult:
        """Commit new content for one tracked path. See VersionWriter.commit()."""
        return self._writer.commit(self.repository(entity_id), path, content, message, author)

    def save_many(
        self,
        entity_id: str,
        files: Mapping[str, Content],
        message: str,
        author: Identity | None = None,
    ) -> CommitResult:
        """Commit several tracked paths at once. See VersionWriter.commit_files()."""
        return self._writer.commit_files(self.repository(entity_id), files, message, author)

    def remove(
        self,
        entity_id: str,
        path: str,
        message: str,
        author: Identity | None = None,
    ) -> CommitResult:
        """Delete a tracked path and commit. See VersionWriter.delete()."""
        return self._writer.delete(self.repository(entity_id), path, message, author)

    # =========================================================================
    # Reads
    # =========================================================================

    def history(self, entity_id: str, path: str) -> list[CommitInfo]:
        """Return commits touching a path, newest first."""
        return self._reader.log(self.repository(entity_id), path)

    def versions(self, entity_id: str, path: str) -> list[VersionEntry]:
        """Return the path's history numbered oldest = 1, newest first."""
        commits = self.history(entity_id, path)
        total = len(commits)
        return [VersionEntry(number=total - i, commit=c) for i, c in enumerate(commits)]

    def read(self, entity_id: str, path: str, commit: str | None = None) -> bytes:
        """Return a path's content at a commit (HEAD if omitted)."""
        return self._reader.read_at(self.repository(entity_id), path, commit)

    def diff(self, entity_id: str, path: str, from_commit: str, to_commit: str) -> str:
        """Return the unified diff of a path between two commits."""
        return self._reader.diff(self.repository(entity_id), path, from_commit, to_commit)

    # =========================================================================
    # Remote
    # =========================================================================

    def sync(self, entity_id: str) -> SyncResult:
        """Push the entity's commits to its remote."""
        return self._synchronizer.sync(self.repository(entity_id))

    def attach_remote(
        self,
        entity_id: str,
        token: str,
        name: str,
        existing_url: str | None = None,
    ) -> RemoteInfo:
        """Create or link a hosted remote. See RemoteProvisioner.attach()."""
        return self._provisioner.attach(self.repository(entity_id), token, name, existing_url)


class AsyncVersionStore:
    """VersionStore for async callers.

    Each call runs the blocking git work in a worker thread, so the event
    loop stays responsive. Per-repository locking still applies.

    Example:
        >>> store = AsyncVersionStore(VersionStore.from_config())
        >>> result = await store.save("project-42", "notes.md", "hi", "Add notes")
    """

    def __init__(self, store: VersionStore) -> None:
        self._store: VersionStore = store

    @property
    def sync_store(self) -> VersionStore:
        """Return the wrapped synchronous store."""
        return self._store

    async def _run(self, func: Callable[P, R], *args: P.args, **kwargs: P.kwargs) -> R:
        return await anyio.to_thread.run_sync(partial(func, *args, **kwargs))

    async def save(
        self,
        entity_id: str,
        path: str,
        content: Content,
        message: str,
        author: Identity | None = None,
    ) -> CommitResult:
        return await self._run(self._store.save, entity_id, path, content, message, author)

    async def save_many(
        self,
        entity_id: str,
        files: Mapping[str, Content],
        message: str,
        author: Identity | None = None,
    ) -> CommitResult:
        return await self._run(self._store.save_many, entity_id, files, message, author)

    async def remove(
        self,
        entity_id: str,
        path: str,
        message: str,
        author: Identity | None = None,
    ) -> CommitResult:
        return await self._run(self._store.remove, entity_id, path, message, author)

    async def history(self, entity_id: str, path: str) -> list[CommitInfo]:
        return await self._run(self._store.history, entity_id, path)

    async def versions(self, entity_id: str, path: str) -> list[VersionEntry]:
        return await self._run(self._store.versions, entity_id, path)

    async def read(self, entity_id: str, path: str, commit: str | None = None) -> bytes:
        return await self._run(self._store.read, entity_id, path, commit)

    async def diff(self, entity_id: str, path: str, from_commit: str, to_commit: str) -> str:
        return await self._run(self._store.diff, entity_id, path, from_commit, to_commit)

    async def sync(self, entity_id: str) -> SyncResult:
        return await self._run(self._store.sync, entity_id)

    async def stats(self, entity_id: str) -> RepositoryStats:
        return await self._run(self._store.stats, entity_id)

    async def attach_remote(
        self,
        entity_id: str,
        token: str,
        name: str,
        existing_url: str | None = None,
    ) -> RemoteInfo:
        return await self._run(self._store.attach_remote, entity_id, token, name, existing_url)

    async def aclose(self) -> None:
        """Close the wrapped store."""
        await self._run(self._store.close)
