"""Repository lifecycle and handle registry.

RepositoryManager owns the storage root. It creates one git repository per
entity on first use, gives each a stable platform identity and a baseline
ignore file, and hands out RepositoryHandle objects from a bounded LRU
registry.
"""

from __future__ import annotations

import threading
import weakref
from collections import OrderedDict
from pathlib import Path
from typing import TYPE_CHECKING, Final

from git import Repo
from git.exc import GitCommandError, InvalidGitRepositoryError, NoSuchPathError

from vcsync.exceptions import GitTimeoutError, RepositoryInitError
from vcsync.repository._git import DEFAULT_TIMEOUT, GitRunner
from vcsync.repository._lock import RepositoryLock
from vcsync.repository._models import Identity
from vcsync.repository._paths import validate_entity_id
from vcsync.utils import get_default_logger

if TYPE_CHECKING:
    from types import TracebackType
    from typing import Self

    from structlog.typing import FilteringBoundLogger

DEFAULT_IDENTITY: Final = Identity(name="vcsync Platform", email="platform@vcsync.local")
DEFAULT_REGISTRY_SIZE: Final = 128
INITIAL_COMMIT_MESSAGE: Final = "Initial commit"
GITIGNORE_PATTERNS: Final[tuple[str, ...]] = (
    "*.tmp",
    "*.log",
    "*.swp",
    "*~",
    ".DS_Store",
    "Thumbs.db",
)


class RepositoryHandle:
    """An open entity repository and the lock that guards it.

    Handles are created by RepositoryManager and should not be constructed
    directly. Mutations take ``lock.write()``; reads take ``lock.read()``.
    Every handle for the same entity shares one lock, so a handle that was
    evicted from the registry still excludes writers using its replacement.
    """

    __slots__ = ("_closed", "_entity_id", "_git", "_lock", "_path", "_repo")

    def __init__(
        self, entity_id: str, path: Path, repo: Repo, git: GitRunner, lock: RepositoryLock
    ) -> None:
        self._entity_id: str = entity_id
        self._path: Path = path
        self._repo: Repo = repo
        self._git: GitRunner = git
        self._lock: RepositoryLock = lock
        self._closed: bool = False

    def __repr__(self) -> str:
        return f"RepositoryHandle(entity_id={self._entity_id!r}, path={str(self._path)!r})"

    @property
    def entity_id(self) -> str:
        """Return the owning entity id."""
        return self._entity_id

    @property
    def path(self) -> Path:
        """Return the repository working directory."""
        return self._path

    @property
    def repo(self) -> Repo:
        """Return the underlying GitPython repository."""
        return self._repo

    @property
    def git(self) -> GitRunner:
        """Return the git runner bound to this repository."""
        return self._git

    @property
    def lock(self) -> RepositoryLock:
        """Return the per-repository readers-writer lock."""
        return self._lock

    @property
    def closed(self) -> bool:
        """Return True once the handle has been closed."""
        return self._closed

    def close(self) -> None:
        """Release GitPython resources held by the handle."""
        if not self._closed:
            self._repo.close()
            self._closed = True


class RepositoryManager:
    """Creates and caches one git repository per entity.

    Example:
        >>> manager = RepositoryManager(Path("/data/repositories"))
        >>> handle = manager.ensure_repository("project-42")
        >>> handle.path
        PosixPath('/data/repositories/project-42')
    """

    def __init__(
        self,
        root: Path,
        *,
        identity: Identity = DEFAULT_IDENTITY,
        default_branch: str = "main",
        timeout: float = DEFAULT_TIMEOUT,
        registry_size: int = DEFAULT_REGISTRY_SIZE,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the manager.

        Args:
            root: Storage root holding one directory per entity.
            identity: Platform identity used as committer and default author.
            default_branch: Branch every repository commits to.
            timeout: Timeout in seconds for local git invocations.
            registry_size: Maximum number of open handles kept.
            logger: Logger; a stderr logger is created if omitted.
        """
        if registry_size < 1:
            msg = "registry_size must be at least 1"
            raise ValueError(msg)
        self._root: Path = root
        self._identity: Identity = identity
        self._default_branch: str = default_branch
        self._timeout: float = timeout
        self._registry_size: int = registry_size
        self._handles: OrderedDict[str, RepositoryHandle] = OrderedDict()
        self._guard: threading.Lock = threading.Lock()
        # Entries live as long as some handle for the entity is referenced.
        self._locks: weakref.WeakValueDictionary[str, RepositoryLock] = (
            weakref.WeakValueDictionary()
        )
        self._logger: FilteringBoundLogger = (logger or get_default_logger()).bind(
            component="repository_manager"
        )

    # =========================================================================
    # Context Manager Protocol
    # =========================================================================

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def root(self) -> Path:
        """Return the storage root."""
        return self._root

    @property
    def identity(self) -> Identity:
        """Return the platform identity."""
        return self._identity

    @property
    def default_branch(self) -> str:
        """Return the default branch name."""
        return self._default_branch

    @property
    def timeout(self) -> float:
        """Return the local git timeout in seconds."""
        return self._timeout

    @property
    def registry_size(self) -> int:
        """Return the maximum number of cached handles."""
        return self._registry_size

    def cached_entities(self) -> list[str]:
        """Return entity ids with an open handle, least recently used first."""
        with self._guard:
            return list(self._handles)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def repository_path(self, entity_id: str) -> Path:
        """Return the directory for an entity's repository.

        Raises:
            PathViolationError: If the entity id is not a safe directory name.
        """
        return self._root / validate_entity_id(entity_id)

    def repository_exists(self, entity_id: str) -> bool:
        """Return True if the entity already has a git repository."""
        return (self.repository_path(entity_id) / ".git").exists()

    def ensure_repository(self, entity_id: str) -> RepositoryHandle:
        """Return the entity's repository, creating it on first use.

        Creation is idempotent. An existing directory that is not yet a
        repository is initialized in place and its files are left alone.

        Args:
            entity_id: The owning entity.

        Returns:
            An open handle for the repository.

        Raises:
            PathViolationError: If the entity id is not a safe directory name.
            RepositoryInitError: If the directory, repository, identity or
                initial commit cannot be created.
        """
        path = self.repository_path(entity_id)

        handle = self._cached(entity_id)
        if handle is not None:
            return handle

        lock = self.lock_for(entity_id)
        with lock.write():
            handle = self._cached(entity_id)
            if handle is not None:
                return handle
            handle = self._open_or_create(entity_id, path, lock)
            evicted = self._register(handle)

        self._close_evicted(evicted)
        return handle

    def lock_for(self, entity_id: str) -> RepositoryLock:
        """Return the lock shared by every handle for an entity.

        The lock outlives registry eviction for as long as any handle, or
        the caller, still references it.
        """
        with self._guard:
            lock = self._locks.get(entity_id)
            if lock is None:
                lock = RepositoryLock()
                self._locks[entity_id] = lock
            return lock

    def close(self) -> None:
        """Close every cached handle and empty the registry."""
        with self._guard:
            handles = list(self._handles.values())
            self._handles.clear()
        for handle in handles:
            handle.close()

    # =========================================================================
    # Registry
    # =========================================================================

    def _cached(self, entity_id: str) -> RepositoryHandle | None:
        with self._guard:
            handle = self._handles.get(entity_id)
            if handle is None:
                return None
            self._handles.move_to_end(entity_id)
            return handle

    def _register(self, handle: RepositoryHandle) -> list[RepositoryHandle]:
        evicted: list[RepositoryHandle] = []
        with self._guard:
            self._handles[handle.entity_id] = handle
            self._handles.move_to_end(handle.entity_id)
            while len(self._handles) > self._registry_size:
                _, old = self._handles.popitem(last=False)
                evicted.append(old)
        return evicted

    def _close_evicted(self, evicted: list[RepositoryHandle]) -> None:
        for old in evicted:
            # An evicted handle may still be mid-operation in another thread.
            with old.lock.write():
                old.close()
            self._logger.debug("repository_evicted", entity_id=old.entity_id)

    # =========================================================================
    # Creation
    # =========================================================================

    def _open_or_create(
        self, entity_id: str, path: Path, lock: RepositoryLock
    ) -> RepositoryHandle:
        try:
            repo = Repo(path)
        except (InvalidGitRepositoryError, NoSuchPathError):
            repo = None

        if repo is not None:
            git = self._runner(path)
            handle = RepositoryHandle(entity_id, path, repo, git, lock)
            if not git.run("rev-parse", "--verify", "--quiet", "HEAD").ok:
                # A previous bootstrap stopped before the initial commit.
                self._bootstrap(handle)
            return handle

        git = self._runner(path)
        try:
            path.mkdir(parents=True, exist_ok=True)
            _ = git.check("init", "--quiet")
            repo = Repo(path)
        except (OSError, GitCommandError, GitTimeoutError, InvalidGitRepositoryError) as e:
            msg = f"Failed to initialize repository for {entity_id!r}: {e}"
            raise RepositoryInitError(msg, entity_id=entity_id, path=path) from e

        handle = RepositoryHandle(entity_id, path, repo, git, lock)
        self._bootstrap(handle)
        return handle

    def _runner(self, path: Path) -> GitRunner:
        return GitRunner(path, timeout=self._timeout)

    def _bootstrap(self, handle: RepositoryHandle) -> None:
        """Configure identity, write the ignore file and make the first commit."""
        git = handle.git
        try:
            _ = git.check("symbolic-ref", "HEAD", f"refs/heads/{self._default_branch}")
            with handle.repo.config_writer() as writer:
                writer.set_value("user", "name", self._identity.name)
                writer.set_value("user", "email", self._identity.email)
                writer.set_value("commit", "gpgsign", "false")
                writer.set_value("pull", "rebase", "false")
                writer.set_value("core", "autocrlf", "false")
            self._write_gitignore(handle.path / ".gitignore")
            _ = git.check("add", "--force", "--", ".gitignore")
            _ = git.check(
                "commit",
                "--quiet",
                "--no-verify",
                "--allow-empty",
                "-m",
                INITIAL_COMMIT_MESSAGE,
            )
        except (OSError, GitCommandError, GitTimeoutError) as e:
            msg = f"Failed to initialize repository for {handle.entity_id!r}: {e}"
            raise RepositoryInitError(msg, entity_id=handle.entity_id, path=handle.path) from e

        self._logger.info(
            "repository_created",
            entity_id=handle.entity_id,
            path=str(handle.path),
            branch=self._default_branch,
        )

    @staticmethod
    def _write_gitignore(path: Path) -> None:
        """Write the baseline ignore patterns, keeping any existing lines."""
        existing = path.read_text(encoding="utf-8").splitlines() if path.exists() else []
        missing = [pattern for pattern in GITIGNORE_PATTERNS if pattern not in existing]
        if not missing and existing:
            return
        lines = [*existing, *missing]
        _ = path.write_text("\n".join(lines) + "\n", encoding="utf-8")
