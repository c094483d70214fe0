"""Git-backed versioned content storage with best-effort remote mirroring.

Example:
    >>> from vcsync import Config, VersionStore
    >>> with VersionStore.from_config(Config.load()) as store:
    ...     store.save("project-42", "notes.md", "hello", "Add notes").sha
"""

from vcsync.config import Config
from vcsync.engine import AsyncVersionStore, VersionEntry, VersionStore
from vcsync.exceptions import (
    CommitError,
    ContentNotFoundError,
    ProviderAPIError,
    RemoteError,
    RepositoryError,
    VcsyncError,
    WriteError,
)
from vcsync.repository import CommitInfo, CommitResult, Identity
from vcsync.sync import SyncResult

__version__ = "0.1.0"

__all__ = [
    "AsyncVersionStore",
    "CommitError",
    "CommitInfo",
    "CommitResult",
    "Config",
    "ContentNotFoundError",
    "Identity",
    "ProviderAPIError",
    "RemoteError",
    "RepositoryError",
    "SyncResult",
    "VcsyncError",
    "VersionEntry",
    "VersionStore",
    "WriteError",
    "__version__",
]
