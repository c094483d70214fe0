"""Remote synchronization.

RemoteSynchronizer mirrors a repository's commits to its remote through a
fallback ladder of push and pull strategies. Remote failures never affect
local durability; they are reported in a SyncResult.
"""

from vcsync.sync._fake import FakeRemoteOperations
from vcsync.sync._git import GitRemoteOperations, classify_failure
from vcsync.sync._models import PushFailure, SyncResult, SyncState
from vcsync.sync._protocol import RemoteOperationsProtocol
from vcsync.sync._synchronizer import RemoteSynchronizer

__all__ = [
    "FakeRemoteOperations",
    "GitRemoteOperations",
    "PushFailure",
    "RemoteOperationsProtocol",
    "RemoteSynchronizer",
    "SyncResult",
    "SyncState",
    "classify_failure",
]
