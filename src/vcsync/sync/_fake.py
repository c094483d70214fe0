"""Fake remote operations for testing.

This module provides FakeRemoteOperations, a scripted implementation of
RemoteOperationsProtocol for driving every transition of the fallback
ladder without a real remote.
"""

from collections import deque
from dataclasses import dataclass, field

from vcsync.exceptions import RemoteOperationError
from vcsync.sync._models import PushFailure


@dataclass(slots=True)
class FakeRemoteOperations:
    """Scripted remote operations.

    Every call is recorded in ``calls`` as a key such as ``push main->main``,
    ``push main->main force``, ``pull main`` or ``checkout -b main``. A call
    fails when a failure has been queued for its key with fail(); otherwise
    it succeeds. Successful pushes are recorded in ``pushed``.

    Example:
        >>> ops = FakeRemoteOperations()
        >>> ops.fail("push main->main", PushFailure.REJECTED)
        >>> ops.push("main", "main")
        Traceback (most recent call last):
        ...
        vcsync.exceptions.RemoteOperationError: push main->main failed: rejected
    """

    remote: bool = True
    branch: str | None = "main"
    branches: set[str] = field(default_factory=lambda: {"main"})
    calls: list[str] = field(default_factory=list)
    pushed: list[tuple[str, str, bool]] = field(default_factory=list)
    _failures: dict[str, deque[PushFailure]] = field(default_factory=dict)

    # =========================================================================
    # Scripting Helpers
    # =========================================================================

    def fail(self, key: str, failure: PushFailure, *, times: int = 1) -> None:
        """Queue failures for the next calls matching a key.

        Args:
            key: Call key, e.g. ``"push main->main"``.
            failure: Failure class to raise.
            times: Number of consecutive calls that fail.
        """
        queue = self._failures.setdefault(key, deque())
        queue.extend([failure] * times)

    def _record(self, key: str, operation: str) -> None:
        self.calls.append(key)
        queue = self._failures.get(key)
        if queue:
            failure = queue.popleft()
            msg = f"{key} failed: {failure}"
            raise RemoteOperationError(msg, failure=failure, operation=operation)

    # =========================================================================
    # RemoteOperationsProtocol
    # =========================================================================

    def has_remote(self) -> bool:
        return self.remote

    def current_branch(self) -> str | None:
        return self.branch

    def branch_exists(self, name: str) -> bool:
        return name in self.branches

    def push(self, local_branch: str, remote_branch: str, *, force: bool = False) -> None:
        key = f"push {local_branch}->{remote_branch}" + (" force" if force else "")
        self._record(key, "push")
        self.pushed.append((local_branch, remote_branch, force))

    def pull(self, remote_branch: str) -> None:
        self._record(f"pull {remote_branch}", "pull")

    def checkout(self, branch: str, *, create: bool = False) -> None:
        self._record(f"checkout -b {branch}" if create else f"checkout {branch}", "checkout")
        self.branches.add(branch)
        self.branch = branch
