"""Remote operations protocol for type-safe dependency injection.

The fallback ladder talks to the remote only through this protocol, so it
can be driven by the real git adapter or by a scripted fake in tests.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class RemoteOperationsProtocol(Protocol):
    """Remote-facing git operations needed by the fallback ladder.

    Every method that talks to the remote or changes the checkout raises
    RemoteOperationError with a PushFailure classification on failure.

    Example:
        >>> def mirror(ops: RemoteOperationsProtocol) -> None:
        ...     if ops.has_remote():
        ...         ops.push("main", "main")
    """

    def has_remote(self) -> bool:
        """Return True if the repository has a remote configured."""
        ...

    def current_branch(self) -> str | None:
        """Return the checked-out branch name, or None when HEAD is detached."""
        ...

    def branch_exists(self, name: str) -> bool:
        """Return True if a local branch with this name exists."""
        ...

    def push(self, local_branch: str, remote_branch: str, *, force: bool = False) -> None:
        """Push a local branch to a remote branch.

        Args:
            local_branch: Local branch name.
            remote_branch: Remote branch name.
            force: Overwrite the remote branch even if it has diverged.

        Raises:
            RemoteOperationError: If the push fails.
        """
        ...

    def pull(self, remote_branch: str) -> None:
        """Fetch a remote branch and merge it into the checked-out branch.

        Unrelated histories are allowed. A conflicted merge is aborted
        before the error is raised, leaving the working tree clean.

        Raises:
            RemoteOperationError: If the fetch or merge fails.
        """
        ...

    def checkout(self, branch: str, *, create: bool = False) -> None:
        """Check out a local branch, optionally creating it from HEAD.

        Raises:
            RemoteOperationError: If the checkout fails.
        """
        ...
