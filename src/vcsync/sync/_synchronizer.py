"""Remote synchronizer: the push/pull fallback ladder.

The ladder is an explicit state machine. Each non-terminal state has one
handler method that performs a single remote step and returns the next
state, chosen from the failure class of that step alone:

    PUSH_DEFAULT         ok -> DONE
                         REJECTED -> PULL_THEN_RETRY (FORCE_PUSH after a retry)
                         BRANCH_MISMATCH -> PUSH_SECONDARY
                         otherwise -> FAIL
    PULL_THEN_RETRY      ok -> PUSH_DEFAULT, failure -> FORCE_PUSH
    FORCE_PUSH           ok -> DONE, failure -> FAIL
    PUSH_SECONDARY       ok -> DONE, failure -> PUSH_CURRENT_BRANCH
    PUSH_CURRENT_BRANCH  ok -> DONE, failure -> RECONCILE_BRANCH
    RECONCILE_BRANCH     ok -> DONE, failure -> FAIL

PULL_THEN_RETRY runs at most once per sync.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

from vcsync.exceptions import RemoteOperationError
from vcsync.sync._git import DEFAULT_NETWORK_TIMEOUT, GitRemoteOperations
from vcsync.sync._models import PushFailure, SyncResult, SyncState
from vcsync.utils import get_default_logger, redact

if TYPE_CHECKING:
    from collections.abc import Callable

    from structlog.typing import FilteringBoundLogger

    from vcsync.repository import RepositoryHandle
    from vcsync.sync._protocol import RemoteOperationsProtocol

    OperationsFactory = Callable[[RepositoryHandle], RemoteOperationsProtocol]

# A legal pass visits at most six states before a terminal one.
MAX_STEPS: Final = 12


@dataclass(slots=True)
class _LadderRun:
    """Mutable state of one pass through the ladder."""

    ops: RemoteOperationsProtocol
    retried: bool = False
    error: RemoteOperationError | None = None
    branch: str | None = None
    trace: list[SyncState] = field(default_factory=list)


class RemoteSynchronizer:
    """Mirrors local commits to the configured remote.

    Example:
        >>> sync = RemoteSynchronizer(default_branch="main")
        >>> result = sync.sync(handle)
        >>> result.ok or result.skipped_no_remote or result.error
        True
    """

    def __init__(
        self,
        *,
        default_branch: str = "main",
        secondary_branch: str = "master",
        remote_name: str = "origin",
        network_timeout: float = DEFAULT_NETWORK_TIMEOUT,
        operations_factory: OperationsFactory | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the synchronizer.

        Args:
            default_branch: Branch pushed first and reconciled to.
            secondary_branch: Branch tried when the default name mismatches.
            remote_name: Name of the remote to push to.
            network_timeout: Timeout in seconds for each push or pull.
            operations_factory: Builds the remote adapter for a handle.
                Defaults to GitRemoteOperations.
            logger: Logger; a stderr logger is created if omitted.
        """
        self._default_branch: str = default_branch
        self._secondary_branch: str = secondary_branch
        self._remote_name: str = remote_name
        self._network_timeout: float = network_timeout
        self._operations_factory: OperationsFactory = (
            operations_factory or self._git_operations
        )
        self._logger: FilteringBoundLogger = (logger or get_default_logger()).bind(
            component="synchronizer"
        )
        self._handlers: dict[SyncState, Callable[[_LadderRun], SyncState]] = {
            SyncState.PUSH_DEFAULT: self._state_push_default,
            SyncState.PULL_THEN_RETRY: self._state_pull_then_retry,
            SyncState.FORCE_PUSH: self._state_force_push,
            SyncState.PUSH_SECONDARY: self._state_push_secondary,
            SyncState.PUSH_CURRENT_BRANCH: self._state_push_current_branch,
            SyncState.RECONCILE_BRANCH: self._state_reconcile_branch,
        }

    @property
    def remote_name(self) -> str:
        """Return the name of the remote this synchronizer pushes to."""
        return self._remote_name

    def _git_operations(self, handle: RepositoryHandle) -> RemoteOperationsProtocol:
        return GitRemoteOperations(
            handle.git,
            remote=self._remote_name,
            network_timeout=self._network_timeout,
        )

    # =========================================================================
    # Public API
    # =========================================================================

    def sync(self, handle: RepositoryHandle) -> SyncResult:
        """Push the repository's commits to its remote.

        Holds the repository's write lock for the whole ladder. Never
        raises for remote failures; they are reported in the result.

        Args:
            handle: The repository to synchronize.

        Returns:
            The sync outcome. ``skipped_no_remote`` is set when the
            repository has no remote.
        """
        with handle.lock.write():
            ops = self._operations_factory(handle)
            if not ops.has_remote():
                self._logger.debug("sync_skipped", entity_id=handle.entity_id)
                return SyncResult.skipped()
            result = self.run(ops)

        if result.ok:
            self._logger.info(
                "sync_completed",
                entity_id=handle.entity_id,
                branch=result.branch,
                states=[str(s) for s in result.states],
            )
        else:
            self._logger.warning(
                "sync_failed",
                entity_id=handle.entity_id,
                failure=str(result.failure) if result.failure else None,
                error=result.error,
                states=[str(s) for s in result.states],
            )
        return result

    def run(self, ops: RemoteOperationsProtocol) -> SyncResult:
        """Drive the ladder to a terminal state using the given operations.

        The caller is responsible for locking.

        Args:
            ops: Remote operations for one repository.

        Returns:
            The sync outcome, including the states visited.
        """
        run = _LadderRun(ops=ops)
        state = SyncState.PUSH_DEFAULT

        while not state.terminal:
            if len(run.trace) >= MAX_STEPS:
                run.error = RemoteOperationError(
                    "fallback ladder did not converge",
                    failure=PushFailure.OTHER,
                    operation="sync",
                )
                state = SyncState.FAIL
                break
            run.trace.append(state)
            next_state = self._handlers[state](run)
            self._logger.debug("sync_state", state=str(state), next=str(next_state))
            state = next_state

        run.trace.append(state)
        if state is SyncState.DONE:
            return SyncResult(ok=True, states=tuple(run.trace), branch=run.branch)

        error = run.error
        return SyncResult(
            ok=False,
            error=redact(str(error)) if error else "sync failed",
            failure=error.failure if error else PushFailure.OTHER,
            states=tuple(run.trace),
        )

    # =========================================================================
    # State Handlers
    # =========================================================================

    def _push(
        self, run: _LadderRun, local: str, remote: str, *, force: bool = False
    ) -> RemoteOperationError | None:
        """Push once; return the failure, or None when the push landed."""
        try:
            run.ops.push(local, remote, force=force)
        except RemoteOperationError as e:
            run.error = e
            return e
        run.branch = remote
        return None

    def _state_push_default(self, run: _LadderRun) -> SyncState:
        error = self._push(run, self._default_branch, self._default_branch)
        if error is None:
            return SyncState.DONE
        failure = error.failure
        if failure is PushFailure.REJECTED:
            return SyncState.FORCE_PUSH if run.retried else SyncState.PULL_THEN_RETRY
        if failure is PushFailure.BRANCH_MISMATCH:
            return SyncState.PUSH_SECONDARY
        return SyncState.FAIL

    def _state_pull_then_retry(self, run: _LadderRun) -> SyncState:
        run.retried = True
        try:
            run.ops.pull(self._default_branch)
        except RemoteOperationError as e:
            run.error = e
            return SyncState.FORCE_PUSH
        return SyncState.PUSH_DEFAULT

    def _state_force_push(self, run: _LadderRun) -> SyncState:
        if self._push(run, self._default_branch, self._default_branch, force=True) is None:
            return SyncState.DONE
        return SyncState.FAIL

    def _state_push_secondary(self, run: _LadderRun) -> SyncState:
        if self._push(run, self._secondary_branch, self._secondary_branch) is None:
            return SyncState.DONE
        return SyncState.PUSH_CURRENT_BRANCH

    def _state_push_current_branch(self, run: _LadderRun) -> SyncState:
        branch = run.ops.current_branch()
        if branch is not None and self._push(run, branch, branch) is None:
            return SyncState.DONE
        return SyncState.RECONCILE_BRANCH

    def _state_reconcile_branch(self, run: _LadderRun) -> SyncState:
        try:
            run.ops.checkout(
                self._default_branch,
                create=not run.ops.branch_exists(self._default_branch),
            )
        except RemoteOperationError as e:
            run.error = e
            return SyncState.FAIL
        if self._push(run, self._default_branch, self._default_branch) is None:
            return SyncState.DONE
        return SyncState.FAIL
