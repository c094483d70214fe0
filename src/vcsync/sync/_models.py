"""Remote synchronization models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class SyncState(StrEnum):
    """States of the push/pull fallback ladder.

    DONE and FAIL are terminal.
    """

    PUSH_DEFAULT = "push_default"
    PULL_THEN_RETRY = "pull_then_retry"
    FORCE_PUSH = "force_push"
    PUSH_SECONDARY = "push_secondary"
    PUSH_CURRENT_BRANCH = "push_current_branch"
    RECONCILE_BRANCH = "reconcile_branch"
    DONE = "done"
    FAIL = "fail"

    @property
    def terminal(self) -> bool:
        """Return True for DONE and FAIL."""
        return self in (SyncState.DONE, SyncState.FAIL)


class PushFailure(StrEnum):
    """Classification of a failed remote operation."""

    REJECTED = "rejected"
    """The remote has commits the local branch lacks (non-fast-forward)."""

    BRANCH_MISMATCH = "branch_mismatch"
    """A branch named in the refspec does not exist on one side."""

    UNREACHABLE = "unreachable"
    """The remote could not be contacted, authenticated, or timed out."""

    OTHER = "other"
    """Any other failure, including merge conflicts and hook rejections."""


@dataclass(frozen=True, slots=True)
class SyncResult:
    """Outcome of one synchronization attempt.

    Attributes:
        ok: True if the remote now has the local commits.
        skipped_no_remote: True if no remote is configured; ``ok`` is False.
        error: Failure message with credentials redacted, if the sync failed.
        failure: Classification of the last failure, if the sync failed.
        states: Ladder states visited, in order.
        branch: Remote branch that received the push, if any.
    """

    ok: bool
    skipped_no_remote: bool = False
    error: str | None = None
    failure: PushFailure | None = None
    states: tuple[SyncState, ...] = ()
    branch: str | None = None

    @classmethod
    def skipped(cls) -> SyncResult:
        """Return the result for a repository without a remote."""
        return cls(ok=False, skipped_no_remote=True)
