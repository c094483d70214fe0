"""Remote operations backed by the git command line."""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from vcsync.exceptions import RemoteOperationError
from vcsync.sync._models import PushFailure
from vcsync.utils import redact

if TYPE_CHECKING:
    from vcsync.repository import GitOutput, GitRunner

DEFAULT_NETWORK_TIMEOUT: Final = 120.0

# Checked in this order; the first group with a match wins.
_BRANCH_MISMATCH_MARKERS: Final = (
    "does not match any",
    "couldn't find remote ref",
    "unqualified destination",
    "not a valid ref",
)
_UNREACHABLE_MARKERS: Final = (
    "timeout:",
    "could not resolve host",
    "could not read from remote repository",
    "unable to access",
    "connection refused",
    "connection timed out",
    "does not appear to be a git repository",
    "repository not found",
    "authentication failed",
    "could not read username",
)
_REJECTED_MARKERS: Final = (
    "[rejected]",
    "non-fast-forward",
    "fetch first",
    "stale info",
    "updates were rejected",
)


def classify_failure(output: GitOutput) -> PushFailure:
    """Classify a failed git invocation for the fallback ladder.

    Args:
        output: The captured output of the failed command.

    Returns:
        The failure class.
    """
    if output.timed_out:
        return PushFailure.UNREACHABLE
    text = f"{output.stderr}\n{output.stdout.decode('utf-8', errors='replace')}".lower()
    if any(marker in text for marker in _BRANCH_MISMATCH_MARKERS):
        return PushFailure.BRANCH_MISMATCH
    if any(marker in text for marker in _UNREACHABLE_MARKERS):
        return PushFailure.UNREACHABLE
    if any(marker in text for marker in _REJECTED_MARKERS):
        return PushFailure.REJECTED
    return PushFailure.OTHER


class GitRemoteOperations:
    """RemoteOperationsProtocol implementation for one repository.

    Network commands run with their own, longer timeout. Terminal prompts
    are disabled, so a missing credential fails instead of hanging.
    """

    __slots__ = ("_git", "_network_timeout", "_remote")

    def __init__(
        self,
        git: GitRunner,
        *,
        remote: str = "origin",
        network_timeout: float = DEFAULT_NETWORK_TIMEOUT,
    ) -> None:
        self._git: GitRunner = git
        self._remote: str = remote
        self._network_timeout: float = network_timeout

    def has_remote(self) -> bool:
        return self._git.run("config", "--get", f"remote.{self._remote}.url").ok

    def current_branch(self) -> str | None:
        output = self._git.run("symbolic-ref", "--quiet", "--short", "HEAD")
        return output.text if output.ok and output.text else None

    def branch_exists(self, name: str) -> bool:
        return self._git.run("show-ref", "--verify", "--quiet", f"refs/heads/{name}").ok

    def push(self, local_branch: str, remote_branch: str, *, force: bool = False) -> None:
        args = ["push"]
        if force:
            args.append("--force")
        args += [self._remote, f"refs/heads/{local_branch}:refs/heads/{remote_branch}"]
        output = self._git.run(*args, timeout=self._network_timeout)
        if not output.ok:
            raise self._error("push", output)

    def pull(self, remote_branch: str) -> None:
        output = self._git.run(
            "pull",
            "--no-rebase",
            "--ff",
            "--no-edit",
            "--allow-unrelated-histories",
            self._remote,
            remote_branch,
            timeout=self._network_timeout,
        )
        if output.ok:
            return
        if self._git.run("rev-parse", "--verify", "--quiet", "MERGE_HEAD").ok:
            _ = self._git.run("merge", "--abort")
        raise self._error("pull", output)

    def checkout(self, branch: str, *, create: bool = False) -> None:
        args = ["checkout", "--quiet"]
        if create:
            args.append("-b")
        output = self._git.run(*args, branch)
        if not output.ok:
            raise self._error("checkout", output, failure=PushFailure.OTHER)

    def _error(
        self,
        operation: str,
        output: GitOutput,
        *,
        failure: PushFailure | None = None,
    ) -> RemoteOperationError:
        detail = redact(output.stderr.strip()) or f"exit status {output.status}"
        return RemoteOperationError(
            f"git {operation} failed: {detail}",
            failure=failure or classify_failure(output),
            operation=operation,
        )
