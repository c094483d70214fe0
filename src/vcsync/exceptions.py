"""vcsync exceptions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pathlib import Path

    from vcsync.sync._models import PushFailure


class VcsyncError(Exception):
    """Base exception for vcsync errors."""


class ConfigError(VcsyncError):
    """Base exception for configuration errors."""


class ConfigLoadError(ConfigError):
    """Raised when configuration cannot be loaded or parsed."""

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        """Initialize with error message and optional location context."""
        super().__init__(message)
        self.path: Path | None = path
        self.line: int | None = line
        self.column: int | None = column


class ConfigValidationError(ConfigError):
    """Raised when configuration fails validation."""

    def __init__(
        self,
        message: str,
        *,
        key: str,
        value: Any,  # pyright: ignore[reportAny,reportExplicitAny]
        expected: str,
        source: str | None = None,
    ) -> None:
        """Initialize with error message and validation context."""
        super().__init__(message)
        self.key: str = key
        self.value: Any = value  # pyright: ignore[reportExplicitAny]
        self.expected: str = expected
        self.source: str | None = source


# =============================================================================
# Repository Exceptions
# =============================================================================


class RepositoryError(VcsyncError):
    """Base exception for local repository operations."""


class RepositoryInitError(RepositoryError):
    """Raised when a repository cannot be created or initialized.

    Attributes:
        entity_id: The entity whose repository failed to initialize.
        path: Path to the repository directory.
    """

    def __init__(
        self,
        message: str,
        *,
        entity_id: str | None = None,
        path: Path | None = None,
    ) -> None:
        """Initialize with error message and repository context.

        Args:
            message: Human-readable error message.
            entity_id: The entity whose repository failed to initialize.
            path: Path to the repository directory.
        """
        super().__init__(message)
        self.entity_id: str | None = entity_id
        self.path: Path | None = path


class WriteError(RepositoryError):
    """Raised when content cannot be written to the working tree.

    No commit is attempted after a write error.

    Attributes:
        path: The tracked path that could not be written.
    """

    def __init__(self, message: str, *, path: str | None = None) -> None:
        """Initialize with error message and path context.

        Args:
            message: Human-readable error message.
            path: The tracked path that could not be written.
        """
        super().__init__(message)
        self.path: str | None = path


class CommitError(RepositoryError):
    """Raised when staging or committing fails.

    The working tree may already contain the new content.

    Attributes:
        paths: The tracked paths involved in the failed commit.
    """

    def __init__(self, message: str, *, paths: tuple[str, ...] = ()) -> None:
        """Initialize with error message and path context.

        Args:
            message: Human-readable error message.
            paths: The tracked paths involved in the failed commit.
        """
        super().__init__(message)
        self.paths: tuple[str, ...] = paths


class ContentNotFoundError(RepositoryError, KeyError):
    """Raised when a path or commit does not exist in a repository.

    Attributes:
        path: The tracked path that was requested.
        commit: The commit the path was requested at, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        commit: str | None = None,
    ) -> None:
        """Initialize with error message and lookup context.

        Args:
            message: Human-readable error message.
            path: The tracked path that was requested.
            commit: The commit the path was requested at, if any.
        """
        super().__init__(message)
        self.path: str | None = path
        self.commit: str | None = commit

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class PathViolationError(RepositoryError, ValueError):
    """Raised when an entity id or tracked path escapes its repository.

    Attributes:
        value: The rejected entity id or path.
    """

    def __init__(self, message: str, *, value: str) -> None:
        """Initialize with error message and the rejected value."""
        super().__init__(message)
        self.value: str = value


class GitTimeoutError(RepositoryError):
    """Raised when a local git invocation exceeds its timeout.

    Attributes:
        command: The git subcommand that timed out.
        timeout: The timeout in seconds.
    """

    def __init__(self, message: str, *, command: str, timeout: float) -> None:
        """Initialize with error message and command context."""
        super().__init__(message)
        self.command: str = command
        self.timeout: float = timeout


# =============================================================================
# Remote Exceptions
# =============================================================================


class RemoteError(VcsyncError):
    """Base exception for remote synchronization errors."""


class RemoteOperationError(RemoteError):
    """Raised by a remote adapter when a push, pull or checkout fails.

    Attributes:
        failure: Classification of the failure, used to pick the next
            fallback step.
        operation: The operation that failed ("push", "pull", "checkout").
    """

    def __init__(
        self,
        message: str,
        *,
        failure: PushFailure,
        operation: str,
    ) -> None:
        """Initialize with error message and failure classification.

        Args:
            message: Human-readable error message with credentials redacted.
            failure: Classification of the failure.
            operation: The operation that failed.
        """
        super().__init__(message)
        self.failure: PushFailure = failure
        self.operation: str = operation


# =============================================================================
# Provider Exceptions
# =============================================================================


class ProviderAPIError(VcsyncError):
    """Raised when the hosting provider's API rejects a request.

    The message is the provider's own ``message`` field when one is present.

    Attributes:
        status_code: HTTP status code, or None for transport failures.
        url: The API URL that was requested.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str | None = None,
    ) -> None:
        """Initialize with error message and HTTP context.

        Args:
            message: Human-readable error message.
            status_code: HTTP status code, or None for transport failures.
            url: The API URL that was requested.
        """
        super().__init__(message)
        self.status_code: int | None = status_code
        self.url: str | None = url


class RemoteURLError(ProviderAPIError, ValueError):
    """Raised when an existing remote URL cannot be parsed."""
