# pyright: reportExplicitAny=false
"""Shared CLI utilities for commands.

This module provides common utilities used across CLI command implementations:
- Standardized exit codes and the mapping from library errors to them
- JSON output formatting
- Console utilities for error handling
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from enum import IntEnum
from typing import TYPE_CHECKING, Any, Never

import orjson
from rich.text import Text

from vcsync.exceptions import (
    ConfigError,
    ContentNotFoundError,
    GitTimeoutError,
    PathViolationError,
    ProviderAPIError,
    RemoteError,
    RepositoryInitError,
    VcsyncError,
    WriteError,
)

if TYPE_CHECKING:
    from rich.console import Console

    from vcsync.sync import SyncResult

# Type alias for formattable data - uses Any to match library signatures
FormattableData = dict[str, Any]

__all__ = [
    "ExitCode",
    "FormattableData",
    "exit_code_for",
    "exit_with_error",
    "format_json",
    "handle_errors",
    "sync_to_dict",
]


class ExitCode(IntEnum):
    """Standard exit codes for vcsync CLI commands."""

    SUCCESS = 0
    VALIDATION_ERROR = 2
    NOT_FOUND = 3
    IO_ERROR = 4
    INTERNAL_ERROR = 5
    REMOTE_ERROR = 6


def format_json(data: FormattableData | list[FormattableData], *, indent: bool = True) -> str:
    """Format data as JSON.

    Args:
        data: Dictionary or list of dictionaries to format.
        indent: Whether to pretty-print with indentation.

    Returns:
        JSON-formatted string representation.
    """
    options = orjson.OPT_INDENT_2 if indent else 0
    return orjson.dumps(data, option=options).decode("utf-8")


def exit_code_for(error: BaseException) -> ExitCode:
    """Map an exception raised by the library to a CLI exit code."""
    # order matters: several errors also subclass ValueError or KeyError
    if isinstance(error, ContentNotFoundError):
        return ExitCode.NOT_FOUND
    if isinstance(error, (ProviderAPIError, RemoteError)):
        return ExitCode.REMOTE_ERROR
    if isinstance(error, (PathViolationError, ConfigError, ValueError)):
        return ExitCode.VALIDATION_ERROR
    if isinstance(error, FileNotFoundError):
        return ExitCode.NOT_FOUND
    if isinstance(error, (WriteError, RepositoryInitError, GitTimeoutError, OSError)):
        return ExitCode.IO_ERROR
    return ExitCode.INTERNAL_ERROR


def exit_with_error(
    message: str,
    code: ExitCode = ExitCode.INTERNAL_ERROR,
    *,
    console: Console,
) -> Never:
    """Print an error message and exit with the specified code.

    Raises:
        SystemExit: Always raised with the specified exit code.
    """
    console.print(Text.assemble(("Error:", "red"), f" {message}"))
    raise SystemExit(code)


@contextmanager
def handle_errors(console: Console) -> Iterator[None]:
    """Turn library errors raised inside the block into CLI exits.

    Raises:
        SystemExit: With the mapped exit code when a library error occurs.
    """
    try:
        yield
    except (VcsyncError, OSError, ValueError) as e:
        exit_with_error(str(e), exit_code_for(e), console=console)


def sync_to_dict(result: SyncResult) -> FormattableData:
    """Return a JSON-serializable view of a sync result."""
    return {
        "ok": result.ok,
        "skipped_no_remote": result.skipped_no_remote,
        "error": result.error,
        "failure": result.failure.value if result.failure else None,
        "states": [state.value for state in result.states],
        "branch": result.branch,
    }
