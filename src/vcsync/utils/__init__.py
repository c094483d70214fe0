"""Shared utilities for vcsync."""

from ._logging import create_cli_logger, create_logger, get_default_logger
from ._redact import REDACTED, redact, strip_credentials

__all__ = [
    "REDACTED",
    "create_cli_logger",
    "create_logger",
    "get_default_logger",
    "redact",
    "strip_credentials",
]
