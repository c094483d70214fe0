"""Command-line interface for vcsync."""

from ._app import create_app, main
from ._context import CLIContext, OutputFormat
from ._shared import ExitCode

__all__ = ["CLIContext", "ExitCode", "OutputFormat", "create_app", "main"]
