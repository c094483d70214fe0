"""CLI context for global state management.

The CLIContext is set once by the meta command from the global options and
made available to every command through a context variable.
"""

from __future__ import annotations

import contextvars
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from rich.console import Console

from vcsync.config import Config
from vcsync.engine import VersionStore

if TYPE_CHECKING:
    from pathlib import Path

    from structlog.typing import FilteringBoundLogger


class OutputFormat(StrEnum):
    """Supported output formats for commands."""

    TABLE = "table"
    JSON = "json"


# Thread-safe context variable for CLIContext
_current_cli_context: contextvars.ContextVar[CLIContext | None] = contextvars.ContextVar(
    "cli_context", default=None
)


@dataclass(frozen=True, slots=True)
class CLIContext:
    """Global CLI context with configuration and options.

    Attributes:
        config: Loaded configuration object.
        verbose: Log at the configured level instead of warnings only.
        console: Console for command output.
        error_console: Console for error messages.
        logger: Structured logger for CLI commands.
    """

    config: Config = field(repr=False)
    verbose: bool = False
    console: Console = field(default_factory=Console, repr=False)
    error_console: Console = field(default_factory=lambda: Console(stderr=True), repr=False)
    logger: FilteringBoundLogger | None = field(default=None, repr=False)

    @classmethod
    def get_current(cls) -> CLIContext:
        """Get the current CLIContext, or a default one if none is set."""
        ctx = _current_cli_context.get()
        if ctx is not None:
            return ctx
        return cls(config=Config.from_dict({}))

    @classmethod
    def set_current(cls, ctx: CLIContext) -> None:
        """Set the current CLIContext."""
        _current_cli_context.set(ctx)

    @classmethod
    def reset(cls) -> None:
        """Reset to the default context."""
        _current_cli_context.set(None)

    def open_store(self) -> VersionStore:
        """Build a VersionStore from the loaded configuration."""
        return VersionStore.from_config(self.config, logger=self.logger)


def load_config(
    *,
    config_path: Path | None = None,
    root: Path | None = None,
) -> Config:
    """Load configuration for a CLI invocation.

    Args:
        config_path: Explicit path to a config file (--config flag).
        root: Storage root override (--root flag).

    Returns:
        The merged configuration.

    Raises:
        FileNotFoundError: If an explicit config file does not exist.
        ConfigError: If the configuration cannot be loaded or is invalid.
    """
    if config_path is not None and not config_path.is_file():
        msg = f"Config file not found: {config_path}"
        raise FileNotFoundError(msg)
    overrides = {"storage": {"root": str(root.resolve())}} if root is not None else None
    return Config.load(config_path, overrides=overrides)
