"""structlog logger factories.

Loggers built here are standalone: they are wrapped directly around a print
or write logger and never touch ``structlog.configure``, so an application
embedding vcsync keeps its own logging setup. Output is one JSON object per
line, or console-style text, on stderr or appended to a file.
"""

from __future__ import annotations

import logging
import sys
from os import getenv
from pathlib import Path
from typing import TYPE_CHECKING, Literal, cast

import structlog

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger, Processor

LogFormatType = Literal["json", "text"]

DEBUG_ENV_VAR = "VCSYNC_DEBUG"
LEVEL_ENV_VAR = "VCSYNC_LOG_LEVEL"


def _resolve_level(level: str) -> int:
    # VCSYNC_DEBUG wins over any configured threshold
    if getenv(DEBUG_ENV_VAR):
        return logging.DEBUG
    return logging.getLevelNamesMapping().get(level.upper(), logging.INFO)


def _sink(log_file: str) -> object:
    if not log_file:
        return structlog.PrintLoggerFactory(file=sys.stderr)()
    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    return structlog.WriteLoggerFactory(file=path.open("a", encoding="utf-8"))()


def _processors(log_format: LogFormatType) -> list[Processor]:
    chain: list[Processor] = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if log_format == "json":
        chain += [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    else:
        chain.append(structlog.dev.ConsoleRenderer(colors=False))
    return chain


def create_logger(
    *,
    level: str = "info",
    log_format: LogFormatType = "json",
    log_file: str = "",
) -> FilteringBoundLogger:
    """Build a filtering logger that writes to ``log_file`` or stderr.

    Args:
        level: Threshold name (debug, info, warning, error). Unknown names
            fall back to info.
        log_format: ``json`` for one object per line, ``text`` for
            console-style key=value output.
        log_file: File to append to. Parent directories are created. Empty
            means stderr.

    Returns:
        A bound logger; events below the threshold are dropped cheaply.
    """
    return cast(
        "FilteringBoundLogger",
        structlog.wrap_logger(
            _sink(log_file),
            processors=_processors(log_format),
            wrapper_class=structlog.make_filtering_bound_logger(_resolve_level(level)),
            context_class=dict,
        ),
    )


def get_default_logger() -> FilteringBoundLogger:
    """Return a quiet stderr logger for components built without one.

    The threshold is read from VCSYNC_LOG_LEVEL and defaults to warning.
    """
    return create_logger(level=getenv(LEVEL_ENV_VAR, "warning"), log_format="text")


def create_cli_logger(
    *,
    level: str = "info",
    log_format: LogFormatType = "json",
    log_file: str = "",
    command: str = "",
) -> FilteringBoundLogger:
    """Like :func:`create_logger`, with the running subcommand bound as ``command``."""
    logger = create_logger(level=level, log_format=log_format, log_file=log_file)
    return logger.bind(command=command) if command else logger
