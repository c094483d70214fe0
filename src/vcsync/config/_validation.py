# pyright: reportAny=false, reportExplicitAny=false, reportUnknownArgumentType=false, reportUnknownVariableType=false
"""Configuration validation using Pydantic schemas."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar

from pydantic import BaseModel, ConfigDict, ValidationError

from vcsync.config._models import (
    GitConfig,
    IdentityConfig,
    LoggingConfig,
    ProviderConfig,
    StorageConfig,
)
from vcsync.exceptions import ConfigValidationError

if TYPE_CHECKING:
    from pydantic_core import ErrorDetails


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    """Represents a configuration validation issue.

    Attributes:
        key: Dotted path to the configuration key (e.g., "git.timeout_seconds").
        message: Human-readable description of the issue.
        expected: Description of expected value or type, if available.
        actual: The actual value that caused the issue.
    """

    key: str
    message: str
    expected: str | None
    actual: Any


class ConfigSchema(BaseModel):
    """Pydantic schema for the root configuration."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    storage: StorageConfig = StorageConfig()
    git: GitConfig = GitConfig()
    identity: IdentityConfig = IdentityConfig()
    provider: ProviderConfig = ProviderConfig()
    logging: LoggingConfig = LoggingConfig()


def _pydantic_error_to_issue(error: ErrorDetails) -> ValidationIssue:
    key = ".".join(str(part) for part in error.get("loc", ()))
    ctx = error.get("ctx")
    expected: str | None = None
    if ctx is not None:
        if "expected" in ctx:
            expected = str(ctx["expected"])
        elif "ge" in ctx:
            expected = f">= {ctx['ge']}"
        elif "gt" in ctx:
            expected = f"> {ctx['gt']}"

    return ValidationIssue(
        key=key,
        message=str(error.get("msg", "Validation error")),
        expected=expected,
        actual=error.get("input"),
    )


def validate_config(config: dict[str, Any]) -> tuple[ConfigSchema | None, list[ValidationIssue]]:
    """Validate a merged configuration dictionary.

    Args:
        config: The merged configuration dictionary to validate.

    Returns:
        The parsed schema (None when invalid) and the list of issues found.
    """
    try:
        schema = ConfigSchema.model_validate(config)
    except ValidationError as e:
        return None, [_pydantic_error_to_issue(err) for err in e.errors()]
    return schema, []


def raise_if_validation_errors(
    issues: list[ValidationIssue],
    source: str | None = None,
) -> None:
    """Raise ConfigValidationError for the first issue, if any.

    Args:
        issues: List of ValidationIssue objects to check.
        source: Optional description of where the values came from.

    Raises:
        ConfigValidationError: If any issues exist.
    """
    if issues:
        issue = issues[0]
        msg = f"Invalid configuration value for '{issue.key}': {issue.message}"
        raise ConfigValidationError(
            msg,
            key=issue.key,
            value=issue.actual,
            expected=issue.expected or issue.message,
            source=source,
        )
