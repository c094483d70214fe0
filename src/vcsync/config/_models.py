"""Configuration section models.

Each section of the configuration file maps to one frozen Pydantic model.
Unknown keys are ignored so that newer files load on older versions.
"""

from enum import StrEnum
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LogLevel(StrEnum):
    """Log level threshold values.

    Values are ordered from most verbose (debug) to least verbose (error).
    """

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LogFormat(StrEnum):
    """Log output format values."""

    JSON = "json"
    TEXT = "text"


class StorageConfig(BaseModel):
    """Storage configuration section.

    Attributes:
        root: Directory that holds one repository per entity.
        registry_size: Maximum number of open repository handles kept in
            the registry before the least recently used is closed.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    root: str = "./data/repositories"
    registry_size: int = Field(default=128, ge=1)


class GitConfig(BaseModel):
    """Git behaviour configuration section.

    Attributes:
        default_branch: Branch that receives every commit.
        secondary_branch: Remote branch tried when the default branch name
            does not exist on the remote.
        remote_name: Name of the configured remote.
        timeout_seconds: Timeout for local git invocations.
        network_timeout_seconds: Timeout for push and pull invocations.
        auto_push: Whether a successful commit triggers a remote sync.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    default_branch: str = "main"
    secondary_branch: str = "master"
    remote_name: str = "origin"
    timeout_seconds: float = Field(default=60.0, gt=0)
    network_timeout_seconds: float = Field(default=120.0, gt=0)
    auto_push: bool = True

    @field_validator("default_branch", "secondary_branch", "remote_name")
    @classmethod
    def _validate_ref_name(cls, value: str) -> str:
        if not value or value.startswith("-") or any(c.isspace() for c in value):
            msg = f"invalid git ref name: {value!r}"
            raise ValueError(msg)
        return value


class IdentityConfig(BaseModel):
    """Platform identity used as committer and default author.

    Attributes:
        name: Identity name.
        email: Identity email address.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    name: str = Field(default="vcsync Platform", min_length=1)
    email: str = Field(default="platform@vcsync.local", min_length=1)


class ProviderConfig(BaseModel):
    """Remote hosting provider configuration section.

    Attributes:
        api_url: Base URL of the provider's REST API.
        web_host: Host name used in clone URLs.
        timeout_seconds: HTTP timeout for provider API calls.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    api_url: str = "https://api.github.com"
    web_host: str = "github.com"
    timeout_seconds: float = Field(default=30.0, gt=0)


class LoggingConfig(BaseModel):
    """Logging configuration section.

    Attributes:
        level: Log level threshold.
        format: Log output format.
        file: Path to log file (empty logs to stderr).
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.JSON
    file: str = ""
