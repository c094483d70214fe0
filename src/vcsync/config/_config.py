# pyright: reportExplicitAny=false, reportAny=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""Configuration container with typed access.

This module provides the Config class, the primary interface for reading
vcsync configuration values.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING, Any, ClassVar, TypeVar, overload

import tomli_w
from pydantic import BaseModel, ConfigDict, PrivateAttr

from vcsync.config._defaults import DEFAULT_CONFIG
from vcsync.config._loader import (
    ENV_PREFIX,
    copy_value,
    deep_merge,
    parse_env_vars,
    read_toml_file,
)
from vcsync.config._validation import (
    ConfigSchema,
    raise_if_validation_errors,
    validate_config,
)

if TYPE_CHECKING:
    from typing import Self

    from vcsync.config._models import (
        GitConfig,
        IdentityConfig,
        LoggingConfig,
        ProviderConfig,
        StorageConfig,
    )

T = TypeVar("T")

CONFIG_ENV_VAR = "VCSYNC_CONFIG"
DEFAULT_CONFIG_FILE = "vcsync.toml"


def discover_config_file(explicit: Path | None = None) -> Path | None:
    """Find the configuration file to load.

    Precedence: the explicit path, then the VCSYNC_CONFIG environment
    variable, then ./vcsync.toml if it exists.

    Args:
        explicit: Path passed by the caller.

    Returns:
        The file to load, or None when no file applies.
    """
    if explicit is not None:
        return explicit
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    candidate = Path.cwd() / DEFAULT_CONFIG_FILE
    return candidate if candidate.is_file() else None


class Config(BaseModel):
    """Configuration container with typed access.

    Instances are immutable. Use from_dict(), from_file() or load() rather
    than the constructor.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True)

    _data: dict[str, Any] = PrivateAttr(default_factory=dict)
    _schema: ConfigSchema = PrivateAttr(default_factory=ConfigSchema)
    _path: Path | None = PrivateAttr(default=None)

    def __init__(
        self,
        *,
        _data: dict[str, Any] | None = None,
        _schema: ConfigSchema | None = None,
        _path: Path | None = None,
    ) -> None:
        """Initialize configuration container.

        Args:
            _data: The complete merged configuration dictionary.
            _schema: The validated section models.
            _path: The file the configuration was read from, if any.
        """
        super().__init__()
        self._data = _data if _data is not None else copy_value(DEFAULT_CONFIG)
        self._schema = _schema if _schema is not None else ConfigSchema()
        self._path = _path

    @classmethod
    def _build(cls, merged: dict[str, Any], *, path: Path | None = None) -> Self:
        schema, issues = validate_config(merged)
        raise_if_validation_errors(issues, source=str(path) if path else None)
        return cls(_data=merged, _schema=schema, _path=path)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Create configuration from a dictionary merged over the defaults.

        Raises:
            ConfigValidationError: If validation fails.
        """
        return cls._build(deep_merge(DEFAULT_CONFIG, data))

    @classmethod
    def from_file(cls, path: Path) -> Self:
        """Load configuration from a specific file merged over the defaults.

        Raises:
            FileNotFoundError: If the file does not exist.
            ConfigLoadError: If the file cannot be parsed.
            ConfigValidationError: If validation fails.
        """
        data = read_toml_file(path)
        return cls._build(deep_merge(DEFAULT_CONFIG, data), path=path)

    @classmethod
    def load(
        cls,
        path: Path | None = None,
        *,
        include_env: bool = True,
        overrides: dict[str, Any] | None = None,
    ) -> Self:
        """Load merged configuration from all sources.

        Sources are merged in precedence order: defaults, then the discovered
        file, then VCSYNC_* environment variables, then explicit overrides.

        Args:
            path: Explicit configuration file. See discover_config_file().
            include_env: Include environment variables as a source.
            overrides: Highest-precedence values, e.g. from the CLI.

        Returns:
            Merged configuration object.

        Raises:
            FileNotFoundError: If an explicitly named file does not exist.
            ConfigLoadError: If the file cannot be parsed.
            ConfigValidationError: If the merged config fails validation.
        """
        merged = copy_value(DEFAULT_CONFIG)

        config_file = discover_config_file(path)
        if config_file is not None:
            merged = deep_merge(merged, read_toml_file(config_file))
        if include_env:
            merged = deep_merge(merged, parse_env_vars(ENV_PREFIX))
        if overrides:
            merged = deep_merge(merged, overrides)

        return cls._build(merged, path=config_file)

    @property
    def path(self) -> Path | None:
        """Return the file this configuration was read from, if any."""
        return self._path

    @property
    def storage(self) -> StorageConfig:
        """Return the storage configuration section."""
        return self._schema.storage

    @property
    def git(self) -> GitConfig:
        """Return the git configuration section."""
        return self._schema.git

    @property
    def identity(self) -> IdentityConfig:
        """Return the platform identity section."""
        return self._schema.identity

    @property
    def provider(self) -> ProviderConfig:
        """Return the provider configuration section."""
        return self._schema.provider

    @property
    def logging(self) -> LoggingConfig:
        """Return the logging configuration section."""
        return self._schema.logging

    @property
    def storage_root(self) -> Path:
        """Return the storage root, resolved relative to the config file."""
        root = Path(self.storage.root).expanduser()
        if not root.is_absolute() and self._path is not None:
            root = self._path.parent / root
        return root

    @overload
    def get(self, key: str) -> Any: ...

    @overload
    def get(self, key: str, default: T) -> T: ...

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value by dot-notation key.

        Examples:
            >>> config.get("git.default_branch")
            'main'
            >>> config.get("nonexistent", "fallback")
            'fallback'
        """
        current: Any = self._data
        for part in key.split("."):
            if not isinstance(current, dict) or part not in current:
                return default
            current = current[part]
        return current

    def to_dict(self) -> dict[str, Any]:
        """Return a deep copy of the merged configuration."""
        return copy_value(self._data)

    def to_toml(self) -> str:
        """Return the merged configuration as a TOML document."""
        return tomli_w.dumps(self.to_dict())
