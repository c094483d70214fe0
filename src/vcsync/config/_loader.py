# pyright: reportAny=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""Raw configuration sources: TOML files and VCSYNC_ environment variables.

Everything here works on plain dictionaries. Validation into typed models
happens later in :mod:`vcsync.config._config`.
"""

from __future__ import annotations

import json
import os
import tomllib
from typing import TYPE_CHECKING, Any

from vcsync.exceptions import ConfigLoadError

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

ENV_PREFIX = "VCSYNC_"

# Variables under the prefix that are not configuration keys.
_RESERVED_ENV_KEYS = frozenset({"CONFIG", "DEBUG", "TOKEN"})

_TRUTHY = frozenset({"true", "yes", "on"})
_FALSY = frozenset({"false", "no", "off"})


def read_toml_file(path: Path) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Load one TOML document from disk.

    A missing file surfaces as the usual ``FileNotFoundError``; callers that
    treat the file as optional check for it first.

    Raises:
        ConfigLoadError: The document is not valid TOML. Line and column are
            attached when tomllib reports them.
    """
    try:
        with path.open("rb") as stream:
            return tomllib.load(stream)
    except tomllib.TOMLDecodeError as e:
        msg = f"Invalid TOML in {path}: {e}"
        raise ConfigLoadError(
            msg,
            path=path,
            line=getattr(e, "lineno", None),
            column=getattr(e, "colno", None),
        ) from e


def copy_value(value: Any) -> Any:  # pyright: ignore[reportExplicitAny]
    """Copy nested tables and arrays so callers never share mutable state."""
    if isinstance(value, dict):
        return {key: copy_value(item) for key, item in value.items()}
    if isinstance(value, list):
        return list(map(copy_value, value))
    return value


def deep_merge(
    base: Mapping[str, Any],  # pyright: ignore[reportExplicitAny]
    override: Mapping[str, Any],  # pyright: ignore[reportExplicitAny]
) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Layer ``override`` on top of ``base`` and return a fresh dictionary.

    Tables merge key by key. Any other value in ``override``, arrays
    included, wins outright. Neither argument is mutated.

    Example:
        >>> deep_merge({"git": {"timeout_seconds": 60, "auto_push": True}},
        ...            {"git": {"auto_push": False}})
        {'git': {'timeout_seconds': 60, 'auto_push': False}}
    """
    merged = copy_value(dict(base))
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = copy_value(value)
    return merged


def parse_env_vars(
    prefix: str = ENV_PREFIX,
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Collect configuration overrides from environment variables.

    ``VCSYNC_GIT__TIMEOUT_SECONDS=30`` becomes ``{"git": {"timeout_seconds": 30}}``:
    the prefix is dropped, double underscores separate table levels and
    names are lowercased. ``VCSYNC_TOKEN`` and the other reserved names are
    skipped because they are not configuration keys.
    """
    env = os.environ if environ is None else environ
    overrides: dict[str, Any] = {}  # pyright: ignore[reportExplicitAny]

    for name, raw in env.items():
        suffix = name.removeprefix(prefix)
        if suffix == name or not suffix or suffix in _RESERVED_ENV_KEYS:
            continue
        set_nested_key(overrides, suffix.lower().replace("__", "."), parse_string_value(raw))

    return overrides


def parse_string_value(value: str) -> Any:  # pyright: ignore[reportExplicitAny]
    """Infer a typed value from an environment string.

    Booleans first, then integers, then decimals, then JSON arrays and
    objects. Anything else stays a string.

    Examples:
        >>> parse_string_value("off")
        False
        >>> parse_string_value("120")
        120
        >>> parse_string_value("0.5")
        0.5
        >>> parse_string_value("main")
        'main'
    """
    folded = value.strip().lower()
    if folded in _TRUTHY:
        return True
    if folded in _FALSY:
        return False

    try:
        return int(value)
    except ValueError:
        pass
    if "." in value:
        try:
            return float(value)
        except ValueError:
            pass

    if value[:1] + value[-1:] in ("[]", "{}"):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return value

    return value


def set_nested_key(
    d: dict[str, Any],  # pyright: ignore[reportExplicitAny]
    key_path: str,
    value: Any,  # pyright: ignore[reportExplicitAny]
) -> None:
    """Assign ``value`` at a dotted path, replacing non-table values on the way.

    Example:
        >>> d = {}
        >>> set_nested_key(d, "git.auto_push", False)
        >>> d
        {'git': {'auto_push': False}}
    """
    *tables, leaf = key_path.split(".")
    node = d
    for table in tables:
        child = node.get(table)
        if not isinstance(child, dict):
            child = node[table] = {}
        node = child
    node[leaf] = value
