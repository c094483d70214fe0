"""Validation of entity ids and tracked paths."""

import re
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import Final

from vcsync.exceptions import PathViolationError

_ENTITY_ID_PATTERN: Final = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]{0,254}$")


def validate_entity_id(entity_id: str) -> str:
    """Check that an entity id is usable as a single directory name.

    Args:
        entity_id: The entity id.

    Returns:
        The entity id, unchanged.

    Raises:
        PathViolationError: If the id is empty, contains separators, or is
            not made of letters, digits, dots, dashes and underscores.
    """
    if not _ENTITY_ID_PATTERN.match(entity_id) or entity_id.endswith("."):
        msg = f"Invalid entity id: {entity_id!r}"
        raise PathViolationError(msg, value=entity_id)
    return entity_id


def normalize_tracked_path(path: str | PurePosixPath) -> str:
    """Normalize a tracked path to a relative POSIX string.

    Args:
        path: Path relative to the repository root.

    Returns:
        The path with redundant separators and ``.`` segments removed.

    Raises:
        PathViolationError: If the path is absolute, empty, climbs out of
            the repository, or points into ``.git``.

    Example:
        >>> normalize_tracked_path("./docs//spec.md")
        'docs/spec.md'
    """
    text = str(path).replace("\\", "/")
    if not text or "\x00" in text or text.startswith("/") or PureWindowsPath(text).drive:
        msg = f"Tracked path must be relative: {str(path)!r}"
        raise PathViolationError(msg, value=str(path))

    parts = [part for part in text.split("/") if part not in ("", ".")]
    if not parts or ".." in parts or parts[0].lower() == ".git":
        msg = f"Tracked path escapes the repository: {str(path)!r}"
        raise PathViolationError(msg, value=str(path))

    return "/".join(parts)


def resolve_in_repository(root: Path, tracked_path: str) -> Path:
    """Return the absolute file path for a tracked path.

    Raises:
        PathViolationError: If a symlink would place the file outside root.
    """
    resolved_root = root.resolve()
    target = (resolved_root / tracked_path).resolve()
    if not target.is_relative_to(resolved_root):
        msg = f"Tracked path resolves outside the repository: {tracked_path!r}"
        raise PathViolationError(msg, value=tracked_path)
    return resolved_root / tracked_path
