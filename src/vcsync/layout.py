"""Tracked path conventions for the platform's content kinds.

The engine accepts any valid tracked path. These helpers keep the
platform's three call sites consistent with each other:

* project documents live at the repository root under their file name,
* data model content lives under ``objects/<object id>/``,
* universal content lives under ``<content type>/<content id>/``.
"""

import hashlib
from typing import Final

from vcsync.repository import normalize_tracked_path

OBJECTS_DIR: Final = "objects"
OBJECT_FILE: Final = "object.json"
FIELDS_DIR: Final = "fields"
CONTENT_FILE: Final = "content.json"
METADATA_FILE: Final = "metadata.json"


def document_path(file_name: str) -> str:
    """Return the tracked path of a project document."""
    return normalize_tracked_path(file_name)


def model_object_path(object_id: str) -> str:
    """Return the tracked path of a data model object definition.

    Example:
        >>> model_object_path("Account")
        'objects/Account/object.json'
    """
    return normalize_tracked_path(f"{OBJECTS_DIR}/{_segment(object_id)}/{OBJECT_FILE}")


def model_field_path(object_id: str, field_name: str) -> str:
    """Return the tracked path of one field of a data model object.

    Example:
        >>> model_field_path("Account", "Industry")
        'objects/Account/fields/Industry.json'
    """
    return normalize_tracked_path(
        f"{OBJECTS_DIR}/{_segment(object_id)}/{FIELDS_DIR}/{_segment(field_name)}.json"
    )


def universal_content_dir(content_type: str, content_id: str) -> str:
    """Return the tracked directory holding one universal content item."""
    return normalize_tracked_path(f"{_segment(content_type)}/{_segment(content_id)}")


def universal_content_path(content_type: str, content_id: str) -> str:
    """Return the tracked path of a universal content item's body.

    Example:
        >>> universal_content_path("requirements", "req-7")
        'requirements/req-7/content.json'
    """
    return f"{universal_content_dir(content_type, content_id)}/{CONTENT_FILE}"


def universal_metadata_path(content_type: str, content_id: str) -> str:
    """Return the tracked path of a universal content item's metadata."""
    return f"{universal_content_dir(content_type, content_id)}/{METADATA_FILE}"


def content_hash(content: bytes | str) -> str:
    """Return the SHA-256 hex digest used for duplicate-save detection.

    Example:
        >>> content_hash("")
        'e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855'
    """
    data = content.encode("utf-8") if isinstance(content, str) else content
    return hashlib.sha256(data).hexdigest()


def _segment(value: str) -> str:
    """Make a single path segment from an identifier."""
    segment = value.strip().replace("/", "_").replace("\\", "_")
    if segment in ("", ".", ".."):
        msg = f"Invalid path segment: {value!r}"
        raise ValueError(msg)
    return segment
