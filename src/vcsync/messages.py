"""Commit message conventions used by the platform.

The engine passes messages through unchanged; these helpers only keep the
wording consistent across call sites.
"""


def add_document(file_name: str) -> str:
    return f"Add {file_name}"


def update_document(file_name: str) -> str:
    return f"Update {file_name}"


def delete_document(file_name: str) -> str:
    return f"Delete {file_name}"


def update_model(model_name: str) -> str:
    return f"Update model: {model_name}"


def add_field(field_name: str, object_id: str) -> str:
    """Return the message for a field added to a data model object.

    Example:
        >>> add_field("Industry", "Account")
        'Add field: Industry to Account'
    """
    return f"Add field: {field_name} to {object_id}"


def update_field(field_name: str, object_id: str) -> str:
    return f"Update field: {field_name} in {object_id}"


def delete_field(field_name: str, object_id: str) -> str:
    return f"Delete field: {field_name} from {object_id}"


def save_content(content_type: str, title: str) -> str:
    return f"Save {content_type}: {title}"


def delete_content(content_type: str, content_id: str) -> str:
    return f"Delete {content_type}: {content_id}"
