"""Default configuration values.

This module defines the built-in default configuration values that are used
when no other configuration sources provide values.

Note: DEFAULT_CONFIG is a plain dict so it can be passed straight to
deep_merge. The merge functions create copies, so the original is never
mutated.
"""

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {  # pyright: ignore[reportExplicitAny]
    "storage": {
        "root": "./data/repositories",
        "registry_size": 128,
    },
    "git": {
        "default_branch": "main",
        "secondary_branch": "master",
        "remote_name": "origin",
        "timeout_seconds": 60.0,
        "network_timeout_seconds": 120.0,
        "auto_push": True,
    },
    "identity": {
        "name": "vcsync Platform",
        "email": "platform@vcsync.local",
    },
    "provider": {
        "api_url": "https://api.github.com",
        "web_host": "github.com",
        "timeout_seconds": 30.0,
    },
    "logging": {
        "level": "info",
        "format": "json",
        "file": "",
    },
}
