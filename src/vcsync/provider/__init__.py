"""Remote hosting provider integration."""

from vcsync.provider._client import ProviderClient, ProviderRepository
from vcsync.provider._provisioner import (
    RemoteInfo,
    RemoteProvisioner,
    authenticated_url,
    parse_repository_url,
)

__all__ = [
    "ProviderClient",
    "ProviderRepository",
    "RemoteInfo",
    "RemoteProvisioner",
    "authenticated_url",
    "parse_repository_url",
]
