"""Remote provisioning: link an entity repository to a hosted remote."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final
from urllib.parse import quote, urlsplit, urlunsplit

from git.exc import GitCommandError

from vcsync.exceptions import GitTimeoutError, RemoteError, RemoteURLError
from vcsync.provider._client import DEFAULT_API_URL, DEFAULT_TIMEOUT, ProviderClient
from vcsync.utils import get_default_logger, redact, strip_credentials

if TYPE_CHECKING:
    from collections.abc import Callable

    from structlog.typing import FilteringBoundLogger

    from vcsync.repository import RepositoryHandle
    from vcsync.sync import RemoteSynchronizer, SyncResult

    ClientFactory = Callable[[str], ProviderClient]

# git@host:owner/name(.git)
_SCP_URL_PATTERN: Final = re.compile(r"^[\w.-]+@(?P<host>[\w.-]+):(?P<path>[^\s]+)$")
_PATH_SEGMENTS: Final = 2


@dataclass(frozen=True, slots=True)
class RemoteInfo:
    """Result of attaching a remote.

    Attributes:
        url: Remote URL as configured, with credentials removed.
        web_url: Browser URL of the hosted repository.
        full_name: ``owner/name`` on the provider.
        created: True if the repository was created by this call.
        sync: Outcome of the initial sync.
    """

    url: str
    web_url: str
    full_name: str
    created: bool
    sync: SyncResult


def parse_repository_url(url: str) -> tuple[str, str, str]:
    """Split a repository URL into host, owner and name.

    Accepts HTTPS URLs (with or without credentials and ``.git``) and
    scp-style SSH URLs.

    Raises:
        RemoteURLError: If the URL does not name an owner and repository.

    Example:
        >>> parse_repository_url("https://github.com/acme/kb.git")
        ('github.com', 'acme', 'kb')
    """
    match = _SCP_URL_PATTERN.match(url.strip())
    if match:
        host, path = match.group("host"), match.group("path")
    else:
        parts = urlsplit(url.strip())
        host, path = parts.hostname or "", parts.path

    segments = [segment for segment in path.strip("/").split("/") if segment]
    if not host or len(segments) != _PATH_SEGMENTS:
        msg = f"Not a repository URL: {strip_credentials(url)}"
        raise RemoteURLError(msg)
    owner, name = segments
    name = name.removesuffix(".git")
    if not owner or not name:
        msg = f"Not a repository URL: {strip_credentials(url)}"
        raise RemoteURLError(msg)
    return host, owner, name


def authenticated_url(clone_url: str, token: str) -> str:
    """Embed a token in an HTTPS clone URL.

    The token is percent-encoded so reserved characters cannot change the
    host or path.

    Example:
        >>> authenticated_url("https://github.com/acme/kb.git", "tok")
        'https://tok@github.com/acme/kb.git'
    """
    parts = urlsplit(strip_credentials(clone_url))
    netloc = f"{quote(token, safe='')}@{parts.netloc}"
    return urlunsplit((parts.scheme or "https", netloc, parts.path, "", ""))


class RemoteProvisioner:
    """Creates or verifies a hosted repository and wires it up as a remote.

    Example:
        >>> provisioner = RemoteProvisioner(synchronizer)
        >>> info = provisioner.attach(handle, token, "kb-project-42")
        >>> info.url
        'https://github.com/acme/kb-project-42.git'
    """

    def __init__(
        self,
        synchronizer: RemoteSynchronizer,
        *,
        api_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_TIMEOUT,
        client_factory: ClientFactory | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the provisioner.

        Args:
            synchronizer: Synchronizer used for the initial sync.
            api_url: Base URL of the provider REST API.
            timeout: HTTP timeout in seconds.
            client_factory: Builds a ProviderClient from a token. Used by tests.
            logger: Logger; a stderr logger is created if omitted.
        """
        self._synchronizer: RemoteSynchronizer = synchronizer
        self._client_factory: ClientFactory = client_factory or (
            lambda token: ProviderClient(token, api_url=api_url, timeout=timeout)
        )
        self._logger: FilteringBoundLogger = (logger or get_default_logger()).bind(
            component="provisioner"
        )

    def attach(
        self,
        handle: RepositoryHandle,
        token: str,
        desired_name: str,
        existing_url: str | None = None,
    ) -> RemoteInfo:
        """Link a repository to a hosted remote and run the initial sync.

        With ``existing_url`` the repository must already exist and be
        accessible with the token. Without it a private repository named
        ``desired_name`` is created. Either way the remote URL is configured
        with the token embedded, replacing any previous URL.

        Args:
            handle: The local repository.
            token: Provider access token.
            desired_name: Name for a newly created repository.
            existing_url: URL of an existing repository to link instead.

        Returns:
            The configured remote and the initial sync outcome.

        Raises:
            RemoteURLError: If ``existing_url`` cannot be parsed.
            ProviderAPIError: If the provider rejects the lookup or creation.
            RemoteError: If the remote cannot be configured locally.
        """
        with self._client_factory(token) as client:
            if existing_url:
                _, owner, name = parse_repository_url(existing_url)
                hosted = client.get_repository(owner, name)
                created = False
            else:
                hosted = client.create_repository(desired_name, private=True)
                created = True

        remote_url = authenticated_url(hosted.clone_url, token)
        self._configure_remote(handle, remote_url, token)
        self._logger.info(
            "remote_configured",
            entity_id=handle.entity_id,
            url=strip_credentials(remote_url),
            created=created,
        )

        sync = self._synchronizer.sync(handle)
        return RemoteInfo(
            url=strip_credentials(remote_url),
            web_url=hosted.html_url,
            full_name=hosted.full_name,
            created=created,
            sync=sync,
        )

    def _configure_remote(self, handle: RepositoryHandle, url: str, token: str) -> None:
        name = self._synchronizer.remote_name
        with handle.lock.write():
            exists = handle.git.run("config", "--get", f"remote.{name}.url").ok
            args = ("remote", "set-url", name, url) if exists else ("remote", "add", name, url)
            try:
                _ = handle.git.check(*args)
            except (GitCommandError, GitTimeoutError) as e:
                msg = f"Failed to configure remote {name!r}: {redact(str(e), token)}"
                # the original error carries the token in its command line
                raise RemoteError(msg) from None
