"""HTTP client for the remote hosting provider's REST API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Final

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from vcsync.exceptions import ProviderAPIError

if TYPE_CHECKING:
    from types import TracebackType
    from typing import Self

DEFAULT_API_URL: Final = "https://api.github.com"
DEFAULT_TIMEOUT: Final = 30.0
USER_AGENT: Final = "vcsync"


@dataclass(frozen=True, slots=True)
class ProviderRepository:
    """A repository as described by the provider API.

    Attributes:
        full_name: ``owner/name``.
        html_url: Browser URL.
        clone_url: HTTPS clone URL without credentials.
        private: Whether the repository is private.
        default_branch: Default branch reported by the provider, if any.
    """

    full_name: str
    html_url: str
    clone_url: str
    private: bool
    default_branch: str | None = None

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> Self:  # pyright: ignore[reportExplicitAny]
        """Build from a provider JSON payload."""
        return cls(
            full_name=str(data["full_name"]),
            html_url=str(data["html_url"]),
            clone_url=str(data["clone_url"]),
            private=bool(data.get("private", False)),
            default_branch=data.get("default_branch"),
        )


@retry(
    retry=retry_if_exception_type((httpx.ConnectError, httpx.TimeoutException)),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.5, min=0.5, max=2),
    reraise=True,
)
def _send(client: httpx.Client, request: httpx.Request) -> httpx.Response:
    """Send a request, retrying connection failures and timeouts.

    HTTP error statuses are returned, not retried.

    Raises:
        httpx.ConnectError: If connection fails after retries.
        httpx.TimeoutException: If the request times out after retries.
    """
    return client.send(request)


def _error_message(response: httpx.Response) -> str:
    """Return the provider's ``message`` field, or the status reason."""
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    return response.reason_phrase or f"HTTP {response.status_code}"


class ProviderClient:
    """Minimal client for repository lookup and creation.

    Example:
        >>> with ProviderClient(token) as client:
        ...     repo = client.create_repository("kb-project-42")
        >>> repo.private
        True
    """

    def __init__(
        self,
        token: str,
        *,
        api_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            token: Personal access token.
            api_url: Base URL of the REST API.
            timeout: Request timeout in seconds.
            transport: Custom httpx transport, used by tests.
        """
        self._client: httpx.Client = httpx.Client(
            base_url=api_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
            headers={
                "Authorization": f"token {token}",
                "Accept": "application/vnd.github+json",
                "User-Agent": USER_AGENT,
            },
        )

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        self._client.close()

    def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,  # pyright: ignore[reportExplicitAny]
    ) -> httpx.Response:
        request = self._client.build_request(method, path, json=json)
        try:
            return _send(self._client, request)
        except httpx.HTTPError as e:
            msg = f"Provider API request failed: {e}"
            raise ProviderAPIError(msg, url=str(request.url)) from e

    def get_repository(self, owner: str, name: str) -> ProviderRepository:
        """Look up an existing repository the token can access.

        Raises:
            ProviderAPIError: If the repository does not exist, access is
                denied, or the request fails.
        """
        response = self._request("GET", f"/repos/{owner}/{name}")
        if response.status_code == httpx.codes.NOT_FOUND:
            msg = f"Repository {owner}/{name} not found or not accessible with this token"
            raise ProviderAPIError(msg, status_code=response.status_code, url=str(response.url))
        if response.status_code == httpx.codes.FORBIDDEN:
            msg = f"Access to {owner}/{name} denied: {_error_message(response)}"
            raise ProviderAPIError(msg, status_code=response.status_code, url=str(response.url))
        if response.is_error:
            raise ProviderAPIError(
                _error_message(response),
                status_code=response.status_code,
                url=str(response.url),
            )
        return ProviderRepository.from_json(response.json())

    def create_repository(
        self,
        name: str,
        *,
        private: bool = True,
        description: str | None = None,
    ) -> ProviderRepository:
        """Create a repository owned by the authenticated user.

        The repository is created empty so the first push defines its history.

        Raises:
            ProviderAPIError: With the provider's message verbatim if the
                repository cannot be created.
        """
        payload: dict[str, Any] = {"name": name, "private": private, "auto_init": False}  # pyright: ignore[reportExplicitAny]
        if description:
            payload["description"] = description
        response = self._request("POST", "/user/repos", json=payload)
        if response.is_error:
            raise ProviderAPIError(
                _error_message(response),
                status_code=response.status_code,
                url=str(response.url),
            )
        return ProviderRepository.from_json(response.json())
