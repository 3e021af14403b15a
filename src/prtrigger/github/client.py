"""Async source-hosting API client.

Covers the two calls the trigger needs:
- collaborator permission lookup (authorization)
- adding a reaction to an issue comment (acknowledgement)

The client never retries. Callers in the dispatch path treat any failure
as final for the current event.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import httpx

from prtrigger import __version__
from prtrigger.github.auth import AuthenticationError, mask_token

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_TIMEOUT = 10.0


class GitHubAPIError(Exception):
    """Raised for API errors that are not authentication or rate limiting."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        response_body: dict[str, Any] | None = None,
    ) -> None:
        """Initialize API error.

        Args:
            message: Error description.
            status_code: HTTP status code.
            response_body: Response JSON body if available.
        """
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body or {}


class RateLimitError(GitHubAPIError):
    """Raised when the API rate limit (primary or secondary) is exhausted."""

    def __init__(
        self,
        message: str,
        *,
        reset_at: datetime | None = None,
        is_secondary: bool = False,
    ) -> None:
        """Initialize rate limit error.

        Args:
            message: Error description.
            reset_at: When the rate limit resets.
            is_secondary: Whether this is a secondary (abuse) rate limit.
        """
        super().__init__(message, status_code=403)
        self.reset_at = reset_at
        self.is_secondary = is_secondary


class TransientError(GitHubAPIError):
    """Raised for 5xx responses."""


@dataclass
class RateLimitInfo:
    """API rate limit information from response headers."""

    limit: int
    remaining: int
    reset_at: datetime

    @classmethod
    def from_headers(cls, headers: httpx.Headers) -> RateLimitInfo:
        """Parse rate limit info from response headers."""
        return cls(
            limit=int(headers.get("X-RateLimit-Limit", 5000)),
            remaining=int(headers.get("X-RateLimit-Remaining", 5000)),
            reset_at=datetime.fromtimestamp(int(headers.get("X-RateLimit-Reset", 0)), tz=UTC),
        )


class GitHubClient:
    """Async client for a single API endpoint and credential.

    Supports both context manager and standalone usage::

        async with GitHubClient(token, base_url=api_url) as client:
            permission = await client.get_collaborator_permission("o", "r", "user")
    """

    def __init__(
        self,
        token: str | None = None,
        *,
        base_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = f"prtrigger/{__version__}",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            token: API token. Anonymous requests are made when None.
            base_url: API base URL.
            timeout: Per-request timeout in seconds.
            user_agent: User-Agent header value.
            transport: Optional httpx transport (used by tests).
        """
        self._token = token
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._user_agent = user_agent
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._rate_limit: RateLimitInfo | None = None

    @property
    def base_url(self) -> str:
        """Get the API base URL."""
        return self._base_url

    @property
    def headers(self) -> dict[str, str]:
        """Get default request headers."""
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": self._user_agent,
        }
        if self._token:
            headers["Authorization"] = f"token {self._token}"
        return headers

    @property
    def rate_limit(self) -> RateLimitInfo | None:
        """Get the rate limit seen on the last response."""
        return self._rate_limit

    async def __aenter__(self) -> GitHubClient:
        """Enter async context."""
        await self._ensure_client()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Exit async context."""
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _ensure_client(self) -> httpx.AsyncClient:
        """Ensure we have an active client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers=self.headers,
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    def _handle_response(self, response: httpx.Response) -> dict[str, Any]:
        """Map an API response to parsed JSON or an exception.

        Args:
            response: HTTP response.

        Returns:
            Parsed JSON body (empty dict for empty bodies).

        Raises:
            AuthenticationError: For 401 responses.
            RateLimitError: For rate-limited 403/429 responses.
            TransientError: For 5xx responses.
            GitHubAPIError: For any other non-2xx response.
        """
        if "X-RateLimit-Remaining" in response.headers:
            self._rate_limit = RateLimitInfo.from_headers(response.headers)

        if 200 <= response.status_code < 300:
            if not response.content:
                return {}
            try:
                body = response.json()
            except ValueError as e:
                raise GitHubAPIError(
                    "API returned a non-JSON body",
                    status_code=response.status_code,
                ) from e
            return body if isinstance(body, dict) else {"items": body}

        try:
            body = response.json() if response.content else {}
        except ValueError:
            body = {"message": response.text}
        message = str(body.get("message", "")) if isinstance(body, dict) else ""

        if response.status_code == 401:
            raise AuthenticationError(
                "API authentication failed",
                status_code=401,
            )

        if response.status_code in (403, 429):
            lowered = message.lower()
            exhausted = self._rate_limit is not None and self._rate_limit.remaining == 0
            if "rate limit" in lowered or "abuse" in lowered or exhausted:
                raise RateLimitError(
                    f"API rate limit exceeded: {message}",
                    reset_at=self._rate_limit.reset_at if self._rate_limit else None,
                    is_secondary="secondary" in lowered or "abuse" in lowered,
                )

        if response.status_code >= 500:
            raise TransientError(
                f"API server error: {response.status_code}",
                status_code=response.status_code,
            )

        raise GitHubAPIError(
            f"API error: {response.status_code} - {message or 'Unknown error'}",
            status_code=response.status_code,
            response_body=body if isinstance(body, dict) else None,
        )

    async def get(self, path: str, *, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """Make a GET request.

        Args:
            path: API path (e.g., "/repos/o/r").
            params: Query parameters.

        Returns:
            Parsed JSON response.
        """
        client = await self._ensure_client()
        response = await client.get(path, params=params)
        return self._handle_response(response)

    async def post(self, path: str, *, json: dict[str, Any] | None = None) -> dict[str, Any]:
        """Make a POST request.

        Args:
            path: API path.
            json: JSON request body.

        Returns:
            Parsed JSON response.
        """
        client = await self._ensure_client()
        response = await client.post(path, json=json)
        return self._handle_response(response)

    async def get_collaborator_permission(self, owner: str, repo: str, login: str) -> str | None:
        """Get a user's permission on a repository.

        Args:
            owner: Repository owner.
            repo: Repository name.
            login: User login.

        Returns:
            The ``permission`` field (``admin``, ``write``, ``read``, ``none``)
            or None if the response did not carry one.
        """
        data = await self.get(f"/repos/{owner}/{repo}/collaborators/{login}/permission")
        permission = data.get("permission")
        logger.debug("Permission of %s on %s/%s: %s", login, owner, repo, permission)
        return permission if isinstance(permission, str) else None

    async def create_comment_reaction(
        self,
        owner: str,
        repo: str,
        comment_id: int,
        content: str = "+1",
    ) -> dict[str, Any]:
        """Add a reaction to an issue (or pull request) comment.

        Args:
            owner: Repository owner.
            repo: Repository name.
            comment_id: Issue comment id.
            content: Reaction content, e.g. "+1".

        Returns:
            The created reaction.
        """
        return await self.post(
            f"/repos/{owner}/{repo}/issues/comments/{comment_id}/reactions",
            json={"content": content},
        )

    def __repr__(self) -> str:
        """Get string representation."""
        return f"GitHubClient(base_url={self._base_url!r}, token={mask_token(self._token)!r})"
