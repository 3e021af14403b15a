"""Builds API clients scoped to a repository source.

Permission lookups and reactions must use the API endpoint and
credentials configured for the job's own source, not a global identity.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from prtrigger.github.client import DEFAULT_API_URL, DEFAULT_TIMEOUT, GitHubClient

if TYPE_CHECKING:
    import httpx

    from prtrigger.jobs.context import ElevatedContext
    from prtrigger.jobs.model import RepositorySource

logger = logging.getLogger(__name__)


class GitHubConnector:
    """Factory for per-source ``GitHubClient`` instances."""

    def __init__(
        self,
        *,
        api_url: str = DEFAULT_API_URL,
        token: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the connector.

        Args:
            api_url: API URL for sources that do not set their own.
            token: Credentials for sources that do not set their own.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport (used by tests).
        """
        self._api_url = api_url
        self._token = token
        self._timeout = timeout
        self._transport = transport

    def client_for(self, source: RepositorySource, context: ElevatedContext) -> GitHubClient | None:
        """Build a client for a repository source.

        Args:
            source: Source whose endpoint and credentials to use.
            context: Elevated context of the current dispatch.

        Returns:
            An unopened client, or None if the source has no credentials.
        """
        context.require()
        token = source.token or self._token
        if not token:
            logger.debug("No credentials configured for source %s", source.id)
            return None
        return GitHubClient(
            token,
            base_url=source.api_url or self._api_url,
            timeout=self._timeout,
            transport=self._transport,
        )
