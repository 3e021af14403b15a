"""Source-hosting API access, event model and repository identities."""

from prtrigger.github.auth import AuthenticationError, get_github_token, mask_token
from prtrigger.github.client import (
    GitHubAPIError,
    GitHubClient,
    RateLimitError,
    TransientError,
)
from prtrigger.github.connector import GitHubConnector
from prtrigger.github.events import Event, EventKind, is_relevant_action
from prtrigger.github.permissions import (
    GitHubPermissionOracle,
    PermissionLevel,
    PermissionOracle,
)
from prtrigger.github.repository import (
    MalformedRepositoryUrlError,
    RepositoryIdentity,
    parse_repository_url,
)

__all__ = [
    "AuthenticationError",
    "Event",
    "EventKind",
    "GitHubAPIError",
    "GitHubClient",
    "GitHubConnector",
    "GitHubPermissionOracle",
    "MalformedRepositoryUrlError",
    "PermissionLevel",
    "PermissionOracle",
    "RateLimitError",
    "RepositoryIdentity",
    "TransientError",
    "get_github_token",
    "is_relevant_action",
    "mask_token",
    "parse_repository_url",
]
