"""Repository identity parsing.

A webhook payload names its repository by URL
(``repository.html_url``). This module turns that URL into a
``RepositoryIdentity`` the job matcher can compare against the
repository sources of the job registry.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

# scheme://host/owner/name[.git][/anything]
REPOSITORY_URL_PATTERN = re.compile(
    r"^(?P<scheme>[A-Za-z][A-Za-z0-9+.-]*)://"
    r"(?P<host>[^/\s]+)/"
    r"(?P<owner>[^/\s]+)/"
    r"(?P<name>[^/\s]+?)(?:\.git)?"
    r"(?:/.*)?$"
)


class MalformedRepositoryUrlError(ValueError):
    """Raised when a repository URL is not of the form scheme://host/owner/name."""

    def __init__(self, url: str) -> None:
        """Initialize the error.

        Args:
            url: The URL that failed to parse.
        """
        self.url = url
        super().__init__(f"Malformed repository URL: {url!r}")


@dataclass(frozen=True, eq=False)
class RepositoryIdentity:
    """Host, owner and name of a repository.

    Two identities are equal when owner and name match case-insensitively.
    The host is carried for logging only and does not take part in
    equality.
    """

    host: str
    owner: str
    name: str

    @property
    def full_name(self) -> str:
        """Return ``owner/name``."""
        return f"{self.owner}/{self.name}"

    def matches(self, owner: str, name: str) -> bool:
        """Check whether this identity names ``owner/name`` (case-insensitive)."""
        return self.owner.lower() == owner.lower() and self.name.lower() == name.lower()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RepositoryIdentity):
            return NotImplemented
        return self.matches(other.owner, other.name)

    def __hash__(self) -> int:
        return hash((self.owner.lower(), self.name.lower()))

    def __str__(self) -> str:
        return f"{self.host}:{self.full_name}"


def parse_repository_url(url: str | None) -> RepositoryIdentity:
    """Resolve a repository URL into a ``RepositoryIdentity``.

    Args:
        url: URL such as ``https://github.com/octocat/hello-world``.

    Returns:
        The parsed identity.

    Raises:
        MalformedRepositoryUrlError: If the URL lacks a scheme, a host or
            the two owner/name path segments.
    """
    if not url:
        raise MalformedRepositoryUrlError(str(url))

    match = REPOSITORY_URL_PATTERN.match(url.strip())
    if match is None or not match.group("name"):
        raise MalformedRepositoryUrlError(url)

    return RepositoryIdentity(
        host=match.group("host").lower(),
        owner=match.group("owner"),
        name=match.group("name"),
    )
