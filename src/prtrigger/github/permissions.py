"""Collaborator permission levels and the permission oracle.

The oracle answers "what permission does this user have on the job's
repository". It never raises: any API, transport, authentication or
timeout failure is reported as ``PermissionLevel.UNKNOWN``, which fails
every authorization threshold except NONE.
"""

from __future__ import annotations

import asyncio
import logging
from enum import IntEnum
from typing import TYPE_CHECKING, Protocol

import httpx

from prtrigger.github.auth import AuthenticationError
from prtrigger.github.client import DEFAULT_TIMEOUT, GitHubAPIError

if TYPE_CHECKING:
    from prtrigger.github.connector import GitHubConnector
    from prtrigger.jobs.context import ElevatedContext
    from prtrigger.jobs.model import Job

logger = logging.getLogger(__name__)


class PermissionLevel(IntEnum):
    """Ordered permission scale. UNKNOWN sorts below everything."""

    UNKNOWN = -1
    NONE = 0
    WRITE = 1
    ADMIN = 2

    @classmethod
    def from_api(cls, permission: str | None) -> PermissionLevel:
        """Map the API ``permission`` string to a level.

        ``maintain`` counts as write access, ``triage`` and ``read`` as no
        push access. Anything unrecognised is UNKNOWN.
        """
        mapping = {
            "admin": cls.ADMIN,
            "maintain": cls.WRITE,
            "write": cls.WRITE,
            "triage": cls.NONE,
            "read": cls.NONE,
            "none": cls.NONE,
        }
        if permission is None:
            return cls.UNKNOWN
        return mapping.get(permission.lower(), cls.UNKNOWN)


class PermissionOracle(Protocol):
    """Anything that can report a user's permission for a job's repository."""

    async def permission_of(
        self,
        job: Job,
        actor_login: str,
        context: ElevatedContext,
    ) -> PermissionLevel:
        """Return the permission ``actor_login`` holds on ``job``'s repository."""
        ...


class GitHubPermissionOracle:
    """Permission oracle backed by the collaborator permission API.

    Each lookup connects with the job's own source API URL and
    credentials.
    """

    def __init__(self, connector: GitHubConnector, *, timeout: float = DEFAULT_TIMEOUT) -> None:
        """Initialize the oracle.

        Args:
            connector: Builds API clients scoped to a job's source.
            timeout: Upper bound in seconds for one lookup.
        """
        self._connector = connector
        self._timeout = timeout

    async def permission_of(
        self,
        job: Job,
        actor_login: str,
        context: ElevatedContext,
    ) -> PermissionLevel:
        """Look up ``actor_login``'s permission on the job's repository.

        Args:
            job: Job whose source repository and credentials are used.
            actor_login: User to look up.
            context: Elevated context of the current dispatch.

        Returns:
            The permission level, or UNKNOWN on any failure.
        """
        context.require()
        source = job.source

        client = self._connector.client_for(source, context)
        if client is None:
            logger.warning(
                "No API connection for %s, treating %s as unknown permission",
                job.full_name,
                actor_login,
            )
            return PermissionLevel.UNKNOWN

        try:
            async with client:
                raw = await asyncio.wait_for(
                    client.get_collaborator_permission(
                        source.repo_owner,
                        source.repository,
                        actor_login,
                    ),
                    timeout=self._timeout,
                )
        except TimeoutError:
            logger.warning(
                "Permission lookup for %s on %s timed out after %.1fs",
                actor_login,
                source.full_name,
                self._timeout,
            )
            return PermissionLevel.UNKNOWN
        except (AuthenticationError, GitHubAPIError, httpx.HTTPError) as e:
            logger.warning(
                "Permission lookup for %s on %s failed: %s",
                actor_login,
                source.full_name,
                e,
            )
            return PermissionLevel.UNKNOWN

        level = PermissionLevel.from_api(raw)
        logger.debug("User %s has %s permission on %s", actor_login, level.name, source.full_name)
        return level
