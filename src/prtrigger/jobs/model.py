"""Job registry model.

The registry is organized like a CI server's folder tree:

- a ``SourceOwner`` is either a multibranch project (one or more
  repository sources, one job per discovered head) or an organization
  folder (an umbrella over many repositories whose jobs each originate
  from exactly one of its sources);
- a ``RepositorySource`` points at one repository on one API endpoint,
  with its own credentials;
- a ``Job`` builds one head (a branch or a pull request) and carries the
  trigger rules configured for that head.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Protocol
from urllib.parse import urlsplit

from prtrigger.github.repository import RepositoryIdentity

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from prtrigger.config.schema import Config
    from prtrigger.github.events import EventKind
    from prtrigger.jobs.context import ElevatedContext
    from prtrigger.rules.triggers import TriggerRule


class OwnerKind(str, Enum):
    """How a source owner groups its repositories."""

    MULTIBRANCH = "multibranch"
    ORGANIZATION = "organization"


@dataclass(frozen=True)
class RepositorySource:
    """One repository a source owner discovers heads from."""

    id: str
    repo_owner: str
    repository: str
    api_url: str | None = None
    token: str | None = field(default=None, repr=False)

    @property
    def full_name(self) -> str:
        """Return ``owner/repository``."""
        return f"{self.repo_owner}/{self.repository}"

    def matches(self, identity: RepositoryIdentity) -> bool:
        """Check whether this source is the repository ``identity`` names."""
        return identity.matches(self.repo_owner, self.repository)


@dataclass(frozen=True)
class Job:
    """A buildable head with its trigger rules."""

    name: str
    owner_name: str
    source: RepositorySource
    pull_request_number: int | None = None
    triggers: tuple[TriggerRule, ...] = ()

    @property
    def full_name(self) -> str:
        """Return ``owner/job``, unique across the registry."""
        return f"{self.owner_name}/{self.name}"

    @property
    def owner_repository(self) -> RepositoryIdentity:
        """Get the identity of the repository this job builds."""
        return RepositoryIdentity(
            host=urlsplit(self.source.api_url or "").hostname or "",
            owner=self.source.repo_owner,
            name=self.source.repository,
        )

    def tracks(self, pull_request_number: int) -> bool:
        """Check whether this job's head is exactly the given pull request."""
        return self.pull_request_number is not None and self.pull_request_number == pull_request_number

    def configured_rule(self, kind: EventKind) -> TriggerRule | None:
        """Get the first trigger rule of the given kind, if any."""
        for rule in self.triggers:
            if rule.kind is kind:
                return rule
        return None


@dataclass(frozen=True)
class SourceOwner:
    """A multibranch project or organization folder."""

    name: str
    kind: OwnerKind
    sources: tuple[RepositorySource, ...] = ()
    jobs: tuple[Job, ...] = ()

    @property
    def is_organization(self) -> bool:
        """Check whether this owner is an umbrella over several repositories."""
        return self.kind is OwnerKind.ORGANIZATION

    def all_jobs(self, context: ElevatedContext) -> Iterator[Job]:
        """Enumerate every job of this owner.

        Args:
            context: Elevated context of the current dispatch.
        """
        context.require()
        yield from self.jobs


class JobRegistry(Protocol):
    """Read access to the registered source owners."""

    def owners(self, context: ElevatedContext) -> Iterable[SourceOwner]:
        """Enumerate every source owner of the installation."""
        ...


class InMemoryJobRegistry:
    """Job registry held in memory, usually built from configuration."""

    def __init__(self, owners: Iterable[SourceOwner]) -> None:
        """Initialize the registry.

        Args:
            owners: Source owners in enumeration order.
        """
        self._owners = tuple(owners)

    def owners(self, context: ElevatedContext) -> Iterable[SourceOwner]:
        """Enumerate every source owner."""
        context.require()
        return iter(self._owners)

    @property
    def job_count(self) -> int:
        """Get the number of registered jobs."""
        return sum(len(owner.jobs) for owner in self._owners)

    @property
    def source_count(self) -> int:
        """Get the number of registered repository sources."""
        return sum(len(owner.sources) for owner in self._owners)

    @classmethod
    def from_config(cls, config: Config) -> InMemoryJobRegistry:
        """Build the registry from validated configuration.

        Sources without their own API URL or token inherit the ``github``
        section's values.

        Args:
            config: Validated configuration.

        Returns:
            The registry.
        """
        owners: list[SourceOwner] = []
        for owner_cfg in config.owners:
            sources = {
                src.id: RepositorySource(
                    id=src.id,
                    repo_owner=src.repo_owner,
                    repository=src.repository,
                    api_url=src.api_url or config.github.api_url,
                    token=src.token or config.github.token,
                )
                for src in owner_cfg.sources
            }
            jobs = tuple(
                Job(
                    name=job_cfg.name,
                    owner_name=owner_cfg.name,
                    source=sources[job_cfg.source],
                    pull_request_number=job_cfg.pull_request,
                    triggers=tuple(job_cfg.triggers),
                )
                for job_cfg in owner_cfg.jobs
            )
            owners.append(
                SourceOwner(
                    name=owner_cfg.name,
                    kind=owner_cfg.kind,
                    sources=tuple(sources.values()),
                    jobs=jobs,
                )
            )
        return cls(owners)
