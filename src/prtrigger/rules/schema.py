"""Dispatch result models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from prtrigger.adapters.causes import BuildCause
    from prtrigger.github.events import Event
    from prtrigger.github.repository import RepositoryIdentity
    from prtrigger.jobs.model import Job
    from prtrigger.rules.triggers import TriggerRule


class SkipReason(str, Enum):
    """Why a matched job was not triggered."""

    NO_MATCHING_RULE = "no_matching_rule"
    PREDICATE_REJECTED = "predicate_rejected"
    UNAUTHORIZED = "unauthorized"
    DUPLICATE_SUPPRESSED = "duplicate_suppressed"


class AbortReason(str, Enum):
    """Why a whole event was not dispatched."""

    MALFORMED_REPOSITORY_URL = "malformed_repository_url"
    IRRELEVANT_ACTION = "irrelevant_action"


@dataclass(frozen=True)
class TriggerDecision:
    """A job that should build, with the rule that fired and the cause to attach."""

    job: Job
    rule: TriggerRule
    cause: BuildCause


@dataclass(frozen=True)
class JobOutcome:
    """What happened to one matched job during a dispatch."""

    job_name: str
    reason: SkipReason | None = None
    detail: str = ""

    @property
    def triggered(self) -> bool:
        """Check whether the job was triggered."""
        return self.reason is None


@dataclass
class DispatchResult:
    """Outcome of dispatching one event."""

    event: Event
    repository: RepositoryIdentity | None = None
    abort_reason: AbortReason | None = None
    decisions: list[TriggerDecision] = field(default_factory=list)
    outcomes: list[JobOutcome] = field(default_factory=list)
    jobs_matched: int = 0

    @property
    def aborted(self) -> bool:
        """Check whether the event was rejected before job matching."""
        return self.abort_reason is not None

    @property
    def has_decisions(self) -> bool:
        """Check if any job should build."""
        return len(self.decisions) > 0

    @property
    def triggered_job_names(self) -> list[str]:
        """Get the full names of the jobs to build, in order."""
        return [d.job.full_name for d in self.decisions]

    def skipped(self, reason: SkipReason) -> list[str]:
        """Get the names of jobs skipped for ``reason``."""
        return [o.job_name for o in self.outcomes if o.reason is reason]
