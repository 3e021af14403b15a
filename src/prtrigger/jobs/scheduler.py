"""Build scheduler interface."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from prtrigger.adapters.causes import BuildCause
    from prtrigger.jobs.model import Job


class BuildScheduler(Protocol):
    """Enqueues a build of a job with an attached cause.

    Implementations raise on failure. They are not expected to collapse
    duplicate requests across events.
    """

    def schedule(self, job: Job, cause: BuildCause, *, delivery_id: str | None = None) -> None:
        """Enqueue one build of ``job``."""
        ...


@dataclass(frozen=True)
class ScheduledBuild:
    """A build request as seen by a scheduler."""

    job: Job
    cause: BuildCause
    delivery_id: str | None = None
    scheduled_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class RecordingScheduler:
    """Scheduler that only records requests, for dry runs."""

    def __init__(self) -> None:
        """Initialize with no recorded builds."""
        self.builds: list[ScheduledBuild] = []

    def schedule(self, job: Job, cause: BuildCause, *, delivery_id: str | None = None) -> None:
        """Record the request."""
        self.builds.append(ScheduledBuild(job=job, cause=cause, delivery_id=delivery_id))

    @property
    def job_names(self) -> list[str]:
        """Get the full names of the jobs recorded so far, in order."""
        return [build.job.full_name for build in self.builds]
