"""Job registry model, job matching and build scheduling."""

from prtrigger.jobs.context import ContextRevokedError, ElevatedContext, elevated_context
from prtrigger.jobs.matcher import find_jobs
from prtrigger.jobs.model import (
    InMemoryJobRegistry,
    Job,
    JobRegistry,
    OwnerKind,
    RepositorySource,
    SourceOwner,
)
from prtrigger.jobs.scheduler import BuildScheduler, RecordingScheduler, ScheduledBuild

__all__ = [
    "BuildScheduler",
    "ContextRevokedError",
    "ElevatedContext",
    "InMemoryJobRegistry",
    "Job",
    "JobRegistry",
    "OwnerKind",
    "RecordingScheduler",
    "RepositorySource",
    "ScheduledBuild",
    "SourceOwner",
    "elevated_context",
    "find_jobs",
]
