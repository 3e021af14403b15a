"""Job matcher: which jobs build a given pull request?"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

    from prtrigger.github.repository import RepositoryIdentity
    from prtrigger.jobs.context import ElevatedContext
    from prtrigger.jobs.model import Job, JobRegistry

logger = logging.getLogger(__name__)


def find_jobs(
    registry: JobRegistry,
    repository: RepositoryIdentity,
    pull_request_number: int,
    context: ElevatedContext,
) -> Iterator[Job]:
    """Lazily enumerate the jobs whose head is the given pull request.

    Walks every source owner; for each source naming ``repository``
    (owner and name, case-insensitive) it yields the owner's jobs whose
    tracked head is exactly ``pull_request_number``. In an organization
    folder a job is only attributed to the source it originates from.

    A job reachable through two matching sources is yielded twice; the
    caller deduplicates.

    Args:
        registry: Job registry to search.
        repository: Repository the event happened on.
        pull_request_number: Pull request number.
        context: Elevated context of the current dispatch.

    Yields:
        Matching jobs in registry enumeration order.
    """
    for owner in registry.owners(context):
        for source in owner.sources:
            if not source.matches(repository):
                continue
            for job in owner.all_jobs(context):
                if owner.is_organization and job.source.id != source.id:
                    continue
                if job.tracks(pull_request_number):
                    logger.debug(
                        "Job %s tracks PR #%d of %s",
                        job.full_name,
                        pull_request_number,
                        repository.full_name,
                    )
                    yield job
