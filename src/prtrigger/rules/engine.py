"""Dispatch engine.

This module provides the DispatchEngine class, which decides for every
job tracking a pull request whether an event should build it:

- Repository resolution (a malformed URL aborts the event)
- Per-job rule lookup and predicate evaluation
- Authorization against the rule's minimum permission
- Deduplication so one event builds each job at most once
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING

from prtrigger.github.repository import MalformedRepositoryUrlError, parse_repository_url
from prtrigger.jobs.context import elevated_context
from prtrigger.jobs.matcher import find_jobs
from prtrigger.logging.audit import (
    log_build_triggered,
    log_dispatch_complete,
    log_job_skipped,
)
from prtrigger.rules.schema import (
    AbortReason,
    DispatchResult,
    JobOutcome,
    SkipReason,
    TriggerDecision,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from prtrigger.adapters.causes import BuildCause
    from prtrigger.github.events import Event
    from prtrigger.github.permissions import PermissionOracle
    from prtrigger.jobs.context import ElevatedContext
    from prtrigger.jobs.model import Job, JobRegistry
    from prtrigger.rules.triggers import TriggerRule

    CauseBuilder = Callable[[Event, TriggerRule], BuildCause]

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENT_AUTHORIZATIONS = 4


class DispatchEngine:
    """Matches one event against the registry and emits trigger decisions.

    The engine keeps no state between calls; every ``dispatch`` owns its
    elevated context, its dedup set and its result. Authorization lookups
    for candidate jobs run concurrently, bounded by
    ``max_concurrent_authorizations``, but decisions are assembled in
    registry enumeration order.
    """

    def __init__(
        self,
        registry: JobRegistry,
        oracle: PermissionOracle,
        *,
        max_concurrent_authorizations: int = DEFAULT_MAX_CONCURRENT_AUTHORIZATIONS,
    ) -> None:
        """Initialize dispatch engine.

        Args:
            registry: Job registry to match events against.
            oracle: Permission oracle for authorization checks.
            max_concurrent_authorizations: Upper bound on in-flight
                permission lookups per dispatch.
        """
        if max_concurrent_authorizations < 1:
            msg = "max_concurrent_authorizations must be at least 1"
            raise ValueError(msg)
        self._registry = registry
        self._oracle = oracle
        self._max_concurrent = max_concurrent_authorizations

    async def dispatch(self, event: Event, build_cause: CauseBuilder) -> DispatchResult:
        """Dispatch an event.

        Args:
            event: Normalized event.
            build_cause: Builds the cause attached to each decision.

        Returns:
            DispatchResult with decisions in enumeration order. Never
            raises for a malformed repository URL; the result is marked
            aborted instead.
        """
        started = time.monotonic()
        log_ctx = event.log_context()
        result = DispatchResult(event=event)

        try:
            repository = parse_repository_url(event.repository_url)
        except MalformedRepositoryUrlError as e:
            logger.warning("Aborting dispatch of %s: %s", event.display_name, e)
            result.abort_reason = AbortReason.MALFORMED_REPOSITORY_URL
            return result
        result.repository = repository

        if not event.action_is_relevant:
            logger.debug("Ignoring %s: action not relevant", event.display_name)
            result.abort_reason = AbortReason.IRRELEVANT_ACTION
            return result

        with elevated_context(f"dispatch {event.display_name}") as context:
            candidates: list[tuple[Job, TriggerRule]] = []
            for job in find_jobs(self._registry, repository, event.pull_request_number, context):
                result.jobs_matched += 1

                rule = job.configured_rule(event.kind)
                if rule is None:
                    self._skip(result, log_ctx, job, SkipReason.NO_MATCHING_RULE, "no rule configured")
                    continue

                matched, reason = rule.explain(event)
                if not matched:
                    self._skip(result, log_ctx, job, SkipReason.PREDICATE_REJECTED, reason)
                    continue

                candidates.append((job, rule))

            verdicts = await self._authorize_all(event, candidates, context)

        triggered: set[str] = set()
        for (job, rule), authorized in zip(candidates, verdicts, strict=True):
            if not authorized:
                self._skip(
                    result,
                    log_ctx,
                    job,
                    SkipReason.UNAUTHORIZED,
                    f"{event.actor_login} lacks {rule.minimum_permission.value} permission",
                )
                continue
            if job.full_name in triggered:
                self._skip(result, log_ctx, job, SkipReason.DUPLICATE_SUPPRESSED, "already triggered")
                continue
            triggered.add(job.full_name)

            cause = build_cause(event, rule)
            result.decisions.append(TriggerDecision(job=job, rule=rule, cause=cause))
            result.outcomes.append(JobOutcome(job_name=job.full_name))
            log_build_triggered(log_ctx, job.full_name, rule.rule_name, cause.short_description)

        if result.jobs_matched == 0:
            logger.debug(
                "No job found for PR #%d of %s",
                event.pull_request_number,
                repository.full_name,
            )

        log_dispatch_complete(
            log_ctx,
            repository=repository.full_name,
            jobs_matched=result.jobs_matched,
            jobs_triggered=len(result.decisions),
            jobs_skipped=len(result.outcomes) - len(result.decisions),
            duration_ms=(time.monotonic() - started) * 1000,
        )
        return result

    async def _authorize_all(
        self,
        event: Event,
        candidates: list[tuple[Job, TriggerRule]],
        context: ElevatedContext,
    ) -> list[bool]:
        """Authorize the actor for every candidate job.

        A lookup that raises counts as unknown permission for that job
        only; the other candidates are unaffected.

        Args:
            event: Event being dispatched.
            candidates: Jobs whose rule accepted the event.
            context: Elevated context of the current dispatch.

        Returns:
            One verdict per candidate, in candidate order.
        """
        if not candidates:
            return []

        semaphore = asyncio.Semaphore(self._max_concurrent)

        async def authorize(job: Job, rule: TriggerRule) -> bool:
            async with semaphore:
                return await rule.authorize(event.actor_login, job, self._oracle, context)

        outcomes = await asyncio.gather(
            *(authorize(job, rule) for job, rule in candidates),
            return_exceptions=True,
        )

        verdicts: list[bool] = []
        for (job, _), outcome in zip(candidates, outcomes, strict=True):
            if isinstance(outcome, Exception):
                logger.warning(
                    "Permission check for %s on %s failed, treating as unknown: %s",
                    event.actor_login,
                    job.full_name,
                    outcome,
                )
                verdicts.append(False)
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                verdicts.append(outcome)
        return verdicts

    @staticmethod
    def _skip(
        result: DispatchResult,
        log_ctx: dict[str, object],
        job: Job,
        reason: SkipReason,
        detail: str,
    ) -> None:
        result.outcomes.append(JobOutcome(job_name=job.full_name, reason=reason, detail=detail))
        log_job_skipped(log_ctx, job.full_name, reason.value, detail)
