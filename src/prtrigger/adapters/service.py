"""Webhook entry point.

``WebhookService.handle`` is what a webhook transport calls for every
delivery. It routes the payload to the adapters registered for the event
name, dispatches each accepted event, schedules one build per decision
and runs the adapter's post-trigger hook. It never raises: the transport
must acknowledge every delivery whatever the outcome.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from prtrigger.adapters.base import MalformedPayloadError
from prtrigger.adapters.comment import CommentAdapter
from prtrigger.adapters.label import LabelAdapter
from prtrigger.adapters.review import ReviewAdapter
from prtrigger.adapters.update import UpdateAdapter
from prtrigger.jobs.context import elevated_context
from prtrigger.logging.audit import log_event_received

if TYPE_CHECKING:
    from collections.abc import Iterable

    from prtrigger.adapters.base import EventAdapter
    from prtrigger.github.connector import GitHubConnector
    from prtrigger.github.events import Event
    from prtrigger.jobs.scheduler import BuildScheduler
    from prtrigger.rules.engine import DispatchEngine
    from prtrigger.rules.schema import DispatchResult, TriggerDecision

logger = logging.getLogger(__name__)


def default_adapters(connector: GitHubConnector | None = None) -> list[EventAdapter]:
    """Build the four standard adapters.

    Args:
        connector: Passed to the comment adapter for reactions.
    """
    return [CommentAdapter(connector), LabelAdapter(), ReviewAdapter(), UpdateAdapter()]


@dataclass
class DeliveryOutcome:
    """What happened to one webhook delivery."""

    event_name: str
    delivery_id: str | None = None
    dispatches: list[DispatchResult] = field(default_factory=list)
    scheduled: list[str] = field(default_factory=list)
    schedule_failures: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def ignored(self) -> bool:
        """Check whether no adapter accepted the payload."""
        return not self.dispatches and self.error is None

    @property
    def has_failures(self) -> bool:
        """Check for payload or scheduling errors."""
        return self.error is not None or bool(self.schedule_failures)


class WebhookService:
    """Routes webhook deliveries through adapters, engine and scheduler."""

    def __init__(
        self,
        engine: DispatchEngine,
        scheduler: BuildScheduler,
        adapters: Iterable[EventAdapter] | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            engine: Dispatch engine.
            scheduler: Receives one call per trigger decision.
            adapters: Event adapters. Defaults to the four standard
                adapters without reaction support.
        """
        self._engine = engine
        self._scheduler = scheduler
        self._routes: dict[str, list[EventAdapter]] = {}
        for adapter in adapters if adapters is not None else default_adapters():
            self._routes.setdefault(adapter.event_name, []).append(adapter)

    @property
    def event_names(self) -> list[str]:
        """Get the webhook event names this service handles."""
        return sorted(self._routes)

    async def handle(
        self,
        event_name: str,
        payload: dict[str, Any],
        *,
        delivery_id: str | None = None,
    ) -> DeliveryOutcome:
        """Handle one webhook delivery.

        Args:
            event_name: Webhook event name (``X-GitHub-Event``).
            payload: Deserialized payload.
            delivery_id: Delivery identifier (``X-GitHub-Delivery``).

        Returns:
            DeliveryOutcome describing what was dispatched and scheduled.
        """
        outcome = DeliveryOutcome(event_name=event_name, delivery_id=delivery_id)
        repository = payload.get("repository")
        log_event_received(
            event_name,
            delivery_id,
            payload.get("action") if isinstance(payload.get("action"), str) else None,
            repository.get("html_url") if isinstance(repository, dict) else None,
        )

        adapters = self._routes.get(event_name)
        if not adapters:
            logger.debug("No adapter for webhook event %r, ignoring", event_name)
            return outcome

        for adapter in adapters:
            try:
                event = adapter.normalize(payload, delivery_id=delivery_id)
            except MalformedPayloadError as e:
                logger.warning("Rejected %s delivery %s: %s", event_name, delivery_id, e)
                outcome.error = str(e)
                return outcome
            if event is None:
                continue

            try:
                result = await self._engine.dispatch(event, adapter.build_cause)
            except Exception as e:
                logger.exception("Dispatch of %s failed", event.display_name)
                outcome.error = str(e)
                continue
            outcome.dispatches.append(result)
            for decision in result.decisions:
                await self._run_decision(adapter, decision, event, outcome)

        return outcome

    async def _run_decision(
        self,
        adapter: EventAdapter,
        decision: TriggerDecision,
        event: Event,
        outcome: DeliveryOutcome,
    ) -> None:
        """Schedule one decision, then run the adapter's post-trigger hook."""
        job_name = decision.job.full_name
        try:
            self._scheduler.schedule(decision.job, decision.cause, delivery_id=event.delivery_id)
        except Exception:
            logger.exception("Failed to schedule build of %s", job_name)
            outcome.schedule_failures.append(job_name)
            return
        outcome.scheduled.append(job_name)

        try:
            with elevated_context(f"post-trigger {job_name}") as context:
                await adapter.post_trigger(decision, event, context)
        except Exception:
            logger.exception("Post-trigger step failed for %s", job_name)
