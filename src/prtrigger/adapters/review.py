"""Adapter for pull request reviews."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

from prtrigger.adapters.base import EventAdapter
from prtrigger.adapters.causes import ReviewCause
from prtrigger.github.events import Event, EventKind

if TYPE_CHECKING:
    from prtrigger.rules.triggers import TriggerRule


class ReviewAdapter(EventAdapter):
    """``pull_request_review`` webhooks, any action."""

    kind: ClassVar[EventKind] = EventKind.REVIEW
    event_name: ClassVar[str] = "pull_request_review"

    def _extract(self, payload: dict[str, Any], action: str, delivery_id: str | None) -> Event:
        return Event(
            kind=self.kind,
            action=action,
            repository_url=self._field(payload, "repository.html_url"),
            pull_request_number=self._field(payload, "pull_request.number", int),
            actor_login=self._field(payload, "sender.login"),
            delivery_id=delivery_id,
            pull_request_url=self._optional(payload, "pull_request.html_url"),
        )

    def build_cause(self, event: Event, rule: TriggerRule) -> ReviewCause:
        return ReviewCause(review_author=event.actor_login, pull_request_url=event.pull_request_url)
