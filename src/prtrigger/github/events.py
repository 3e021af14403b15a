"""Canonical pull-request event model.

Every webhook payload the adapters accept is normalized to one immutable
``Event``. The dispatch engine only ever sees this model, never a raw
payload.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class EventKind(str, Enum):
    """Kind of pull-request activity, one per trigger rule variant."""

    COMMENT = "comment"
    LABEL = "label"
    REVIEW = "review"
    UPDATE = "update"


# Actions worth dispatching per kind. None means every action is relevant.
RELEVANT_ACTIONS: dict[EventKind, frozenset[str] | None] = {
    EventKind.COMMENT: frozenset({"created", "edited"}),
    EventKind.LABEL: frozenset({"labeled"}),
    EventKind.REVIEW: None,
    EventKind.UPDATE: frozenset({"edited"}),
}


def is_relevant_action(kind: EventKind, action: str | None) -> bool:
    """Check whether ``action`` is one the given event kind dispatches on.

    Args:
        kind: Event kind.
        action: Webhook ``action`` value.

    Returns:
        True if events of this kind and action should reach the engine.
    """
    allowed = RELEVANT_ACTIONS[kind]
    if allowed is None:
        return True
    return action in allowed


class Event(BaseModel):
    """Normalized pull-request event.

    Only the fields of the event's own kind are populated: comments carry
    ``comment_*``, labels carry ``label_*``, reviews and updates carry just
    the pull request URL.
    """

    model_config = ConfigDict(frozen=True)

    kind: EventKind = Field(..., description="Which trigger rule variant this event feeds")
    action: str = Field(..., description="Webhook action, e.g. 'created' or 'labeled'")
    repository_url: str = Field(..., description="Repository html_url from the payload")
    pull_request_number: int = Field(..., description="Repository-scoped PR number")
    actor_login: str = Field(..., description="Login of the user who caused the event")

    delivery_id: str | None = Field(
        default=None,
        description="Webhook delivery identifier, if the transport supplied one",
    )
    pull_request_url: str | None = Field(default=None, description="PR html_url")

    comment_body: str | None = Field(default=None, description="Comment text")
    comment_url: str | None = Field(default=None, description="Comment html_url")
    comment_id: int | None = Field(default=None, description="Comment id, used for reactions")

    label_name: str | None = Field(default=None, description="Label added to the PR")
    label_url: str | None = Field(default=None, description="Label API url")

    received_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="When the event was normalized",
    )

    @property
    def action_is_relevant(self) -> bool:
        """Check whether this event's action is one its kind dispatches on."""
        return is_relevant_action(self.kind, self.action)

    @property
    def display_name(self) -> str:
        """Get a short human-readable description for logs."""
        return f"{self.kind.value}/{self.action} on PR #{self.pull_request_number} by {self.actor_login}"

    def log_context(self) -> dict[str, Any]:
        """Return the fields every dispatch log line carries."""
        return {
            "delivery_id": self.delivery_id,
            "event_kind": self.kind.value,
            "action": self.action,
            "pull_request": self.pull_request_number,
            "actor": self.actor_login,
        }
