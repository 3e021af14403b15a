"""Event adapter base class.

An adapter turns one kind of raw webhook payload into the canonical
``Event``, builds the cause attached to triggered builds, and may run a
side effect once a build was scheduled.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar

from prtrigger.github.events import is_relevant_action

if TYPE_CHECKING:
    from prtrigger.adapters.causes import BuildCause
    from prtrigger.github.events import Event, EventKind
    from prtrigger.jobs.context import ElevatedContext
    from prtrigger.rules.schema import TriggerDecision
    from prtrigger.rules.triggers import TriggerRule

logger = logging.getLogger(__name__)


class MalformedPayloadError(ValueError):
    """Raised when a required payload field is missing or has the wrong type."""

    def __init__(self, event_name: str, path: str, message: str) -> None:
        self.event_name = event_name
        self.path = path
        super().__init__(f"{event_name} payload: {path} {message}")


def payload_field(
    payload: dict[str, Any],
    path: str,
    expected: type | tuple[type, ...],
    *,
    event_name: str,
    required: bool = True,
) -> Any:
    """Read a dotted path from a payload.

    Args:
        payload: Raw webhook payload.
        path: Dotted path, e.g. ``"comment.user.login"``.
        expected: Type (or types) the value must have.
        event_name: Webhook event name, for error messages.
        required: If False, a missing or null value returns None.

    Returns:
        The value.

    Raises:
        MalformedPayloadError: If a required value is missing, or any
            present value has the wrong type.
    """
    value: Any = payload
    for key in path.split("."):
        if not isinstance(value, dict):
            msg = "is not an object"
            raise MalformedPayloadError(event_name, path, msg)
        value = value.get(key)
        if value is None:
            if required:
                raise MalformedPayloadError(event_name, path, "is missing")
            return None

    # bool is an int subclass
    if isinstance(value, bool) and expected is int:
        raise MalformedPayloadError(event_name, path, "has the wrong type")
    if not isinstance(value, expected):
        raise MalformedPayloadError(event_name, path, f"has the wrong type ({type(value).__name__})")
    return value


class EventAdapter(ABC):
    """Translates one kind of webhook payload for the dispatch engine."""

    kind: ClassVar[EventKind]
    event_name: ClassVar[str]

    def normalize(self, payload: dict[str, Any], *, delivery_id: str | None = None) -> Event | None:
        """Turn a payload into an event, or reject it.

        Payloads with an irrelevant action, or that are not about a pull
        request, are rejected before any job is looked at.

        Args:
            payload: Raw webhook payload.
            delivery_id: Webhook delivery identifier.

        Returns:
            The event, or None if the payload is rejected.

        Raises:
            MalformedPayloadError: If a required field is missing.
        """
        action = payload_field(payload, "action", str, event_name=self.event_name, required=False)
        if not is_relevant_action(self.kind, action):
            logger.debug("%s adapter ignoring action %r", self.kind.value, action)
            return None
        return self._extract(payload, action or "", delivery_id)

    @abstractmethod
    def _extract(self, payload: dict[str, Any], action: str, delivery_id: str | None) -> Event | None:
        """Build the event from a payload whose action is relevant."""

    @abstractmethod
    def build_cause(self, event: Event, rule: TriggerRule) -> BuildCause:
        """Build the cause attached to a triggered build."""

    async def post_trigger(
        self,
        decision: TriggerDecision,
        event: Event,
        context: ElevatedContext,
    ) -> None:
        """Run after the decision's build was scheduled. No-op by default.

        Implementations log failures instead of raising.
        """
        return None

    def _field(self, payload: dict[str, Any], path: str, expected: type | tuple[type, ...] = str) -> Any:
        return payload_field(payload, path, expected, event_name=self.event_name)

    def _optional(self, payload: dict[str, Any], path: str, expected: type | tuple[type, ...] = str) -> Any:
        return payload_field(payload, path, expected, event_name=self.event_name, required=False)
