"""Trigger rule variants.

A job's branch configuration carries at most one rule per event kind.
Each rule answers two questions about an event:

- ``matches``: does the event satisfy the rule's predicate?
- ``authorize``: does the actor hold the rule's minimum permission?

The dispatch engine depends only on ``TriggerRule``; it never inspects
concrete variants.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Annotated, Any, ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from prtrigger.github.events import Event, EventKind
from prtrigger.github.permissions import PermissionLevel
from prtrigger.rules.matchers import match_action, match_kind, match_text, validate_pattern

if TYPE_CHECKING:
    from prtrigger.github.permissions import PermissionOracle
    from prtrigger.jobs.context import ElevatedContext
    from prtrigger.jobs.model import Job

DEFAULT_COMMENT_PATTERN = "^REBUILD$"


class MinimumPermission(str, Enum):
    """Authorization threshold a rule requires of the event's actor."""

    ADMIN = "ADMIN"
    WRITE = "WRITE"
    NONE = "NONE"

    @property
    def level(self) -> PermissionLevel:
        """Get the permission level this threshold requires."""
        return PermissionLevel[self.value]

    @property
    def label(self) -> str:
        """Get the human-readable option text."""
        return MINIMUM_PERMISSION_LABELS[self]


MINIMUM_PERMISSION_LABELS: dict[MinimumPermission, str] = {
    MinimumPermission.ADMIN: "Only users with admin permission",
    MinimumPermission.WRITE: "Only users that can push to the repository",
    MinimumPermission.NONE: "Allow untrusted users to trigger the build",
}


class TriggerRule(BaseModel, ABC):
    """Common part of all trigger rules.

    Attributes:
        minimum_permissions: Explicit threshold. When unset, the legacy
            ``allow_untrusted`` flag decides between NONE and WRITE.
        allow_untrusted: Deprecated switch kept for older configurations.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: ClassVar[EventKind]

    minimum_permissions: MinimumPermission | None = None
    allow_untrusted: bool = False

    @field_validator("minimum_permissions", mode="before")
    @classmethod
    def normalize_minimum_permissions(cls, v: Any) -> Any:
        """Accept any case and treat an empty string as unset."""
        if isinstance(v, str):
            v = v.strip().upper()
            return v or None
        return v

    @property
    def minimum_permission(self) -> MinimumPermission:
        """Get the effective authorization threshold."""
        if self.minimum_permissions is not None:
            return self.minimum_permissions
        return MinimumPermission.NONE if self.allow_untrusted else MinimumPermission.WRITE

    @property
    def rule_name(self) -> str:
        """Get a short name for logs."""
        return f"{self.kind.value}-trigger"

    @abstractmethod
    def explain(self, event: Event) -> tuple[bool, str]:
        """Evaluate the rule predicate against an event.

        Returns:
            Tuple of (matched, reason).
        """

    def matches(self, event: Event) -> bool:
        """Check whether the event satisfies this rule's predicate."""
        matched, _ = self.explain(event)
        return matched

    async def authorize(
        self,
        actor_login: str,
        job: Job,
        oracle: PermissionOracle,
        context: ElevatedContext,
    ) -> bool:
        """Check that the actor meets this rule's minimum permission.

        A NONE threshold authorizes without consulting the oracle.
        """
        required = self.minimum_permission
        if required is MinimumPermission.NONE:
            return True
        level = await oracle.permission_of(job, actor_login, context)
        return level >= required.level


class CommentTrigger(TriggerRule):
    """Build when a pull request comment matches ``comment_body``."""

    kind: ClassVar[EventKind] = EventKind.COMMENT

    type: Literal["comment"] = "comment"
    comment_body: str | None = None
    add_reaction: bool = False

    @field_validator("comment_body")
    @classmethod
    def validate_comment_body(cls, v: str | None) -> str | None:
        """Validate the comment pattern compiles."""
        if v:
            validate_pattern(v)
        return v

    @property
    def comment_pattern(self) -> str:
        """Get the effective pattern, defaulting to ``^REBUILD$``."""
        return self.comment_body or DEFAULT_COMMENT_PATTERN

    def explain(self, event: Event) -> tuple[bool, str]:
        matched, reason = match_kind(event, self.kind)
        if not matched:
            return False, reason
        return match_text(self.comment_pattern, event.comment_body, what="comment", missing_matches=True)


class LabelTrigger(TriggerRule):
    """Build when a label matching ``label`` is added to a pull request."""

    kind: ClassVar[EventKind] = EventKind.LABEL

    type: Literal["label"] = "label"
    label: Annotated[str, Field(min_length=1)]

    @field_validator("label")
    @classmethod
    def validate_label(cls, v: str) -> str:
        """Validate the label pattern compiles."""
        return validate_pattern(v)

    def explain(self, event: Event) -> tuple[bool, str]:
        matched, reason = match_kind(event, self.kind)
        if not matched:
            return False, reason
        matched, reason = match_action(event, "labeled")
        if not matched:
            return False, reason
        return match_text(self.label, event.label_name, what="label", missing_matches=False)


class ReviewTrigger(TriggerRule):
    """Build on any pull request review."""

    kind: ClassVar[EventKind] = EventKind.REVIEW

    type: Literal["review"] = "review"

    def explain(self, event: Event) -> tuple[bool, str]:
        return match_kind(event, self.kind)


class UpdateTrigger(TriggerRule):
    """Build when pull request metadata (title, body, base) is edited."""

    kind: ClassVar[EventKind] = EventKind.UPDATE

    type: Literal["update"] = "update"

    def explain(self, event: Event) -> tuple[bool, str]:
        matched, reason = match_kind(event, self.kind)
        if not matched:
            return False, reason
        return match_action(event, "edited")


AnyTriggerRule = Annotated[
    CommentTrigger | LabelTrigger | ReviewTrigger | UpdateTrigger,
    Field(discriminator="type"),
]
