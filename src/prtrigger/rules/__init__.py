"""Trigger rules and the dispatch engine."""

from prtrigger.rules.engine import DispatchEngine
from prtrigger.rules.schema import (
    AbortReason,
    DispatchResult,
    JobOutcome,
    SkipReason,
    TriggerDecision,
)
from prtrigger.rules.triggers import (
    DEFAULT_COMMENT_PATTERN,
    AnyTriggerRule,
    CommentTrigger,
    LabelTrigger,
    MinimumPermission,
    ReviewTrigger,
    TriggerRule,
    UpdateTrigger,
)

__all__ = [
    "DEFAULT_COMMENT_PATTERN",
    "AbortReason",
    "AnyTriggerRule",
    "CommentTrigger",
    "DispatchEngine",
    "DispatchResult",
    "JobOutcome",
    "LabelTrigger",
    "MinimumPermission",
    "ReviewTrigger",
    "SkipReason",
    "TriggerDecision",
    "TriggerRule",
    "UpdateTrigger",
]
