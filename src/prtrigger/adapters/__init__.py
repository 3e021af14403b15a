"""Event adapters, build causes and the webhook service."""

from prtrigger.adapters.base import EventAdapter, MalformedPayloadError, payload_field
from prtrigger.adapters.causes import (
    BuildCause,
    CommentCause,
    LabelCause,
    ReviewCause,
    UpdateCause,
)
from prtrigger.adapters.comment import CommentAdapter
from prtrigger.adapters.label import LabelAdapter
from prtrigger.adapters.review import ReviewAdapter
from prtrigger.adapters.service import DeliveryOutcome, WebhookService, default_adapters
from prtrigger.adapters.update import UpdateAdapter

__all__ = [
    "BuildCause",
    "CommentAdapter",
    "CommentCause",
    "DeliveryOutcome",
    "EventAdapter",
    "LabelAdapter",
    "LabelCause",
    "MalformedPayloadError",
    "ReviewAdapter",
    "ReviewCause",
    "UpdateAdapter",
    "UpdateCause",
    "WebhookService",
    "default_adapters",
    "payload_field",
]
