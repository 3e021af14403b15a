"""Adapter for pull request comments (``issue_comment`` webhooks)."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, ClassVar

import httpx

from prtrigger.adapters.base import EventAdapter
from prtrigger.adapters.causes import CommentCause
from prtrigger.github.auth import AuthenticationError
from prtrigger.github.client import GitHubAPIError
from prtrigger.github.events import Event, EventKind
from prtrigger.logging.audit import log_side_effect_failed
from prtrigger.rules.triggers import CommentTrigger

if TYPE_CHECKING:
    from prtrigger.github.connector import GitHubConnector
    from prtrigger.jobs.context import ElevatedContext
    from prtrigger.rules.schema import TriggerDecision
    from prtrigger.rules.triggers import TriggerRule

logger = logging.getLogger(__name__)

REACTION_CONTENT = "+1"


class CommentAdapter(EventAdapter):
    """Comments on pull requests; comments on plain issues are ignored."""

    kind: ClassVar[EventKind] = EventKind.COMMENT
    event_name: ClassVar[str] = "issue_comment"

    def __init__(self, connector: GitHubConnector | None = None) -> None:
        """Initialize the adapter.

        Args:
            connector: Used to react to triggering comments. Without one,
                reactions are skipped.
        """
        self._connector = connector

    def _extract(self, payload: dict[str, Any], action: str, delivery_id: str | None) -> Event | None:
        issue = self._field(payload, "issue", dict)
        if issue.get("pull_request") is None:
            logger.debug("Comment is not on a pull request, ignoring %s", issue.get("html_url"))
            return None

        return Event(
            kind=self.kind,
            action=action,
            repository_url=self._field(payload, "repository.html_url"),
            pull_request_number=self._field(payload, "issue.number", int),
            actor_login=self._field(payload, "comment.user.login"),
            delivery_id=delivery_id,
            pull_request_url=self._optional(payload, "issue.html_url"),
            comment_body=self._optional(payload, "comment.body"),
            comment_url=self._optional(payload, "comment.html_url"),
            comment_id=self._optional(payload, "comment.id", int),
        )

    def build_cause(self, event: Event, rule: TriggerRule) -> CommentCause:
        return CommentCause(
            comment_url=event.comment_url,
            comment_author=event.actor_login,
            comment_body=event.comment_body,
        )

    async def post_trigger(
        self,
        decision: TriggerDecision,
        event: Event,
        context: ElevatedContext,
    ) -> None:
        """Acknowledge the triggering comment with a reaction, if configured."""
        rule = decision.rule
        if not isinstance(rule, CommentTrigger) or not rule.add_reaction:
            return

        job = decision.job
        if self._connector is None or event.comment_id is None:
            logger.warning("Could not react to triggering comment for %s, no connection", job.full_name)
            return

        client = self._connector.client_for(job.source, context)
        if client is None:
            logger.warning("Could not react to triggering comment for %s, no connection", job.full_name)
            return

        try:
            async with client:
                await client.create_comment_reaction(
                    job.source.repo_owner,
                    job.source.repository,
                    event.comment_id,
                    REACTION_CONTENT,
                )
        except (AuthenticationError, GitHubAPIError, httpx.HTTPError) as e:
            log_side_effect_failed(event.log_context(), job.full_name, "reaction", str(e))
            return

        logger.debug("Added %s reaction to comment %s", REACTION_CONTENT, event.comment_url)
