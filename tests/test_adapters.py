"""Tests for event adapters and build causes."""

from __future__ import annotations

from typing import Any

import httpx
import pytest

from prtrigger.adapters import (
    CommentAdapter,
    CommentCause,
    LabelAdapter,
    LabelCause,
    MalformedPayloadError,
    ReviewAdapter,
    ReviewCause,
    UpdateAdapter,
    UpdateCause,
)
from prtrigger.github.connector import GitHubConnector
from prtrigger.github.events import EventKind
from prtrigger.jobs.context import elevated_context
from prtrigger.rules.schema import TriggerDecision
from prtrigger.rules.triggers import CommentTrigger, LabelTrigger, ReviewTrigger, UpdateTrigger

from .conftest import REPO_URL, make_job


class TestCommentAdapter:
    """Tests for issue_comment payloads."""

    def test_normalize(self, comment_payload: dict[str, Any]) -> None:
        event = CommentAdapter().normalize(comment_payload, delivery_id="d-1")

        assert event is not None
        assert event.kind is EventKind.COMMENT
        assert event.repository_url == REPO_URL
        assert event.pull_request_number == 42
        assert event.actor_login == "writer"
        assert event.comment_body == "REBUILD"
        assert event.comment_id == 987654
        assert event.delivery_id == "d-1"

    def test_plain_issue_ignored(self, comment_payload: dict[str, Any]) -> None:
        del comment_payload["issue"]["pull_request"]

        assert CommentAdapter().normalize(comment_payload) is None

    @pytest.mark.parametrize("action", ["created", "edited"])
    def test_relevant_actions(self, comment_payload: dict[str, Any], action: str) -> None:
        comment_payload["action"] = action

        assert CommentAdapter().normalize(comment_payload) is not None

    def test_deleted_ignored(self, comment_payload: dict[str, Any]) -> None:
        comment_payload["action"] = "deleted"

        assert CommentAdapter().normalize(comment_payload) is None

    def test_missing_author(self, comment_payload: dict[str, Any]) -> None:
        del comment_payload["comment"]["user"]

        with pytest.raises(MalformedPayloadError, match="comment.user.login"):
            CommentAdapter().normalize(comment_payload)

    def test_wrong_type(self, comment_payload: dict[str, Any]) -> None:
        comment_payload["issue"]["number"] = "42"

        with pytest.raises(MalformedPayloadError, match="issue.number"):
            CommentAdapter().normalize(comment_payload)

    def test_cause(self, comment_payload: dict[str, Any]) -> None:
        adapter = CommentAdapter()
        event = adapter.normalize(comment_payload)
        assert event is not None

        cause = adapter.build_cause(event, CommentTrigger())

        assert isinstance(cause, CommentCause)
        assert cause.short_description == "GitHub pull request comment"
        assert cause.export() == {
            "commentUrl": f"{REPO_URL}/pull/42#issuecomment-987654",
            "commentAuthor": "writer",
            "commentBody": "REBUILD",
            "type": "comment",
            "shortDescription": "GitHub pull request comment",
        }


class TestLabelAdapter:
    """Tests for labeled pull_request payloads."""

    def test_normalize(self, label_payload: dict[str, Any]) -> None:
        event = LabelAdapter().normalize(label_payload)

        assert event is not None
        assert event.kind is EventKind.LABEL
        assert event.label_name == "ci:full"
        assert event.actor_login == "writer"

    def test_unlabeled_rejected(self, label_payload: dict[str, Any]) -> None:
        label_payload["action"] = "unlabeled"

        assert LabelAdapter().normalize(label_payload) is None

    def test_edited_rejected(self, update_payload: dict[str, Any]) -> None:
        assert LabelAdapter().normalize(update_payload) is None

    def test_cause(self, label_payload: dict[str, Any]) -> None:
        adapter = LabelAdapter()
        event = adapter.normalize(label_payload)
        assert event is not None

        cause = adapter.build_cause(event, LabelTrigger(label="ci:.*"))

        assert isinstance(cause, LabelCause)
        assert cause.short_description == 'GitHub pull request label "ci:full" by writer'
        assert cause.export()["labellingAuthor"] == "writer"
        assert cause.export()["labelUrl"].endswith("/labels/ci:full")


class TestReviewAndUpdateAdapters:
    """Tests for review and update payloads."""

    def test_review_any_action(self, review_payload: dict[str, Any]) -> None:
        review_payload["action"] = "dismissed"
        event = ReviewAdapter().normalize(review_payload)

        assert event is not None
        assert event.pull_request_number == 7
        assert event.actor_login == "boss"

    def test_review_cause(self, review_payload: dict[str, Any]) -> None:
        adapter = ReviewAdapter()
        event = adapter.normalize(review_payload)
        assert event is not None

        cause = adapter.build_cause(event, ReviewTrigger())

        assert isinstance(cause, ReviewCause)
        assert cause.export()["reviewAuthor"] == "boss"
        assert cause.export()["pullRequestUrl"] == f"{REPO_URL}/pull/7"
        assert cause.short_description == "GitHub pull request review"

    def test_update_closed_rejected(self, update_payload: dict[str, Any]) -> None:
        update_payload["action"] = "closed"

        assert UpdateAdapter().normalize(update_payload) is None

    def test_update_cause(self, update_payload: dict[str, Any]) -> None:
        adapter = UpdateAdapter()
        event = adapter.normalize(update_payload)
        assert event is not None

        cause = adapter.build_cause(event, UpdateTrigger())

        assert isinstance(cause, UpdateCause)
        assert cause.update_author == "writer"
        assert cause.short_description == "GitHub pull request update"


class TestCommentReaction:
    """Tests for the comment adapter's post-trigger reaction."""

    @staticmethod
    def _decision(rule: CommentTrigger) -> TriggerDecision:
        cause = CommentCause(comment_url=None, comment_author="writer", comment_body="REBUILD")
        return TriggerDecision(job=make_job("PR-42", 42, [rule]), rule=rule, cause=cause)

    @pytest.mark.asyncio
    async def test_reacts_when_configured(self, comment_payload: dict[str, Any]) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(201, json={"content": "+1"})

        adapter = CommentAdapter(GitHubConnector(token="t", transport=httpx.MockTransport(handler)))
        event = adapter.normalize(comment_payload)
        assert event is not None

        with elevated_context("test") as context:
            await adapter.post_trigger(self._decision(CommentTrigger(add_reaction=True)), event, context)

        assert len(seen) == 1
        assert seen[0].url.path == "/repos/octocat/hello-world/issues/comments/987654/reactions"

    @pytest.mark.asyncio
    async def test_no_reaction_by_default(self, comment_payload: dict[str, Any]) -> None:
        seen: list[httpx.Request] = []
        adapter = CommentAdapter(
            GitHubConnector(token="t", transport=httpx.MockTransport(lambda r: seen.append(r) or httpx.Response(201)))
        )
        event = adapter.normalize(comment_payload)
        assert event is not None

        with elevated_context("test") as context:
            await adapter.post_trigger(self._decision(CommentTrigger()), event, context)

        assert seen == []

    @pytest.mark.asyncio
    async def test_failure_is_logged_not_raised(self, comment_payload: dict[str, Any]) -> None:
        adapter = CommentAdapter(
            GitHubConnector(token="t", transport=httpx.MockTransport(lambda r: httpx.Response(404, json={})))
        )
        event = adapter.normalize(comment_payload)
        assert event is not None

        with elevated_context("test") as context:
            await adapter.post_trigger(self._decision(CommentTrigger(add_reaction=True)), event, context)

    @pytest.mark.asyncio
    async def test_no_connection_skips(self, comment_payload: dict[str, Any]) -> None:
        adapter = CommentAdapter(GitHubConnector())
        event = adapter.normalize(comment_payload)
        assert event is not None

        with elevated_context("test") as context:
            await adapter.post_trigger(self._decision(CommentTrigger(add_reaction=True)), event, context)
