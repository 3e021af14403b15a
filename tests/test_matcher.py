"""Tests for the job matcher and registry model."""

from __future__ import annotations

import pytest

from prtrigger.github.events import EventKind
from prtrigger.github.repository import parse_repository_url
from prtrigger.jobs.context import ContextRevokedError, elevated_context
from prtrigger.jobs.matcher import find_jobs
from prtrigger.jobs.model import OwnerKind
from prtrigger.rules.triggers import CommentTrigger, LabelTrigger

from .conftest import REPO_URL, make_job, make_owner, make_registry, make_source

REPO = parse_repository_url(REPO_URL)


def names(registry, pull_request_number: int, repository=REPO) -> list[str]:
    with elevated_context("test") as context:
        return [job.full_name for job in find_jobs(registry, repository, pull_request_number, context)]


class TestFindJobs:
    """Tests for find_jobs."""

    def test_exact_pull_request_number(self) -> None:
        registry = make_registry(
            make_owner([make_job("PR-4", 4), make_job("PR-42", 42), make_job("PR-420", 420), make_job("main", None)])
        )

        assert names(registry, 42) == ["hello-world/PR-42"]
        assert names(registry, 4) == ["hello-world/PR-4"]

    def test_repository_match_is_case_insensitive(self) -> None:
        registry = make_registry(make_owner([make_job("PR-42", 42)]))
        repository = parse_repository_url("https://github.com/OctoCat/HELLO-WORLD")

        assert names(registry, 42, repository) == ["hello-world/PR-42"]

    def test_other_repository_ignored(self) -> None:
        registry = make_registry(make_owner([make_job("PR-42", 42)]))
        repository = parse_repository_url("https://github.com/octocat/spoon-knife")

        assert names(registry, 42, repository) == []

    def test_empty_registry(self) -> None:
        assert names(make_registry(), 42) == []

    def test_enumeration_order(self) -> None:
        first = make_owner([make_job("PR-42", 42, owner_name="first")], name="first")
        second = make_owner([make_job("PR-42", 42, owner_name="second")], name="second")

        assert names(make_registry(second, first), 42) == ["second/PR-42", "first/PR-42"]

    def test_organization_attributes_jobs_to_their_source(self) -> None:
        hello = make_source("hello")
        other = make_source("other", repository="spoon-knife")
        org = make_owner(
            [
                make_job("hello-world/PR-42", 42, source=hello, owner_name="octocat"),
                make_job("spoon-knife/PR-42", 42, source=other, owner_name="octocat"),
            ],
            name="octocat",
            sources=[hello, other],
            kind=OwnerKind.ORGANIZATION,
        )

        assert names(make_registry(org), 42) == ["octocat/hello-world/PR-42"]

    def test_multibranch_with_two_matching_sources_yields_twice(self) -> None:
        primary = make_source("primary")
        mirror = make_source("mirror", repo_owner="OCTOCAT")
        owner = make_owner([make_job("PR-42", 42, source=primary)], sources=[primary, mirror])

        assert names(make_registry(owner), 42) == ["hello-world/PR-42", "hello-world/PR-42"]

    def test_is_lazy(self) -> None:
        registry = make_registry(make_owner([make_job("PR-42", 42)]))

        with elevated_context("test") as context:
            jobs = find_jobs(registry, REPO, 42, context)
            assert next(jobs).name == "PR-42"

    def test_revoked_context_refused(self) -> None:
        registry = make_registry(make_owner([make_job("PR-42", 42)]))
        with elevated_context("test") as context:
            pass

        with pytest.raises(ContextRevokedError):
            list(find_jobs(registry, REPO, 42, context))


class TestJob:
    """Tests for Job helpers."""

    def test_first_rule_of_kind_wins(self) -> None:
        first = CommentTrigger(comment_body="first")
        second = CommentTrigger(comment_body="second")
        job = make_job("PR-1", 1, [LabelTrigger(label="x"), first, second])

        assert job.configured_rule(EventKind.COMMENT) is first
        assert job.configured_rule(EventKind.REVIEW) is None

    def test_owner_repository(self) -> None:
        job = make_job("PR-1", 1, source=make_source(api_url="https://ghe.example.com/api/v3"))

        assert job.owner_repository.host == "ghe.example.com"
        assert job.owner_repository.full_name == "octocat/hello-world"

    def test_branch_job_tracks_nothing(self) -> None:
        assert not make_job("main", None).tracks(1)
