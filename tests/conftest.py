"""Shared pytest fixtures for prtrigger tests.

This module provides common fixtures for:
- Temporary config files and build queues
- Sample GitHub webhook payloads
- Job registries and a scriptable permission oracle
"""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, Any

import pytest
import structlog
import yaml

from prtrigger.github.permissions import PermissionLevel
from prtrigger.jobs.model import (
    InMemoryJobRegistry,
    Job,
    OwnerKind,
    RepositorySource,
    SourceOwner,
)
from prtrigger.state import BuildQueue

if TYPE_CHECKING:
    from collections.abc import Callable, Generator, Iterable

    from prtrigger.jobs.context import ElevatedContext
    from prtrigger.rules.triggers import TriggerRule


REPO_URL = "https://github.com/octocat/hello-world"


@pytest.fixture(autouse=True)
def _reset_structlog() -> Generator[None, None, None]:
    """Drop logging configuration left behind by CLI invocations."""
    yield
    structlog.reset_defaults()


@pytest.fixture(autouse=True)
def _no_github_token(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.delenv("PRTRIGGER_CONFIG", raising=False)


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory (cleaned up after test)
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def minimal_config() -> dict[str, Any]:
    """Return a minimal valid configuration dictionary."""
    return {"version": 1}


@pytest.fixture
def sample_config() -> dict[str, Any]:
    """Return a configuration with one multibranch project and two PR jobs."""
    return {
        "version": 1,
        "owners": [
            {
                "name": "hello-world",
                "kind": "multibranch",
                "sources": [
                    {"id": "gh", "repo_owner": "octocat", "repository": "hello-world"},
                ],
                "jobs": [
                    {
                        "name": "PR-42",
                        "source": "gh",
                        "pull_request": 42,
                        "triggers": [
                            {"type": "comment", "comment_body": "^REBUILD$", "minimum_permissions": "NONE"},
                            {"type": "label", "label": "ci:.*", "minimum_permissions": "NONE"},
                        ],
                    },
                    {
                        "name": "PR-7",
                        "source": "gh",
                        "pull_request": 7,
                        "triggers": [{"type": "review"}],
                    },
                    {"name": "main", "source": "gh"},
                ],
            }
        ],
    }


@pytest.fixture
def write_config(temp_dir: Path) -> Callable[..., Path]:
    """Factory fixture to write config files.

    Args:
        config: Configuration dictionary
        filename: Name of the config file (default: config.yaml)

    Returns:
        Path to the written config file
    """

    def _write(config: dict[str, Any], filename: str = "config.yaml") -> Path:
        path = temp_dir / filename
        with path.open("w") as f:
            yaml.safe_dump(config, f)
        return path

    return _write


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
def test_db_path(temp_dir: Path) -> Path:
    """Return path for a test database file."""
    return temp_dir / "builds.db"


@pytest.fixture
def build_queue(test_db_path: Path) -> Generator[BuildQueue, None, None]:
    """Create a BuildQueue for testing.

    Yields:
        Initialized BuildQueue instance (closed after test)
    """
    queue = BuildQueue(test_db_path)
    yield queue
    queue.close()


# ============================================================================
# Registry and Oracle Fixtures
# ============================================================================


def make_source(
    source_id: str = "gh",
    repo_owner: str = "octocat",
    repository: str = "hello-world",
    **kwargs: Any,
) -> RepositorySource:
    """Build a repository source."""
    return RepositorySource(id=source_id, repo_owner=repo_owner, repository=repository, **kwargs)


def make_job(
    name: str,
    pull_request_number: int | None,
    triggers: Iterable[TriggerRule] = (),
    *,
    source: RepositorySource | None = None,
    owner_name: str = "hello-world",
) -> Job:
    """Build a job tracking a pull request."""
    return Job(
        name=name,
        owner_name=owner_name,
        source=source or make_source(),
        pull_request_number=pull_request_number,
        triggers=tuple(triggers),
    )


def make_registry(*owners: SourceOwner) -> InMemoryJobRegistry:
    """Build a registry from source owners."""
    return InMemoryJobRegistry(owners)


def make_owner(
    jobs: Iterable[Job],
    *,
    name: str = "hello-world",
    sources: Iterable[RepositorySource] | None = None,
    kind: OwnerKind = OwnerKind.MULTIBRANCH,
) -> SourceOwner:
    """Build a source owner holding ``jobs``."""
    return SourceOwner(
        name=name,
        kind=kind,
        sources=tuple(sources) if sources is not None else (make_source(),),
        jobs=tuple(jobs),
    )


class FakeOracle:
    """Permission oracle answering from a login -> level table.

    Unknown logins get UNKNOWN, like a failed lookup.
    """

    def __init__(self, levels: dict[str, PermissionLevel] | None = None) -> None:
        self.levels = dict(levels or {})
        self.calls: list[tuple[str, str]] = []

    async def permission_of(
        self,
        job: Job,
        actor_login: str,
        context: ElevatedContext,
    ) -> PermissionLevel:
        context.require()
        self.calls.append((job.full_name, actor_login))
        return self.levels.get(actor_login, PermissionLevel.UNKNOWN)


@pytest.fixture
def oracle() -> FakeOracle:
    """Return an oracle where 'writer' can push and 'boss' is admin."""
    return FakeOracle(
        {
            "writer": PermissionLevel.WRITE,
            "boss": PermissionLevel.ADMIN,
            "reader": PermissionLevel.NONE,
        }
    )


# ============================================================================
# Webhook Payload Fixtures
# ============================================================================


def _repository() -> dict[str, Any]:
    return {
        "id": 1296269,
        "name": "hello-world",
        "full_name": "octocat/hello-world",
        "html_url": REPO_URL,
        "owner": {"login": "octocat", "id": 1},
    }


@pytest.fixture
def comment_payload() -> dict[str, Any]:
    """Return an ``issue_comment`` payload for a comment on PR #42."""
    return {
        "action": "created",
        "issue": {
            "number": 42,
            "title": "Add new feature",
            "html_url": f"{REPO_URL}/pull/42",
            "pull_request": {"url": "https://api.github.com/repos/octocat/hello-world/pulls/42"},
        },
        "comment": {
            "id": 987654,
            "body": "REBUILD",
            "html_url": f"{REPO_URL}/pull/42#issuecomment-987654",
            "user": {"login": "writer", "id": 5},
        },
        "repository": _repository(),
        "sender": {"login": "writer", "id": 5},
    }


@pytest.fixture
def label_payload() -> dict[str, Any]:
    """Return a ``pull_request`` payload for a label added to PR #42."""
    return {
        "action": "labeled",
        "number": 42,
        "pull_request": {"number": 42, "html_url": f"{REPO_URL}/pull/42"},
        "label": {
            "name": "ci:full",
            "url": "https://api.github.com/repos/octocat/hello-world/labels/ci:full",
        },
        "repository": _repository(),
        "sender": {"login": "writer", "id": 5},
    }


@pytest.fixture
def review_payload() -> dict[str, Any]:
    """Return a ``pull_request_review`` payload for PR #7."""
    return {
        "action": "submitted",
        "review": {"id": 11, "state": "approved"},
        "pull_request": {"number": 7, "html_url": f"{REPO_URL}/pull/7"},
        "repository": _repository(),
        "sender": {"login": "boss", "id": 6},
    }


@pytest.fixture
def update_payload() -> dict[str, Any]:
    """Return a ``pull_request`` payload for an edit of PR #42."""
    return {
        "action": "edited",
        "number": 42,
        "changes": {"title": {"from": "Old title"}},
        "pull_request": {"number": 42, "html_url": f"{REPO_URL}/pull/42"},
        "repository": _repository(),
        "sender": {"login": "writer", "id": 5},
    }
