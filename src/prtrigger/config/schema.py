"""Pydantic schema models for configuration.

- Config: Top-level configuration container
- GitHubConfig: API endpoint, default credentials and timeout
- DispatchConfig: Dispatch engine tuning
- StateConfig: Build queue location
- OwnerConfig: A multibranch project or organization folder, with its
  repository sources and jobs
- JobConfig: One pull request job and its trigger rules
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from prtrigger.github.client import DEFAULT_API_URL
from prtrigger.jobs.model import OwnerKind
from prtrigger.paths import get_default_state_dir
from prtrigger.rules.triggers import AnyTriggerRule

NAME_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


def normalize_api_url(v: str) -> str:
    """Require an http(s) URL and drop any trailing slash."""
    if not v.startswith(("https://", "http://")):
        msg = "api_url must start with https:// or http://"
        raise ValueError(msg)
    return v.rstrip("/")


class GitHubConfig(BaseModel):
    """Source-hosting API configuration.

    Attributes:
        api_url: API base URL for sources that do not set their own
        token: Default credentials (usually ``${GITHUB_TOKEN}``)
        timeout: Request timeout in seconds (1-120, default: 10)
    """

    model_config = ConfigDict(extra="forbid")

    api_url: str = DEFAULT_API_URL
    token: str | None = Field(default=None, repr=False)
    timeout: Annotated[float, Field(ge=1, le=120)] = 10

    @field_validator("api_url")
    @classmethod
    def validate_api_url(cls, v: str) -> str:
        """Require an http(s) URL and drop any trailing slash."""
        return normalize_api_url(v)


class DispatchConfig(BaseModel):
    """Dispatch engine settings.

    Attributes:
        max_concurrent_authorizations: Permission lookups in flight per
            event (1-32, default: 4)
    """

    model_config = ConfigDict(extra="forbid")

    max_concurrent_authorizations: Annotated[int, Field(ge=1, le=32)] = 4


class StateConfig(BaseModel):
    """Build queue storage configuration.

    Attributes:
        directory: State directory path (default: XDG data dir)
                   Uses $XDG_DATA_HOME/prtrigger (~/.local/share/prtrigger)
    """

    model_config = ConfigDict(extra="forbid")

    directory: str | None = None

    def get_directory(self) -> Path:
        """Get the state directory path, expanding ~ if needed."""
        if self.directory:
            return Path(self.directory).expanduser()
        return get_default_state_dir()


class SourceConfig(BaseModel):
    """A repository an owner discovers pull requests from."""

    model_config = ConfigDict(extra="forbid")

    id: Annotated[str, Field(min_length=1, max_length=64)]
    repo_owner: Annotated[str, Field(min_length=1)]
    repository: Annotated[str, Field(min_length=1)]
    api_url: str | None = None
    token: str | None = Field(default=None, repr=False)

    @field_validator("api_url")
    @classmethod
    def validate_api_url(cls, v: str | None) -> str | None:
        """Validate a per-source API URL like the default one."""
        return normalize_api_url(v) if v is not None else None


class JobConfig(BaseModel):
    """A job building one head.

    Attributes:
        name: Job name, unique within its owner (e.g. ``PR-42``)
        source: Id of the source the job originates from
        pull_request: Pull request the job builds; unset for branch jobs
        triggers: Trigger rules, at most one per kind is consulted
    """

    model_config = ConfigDict(extra="forbid")

    name: Annotated[str, Field(min_length=1, max_length=100)]
    source: str
    pull_request: Annotated[int, Field(ge=1)] | None = None
    triggers: list[AnyTriggerRule] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate job name format."""
        if not NAME_PATTERN.match(v):
            msg = "job name must be alphanumeric with '.', '_' or '-'"
            raise ValueError(msg)
        return v


class OwnerConfig(BaseModel):
    """A multibranch project or organization folder."""

    model_config = ConfigDict(extra="forbid")

    name: Annotated[str, Field(min_length=1, max_length=100)]
    kind: OwnerKind = OwnerKind.MULTIBRANCH
    sources: Annotated[list[SourceConfig], Field(min_length=1)]
    jobs: list[JobConfig] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_unique_ids(self) -> OwnerConfig:
        """Ensure source ids and job names are unique within the owner."""
        ids = [source.id for source in self.sources]
        duplicates = {id_ for id_ in ids if ids.count(id_) > 1}
        if duplicates:
            msg = f"Duplicate source ids in owner '{self.name}': {sorted(duplicates)}"
            raise ValueError(msg)

        names = [job.name for job in self.jobs]
        duplicates = {name for name in names if names.count(name) > 1}
        if duplicates:
            msg = f"Duplicate job names in owner '{self.name}': {sorted(duplicates)}"
            raise ValueError(msg)
        return self

    @model_validator(mode="after")
    def validate_job_sources(self) -> OwnerConfig:
        """Ensure every job refers to one of the owner's sources."""
        ids = {source.id for source in self.sources}
        for job in self.jobs:
            if job.source not in ids:
                msg = f"Job '{job.name}' refers to unknown source '{job.source}'"
                raise ValueError(msg)
        return self


class Config(BaseModel):
    """Top-level configuration loaded from YAML.

    Attributes:
        version: Schema version (must be 1)
        github: API settings
        dispatch: Dispatch engine settings
        state: Build queue storage settings
        owners: The job registry
    """

    model_config = ConfigDict(extra="forbid")

    version: Literal[1]
    github: GitHubConfig = Field(default_factory=GitHubConfig)
    dispatch: DispatchConfig = Field(default_factory=DispatchConfig)
    state: StateConfig = Field(default_factory=StateConfig)
    owners: list[OwnerConfig] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_unique_owner_names(self) -> Config:
        """Ensure all owner names are unique."""
        names = [owner.name for owner in self.owners]
        duplicates = {name for name in names if names.count(name) > 1}
        if duplicates:
            msg = f"Duplicate owner names found: {sorted(duplicates)}"
            raise ValueError(msg)
        return self

    @property
    def job_count(self) -> int:
        """Get the total number of configured jobs."""
        return sum(len(owner.jobs) for owner in self.owners)
