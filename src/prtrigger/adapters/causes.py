"""Build causes attached to scheduled builds.

Downstream tooling reads cause attributes by their camelCase names
(``commentBody``, ``labellingAuthor``...), so causes serialize by alias.
"""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class BuildCause(BaseModel):
    """Why a build was started."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    cause_type: ClassVar[str]

    @property
    def short_description(self) -> str:
        """Get the one-line description shown next to the build."""
        raise NotImplementedError

    def export(self) -> dict[str, Any]:
        """Serialize the cause for downstream tooling.

        Returns:
            Attributes keyed by their camelCase names, plus ``type`` and
            ``shortDescription``.
        """
        data = self.model_dump(by_alias=True, mode="json")
        data["type"] = self.cause_type
        data["shortDescription"] = self.short_description
        return data


class CommentCause(BuildCause):
    """A pull request comment matched a comment trigger."""

    cause_type: ClassVar[str] = "comment"

    comment_url: str | None
    comment_author: str
    comment_body: str | None

    @property
    def short_description(self) -> str:
        return "GitHub pull request comment"


class LabelCause(BuildCause):
    """A label added to a pull request matched a label trigger."""

    cause_type: ClassVar[str] = "label"

    label_url: str | None
    labelling_author: str
    label: str

    @property
    def short_description(self) -> str:
        return f'GitHub pull request label "{self.label}" by {self.labelling_author}'


class ReviewCause(BuildCause):
    """A pull request review was submitted."""

    cause_type: ClassVar[str] = "review"

    review_author: str
    pull_request_url: str | None

    @property
    def short_description(self) -> str:
        return "GitHub pull request review"


class UpdateCause(BuildCause):
    """Pull request metadata was edited."""

    cause_type: ClassVar[str] = "update"

    update_author: str
    pull_request_url: str | None

    @property
    def short_description(self) -> str:
        return "GitHub pull request update"
