from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import AliasChoices, BaseModel, Field, field_validator

from activity_ledger.core.timeutils import ensure_utc


class GitHubMeta(BaseModel):
    platform: Literal["github"] = "github"
    repository: str | None = None
    number: int | None = None
    branch: str | None = None
    review_state: str | None = None
    extra: dict[str, Any] = Field(default_factory=dict)


class ChatMeta(BaseModel):
    platform: Literal["slack"] = "slack"
    date: str | None = None
    extra: dict[str, Any] = Field(default_factory=dict)


class OpaqueMeta(BaseModel):
    """Untagged meta blobs, e.g. from imported activity files."""

    platform: Literal["unknown"] = "unknown"
    extra: dict[str, Any] = Field(default_factory=dict)


ActivityMeta = Annotated[GitHubMeta | ChatMeta | OpaqueMeta, Field(discriminator="platform")]


def coerce_meta(value: Any) -> Any:
    if value is None or isinstance(value, BaseModel):
        return value
    if isinstance(value, dict):
        if not value:
            return None
        if value.get("platform") not in ("github", "slack", "unknown"):
            return {"platform": "unknown", "extra": value}
    return value


class ActivityRecord(BaseModel):
    """Canonical ledger entry, keyed by its deterministic slug."""

    slug: str = Field(..., min_length=1)
    contributor: str = Field(..., min_length=1)
    activity_definition: str = Field(..., min_length=1)
    title: str | None = None
    occurred_at: datetime = Field(
        ..., validation_alias=AliasChoices("occurred_at", "occured_at")
    )
    link: str | None = None
    text: str | None = None
    points: int | None = None
    meta: ActivityMeta | None = None

    model_config = {"from_attributes": True, "frozen": True}

    @field_validator("occurred_at")
    @classmethod
    def normalize_occurred_at(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @field_validator("meta", mode="before")
    @classmethod
    def tag_meta(cls, v: Any) -> Any:
        return coerce_meta(v)

    def to_row(self) -> dict[str, Any]:
        """Column values for an insert into the ``activity`` table."""
        return {
            "slug": self.slug,
            "contributor": self.contributor,
            "activity_definition": self.activity_definition,
            "title": self.title,
            "occurred_at": self.occurred_at,
            "link": self.link,
            "text": self.text,
            "points": self.points,
            "meta": self.meta.model_dump(mode="json") if self.meta else None,
        }


class ActivityDefinitionData(BaseModel):
    slug: str = Field(..., min_length=1, max_length=64)
    name: str
    description: str | None = None
    points: int = 0
    icon: str | None = None

    model_config = {"from_attributes": True}
