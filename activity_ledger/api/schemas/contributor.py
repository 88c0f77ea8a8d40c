from datetime import datetime

from pydantic import BaseModel, Field

from activity_ledger.api.schemas.activity import ActivityMeta


class ContributorDetail(BaseModel):
    username: str
    display_name: str | None
    role: str | None
    title: str | None
    avatar_url: str | None
    bio: str | None
    social_profiles: dict[str, str] | None
    joined_at: datetime | None
    platform_aliases: dict[str, str] | None

    model_config = {"from_attributes": True}


class ContributorActivity(BaseModel):
    slug: str
    activity_definition: str
    title: str | None
    occurred_at: datetime
    link: str | None
    text: str | None
    # Effective points: the override if set, else the definition default
    points: int
    meta: ActivityMeta | None = None
    activity_name: str
    activity_description: str | None
    activity_points: int
    activity_icon: str | None


class ContributorProfile(BaseModel):
    contributor: ContributorDetail | None = None
    activities: list[ContributorActivity] = Field(default_factory=list)
    total_points: int = 0
    activity_by_date: dict[str, int] = Field(default_factory=dict)
