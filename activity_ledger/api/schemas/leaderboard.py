from datetime import datetime

from pydantic import BaseModel, Field

from activity_ledger.api.schemas.activity import ActivityMeta


class ActivityTally(BaseModel):
    count: int = 0
    points: int = 0


class DailyActivity(BaseModel):
    date: str
    count: int = 0
    points: int = 0


class LeaderboardEntry(BaseModel):
    username: str
    display_name: str | None
    avatar_url: str | None
    role: str | None
    total_points: int = 0
    activity_breakdown: dict[str, ActivityTally] = Field(default_factory=dict)
    daily_activity: list[DailyActivity] = Field(default_factory=list)


class TopContributorEntry(BaseModel):
    username: str
    display_name: str | None
    avatar_url: str | None
    points: int
    count: int


class ContributorWithPoints(BaseModel):
    username: str
    display_name: str | None
    avatar_url: str | None
    role: str | None
    total_points: int


class ActivityWithContributor(BaseModel):
    slug: str
    contributor: str
    activity_definition: str
    title: str | None
    occurred_at: datetime
    link: str | None
    text: str | None
    points: int
    meta: ActivityMeta | None = None
    contributor_name: str | None
    contributor_avatar_url: str | None
    contributor_role: str | None


class ActivityGroup(BaseModel):
    activity_definition: str
    activity_name: str
    activity_description: str | None
    activity_points: int
    activities: list[ActivityWithContributor] = Field(default_factory=list)


class LeaderboardResponse(BaseModel):
    start: datetime
    end: datetime
    entries: list[LeaderboardEntry]
    total: int
    page: int
    page_size: int


class TopContributorsResponse(BaseModel):
    start: datetime
    end: datetime
    activities: dict[str, list[TopContributorEntry]]
