from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum

import structlog
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from activity_ledger.api.schemas.activity import coerce_meta
from activity_ledger.api.schemas.leaderboard import (
    ActivityGroup,
    ActivityTally,
    ActivityWithContributor,
    ContributorWithPoints,
    DailyActivity,
    LeaderboardEntry,
    TopContributorEntry,
)
from activity_ledger.core.config import Settings, get_settings
from activity_ledger.core.timeutils import (
    end_of_day,
    ensure_utc,
    start_of_day,
    subtract_months,
    utc_date_string,
)
from activity_ledger.db.models.activity import Activity, ActivityDefinition
from activity_ledger.db.models.contributor import Contributor
from activity_ledger.services.scoring import effective_points

logger = structlog.get_logger()


class Period(str, Enum):
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


@dataclass(frozen=True)
class TimeWindow:
    """Inclusive ``[start, end]`` range of occurrence timestamps."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", ensure_utc(self.start))
        object.__setattr__(self, "end", ensure_utc(self.end))
        if self.start > self.end:
            raise ValueError(f"Window start {self.start} is after end {self.end}")

    @classmethod
    def for_period(cls, period: Period | str, now: datetime | None = None) -> "TimeWindow":
        """Window ending with the current UTC day and reaching back one period."""
        period = Period(period)
        today = (ensure_utc(now) if now else datetime.now(UTC)).date()

        if period is Period.WEEK:
            first_day = today - timedelta(days=7)
        elif period is Period.MONTH:
            first_day = subtract_months(today, 1)
        else:
            first_day = subtract_months(today, 12)

        return cls(start=start_of_day(first_day), end=end_of_day(today))


@dataclass
class _Contribution:
    """One activity row resolved against its contributor and definition."""

    activity: Activity
    contributor: Contributor
    definition: ActivityDefinition
    points: int


class LeaderboardService:
    """Read-side aggregates over the activity ledger."""

    def __init__(self, db: AsyncSession, app_settings: Settings | None = None) -> None:
        self.db = db
        self.settings = app_settings or get_settings()

    def _excluded(self, excluded_roles: Sequence[str] | None) -> list[str]:
        if excluded_roles is None:
            return list(self.settings.excluded_roles)
        return list(excluded_roles)

    @staticmethod
    def _role_filter(excluded_roles: list[str]):
        return or_(Contributor.role.is_(None), Contributor.role.not_in(excluded_roles))

    async def _contributions(
        self,
        window: TimeWindow,
        excluded_roles: Sequence[str] | None,
        activity_slugs: Sequence[str] | None = None,
    ) -> list[_Contribution]:
        query = (
            select(Activity, Contributor, ActivityDefinition)
            .join(Contributor, Activity.contributor == Contributor.username)
            .join(ActivityDefinition, Activity.activity_definition == ActivityDefinition.slug)
            .where(Activity.occurred_at >= window.start, Activity.occurred_at <= window.end)
            .order_by(Activity.occurred_at.desc(), Activity.slug)
        )
        excluded = self._excluded(excluded_roles)
        if excluded:
            query = query.where(self._role_filter(excluded))
        if activity_slugs:
            query = query.where(Activity.activity_definition.in_(activity_slugs))

        result = await self.db.execute(query)
        return [
            _Contribution(
                activity=activity,
                contributor=contributor,
                definition=definition,
                points=effective_points(activity.points, definition.points),
            )
            for activity, contributor, definition in result.all()
        ]

    async def compute_leaderboard(
        self,
        window: TimeWindow,
        excluded_roles: Sequence[str] | None = None,
    ) -> list[LeaderboardEntry]:
        """Ranked contributors with points in the window.

        Sorted by total points descending, ties broken by username ascending.
        Contributors whose total is not positive are left out.
        """
        totals: dict[str, int] = defaultdict(int)
        people: dict[str, Contributor] = {}
        breakdowns: dict[str, dict[str, ActivityTally]] = defaultdict(dict)
        daily: dict[str, dict[str, DailyActivity]] = defaultdict(dict)

        for row in await self._contributions(window, excluded_roles):
            username = row.contributor.username
            people[username] = row.contributor
            totals[username] += row.points

            tally = breakdowns[username].setdefault(row.definition.name, ActivityTally())
            tally.count += 1
            tally.points += row.points

            day = utc_date_string(row.activity.occurred_at)
            bucket = daily[username].setdefault(day, DailyActivity(date=day))
            bucket.count += 1
            bucket.points += row.points

        entries = [
            LeaderboardEntry(
                username=username,
                display_name=people[username].display_name,
                avatar_url=people[username].avatar_url,
                role=people[username].role,
                total_points=total,
                activity_breakdown=breakdowns[username],
                daily_activity=[daily[username][d] for d in sorted(daily[username])],
            )
            for username, total in totals.items()
            if total > 0
        ]
        entries.sort(key=lambda e: (-e.total_points, e.username))

        logger.debug(
            "Leaderboard computed",
            start=window.start.isoformat(),
            end=window.end.isoformat(),
            entries=len(entries),
        )
        return entries

    async def compute_top_contributors_by_activity(
        self,
        window: TimeWindow,
        activity_slugs: Sequence[str] | None = None,
        excluded_roles: Sequence[str] | None = None,
        limit: int | None = None,
    ) -> dict[str, list[TopContributorEntry]]:
        """Best contributors per activity type, keyed by activity name.

        With ``activity_slugs`` the result follows that order; otherwise it is
        ordered by activity name. Types with no qualifying contributor are
        omitted.
        """
        limit = limit or self.settings.top_contributors_limit

        names: dict[str, str] = {}
        grouped: dict[str, dict[str, TopContributorEntry]] = defaultdict(dict)
        for row in await self._contributions(window, excluded_roles, activity_slugs):
            slug = row.definition.slug
            names[slug] = row.definition.name
            entry = grouped[slug].get(row.contributor.username)
            if entry is None:
                entry = TopContributorEntry(
                    username=row.contributor.username,
                    display_name=row.contributor.display_name,
                    avatar_url=row.contributor.avatar_url,
                    points=0,
                    count=0,
                )
                grouped[slug][row.contributor.username] = entry
            entry.points += row.points
            entry.count += 1

        if activity_slugs:
            order = [slug for slug in dict.fromkeys(activity_slugs) if slug in grouped]
        else:
            order = sorted(grouped, key=lambda slug: names[slug])

        top: dict[str, list[TopContributorEntry]] = {}
        for slug in order:
            ranked = sorted(
                (e for e in grouped[slug].values() if e.points > 0),
                key=lambda e: (-e.points, e.username),
            )
            if ranked:
                top[names[slug]] = ranked[:limit]
        return top

    async def list_contributors_with_points(
        self,
        excluded_roles: Sequence[str] | None = None,
    ) -> list[ContributorWithPoints]:
        """Every contributor with all-time points, including those with none."""
        query = select(Contributor)
        excluded = self._excluded(excluded_roles)
        if excluded:
            query = query.where(self._role_filter(excluded))
        contributors = (await self.db.execute(query)).scalars().all()

        result = await self.db.execute(
            select(Activity.contributor, Activity.points, ActivityDefinition.points).join(
                ActivityDefinition, Activity.activity_definition == ActivityDefinition.slug
            )
        )
        totals: dict[str, int] = defaultdict(int)
        for username, points, default_points in result.all():
            totals[username] += effective_points(points, default_points)

        listed = [
            ContributorWithPoints(
                username=c.username,
                display_name=c.display_name,
                avatar_url=c.avatar_url,
                role=c.role,
                total_points=totals.get(c.username, 0),
            )
            for c in contributors
        ]
        listed.sort(key=lambda c: (-c.total_points, c.username))
        return listed

    async def recent_activities_by_type(
        self,
        window: TimeWindow,
        excluded_roles: Sequence[str] | None = None,
    ) -> list[ActivityGroup]:
        """Activities in the window grouped by type, newest first in each group."""
        groups: dict[str, ActivityGroup] = {}
        for row in await self._contributions(window, excluded_roles):
            definition = row.definition
            group = groups.get(definition.slug)
            if group is None:
                group = ActivityGroup(
                    activity_definition=definition.slug,
                    activity_name=definition.name,
                    activity_description=definition.description,
                    activity_points=definition.points,
                )
                groups[definition.slug] = group
            group.activities.append(
                ActivityWithContributor(
                    slug=row.activity.slug,
                    contributor=row.contributor.username,
                    activity_definition=definition.slug,
                    title=row.activity.title,
                    occurred_at=ensure_utc(row.activity.occurred_at),
                    link=row.activity.link,
                    text=row.activity.text,
                    points=row.points,
                    meta=coerce_meta(row.activity.meta),
                    contributor_name=row.contributor.display_name,
                    contributor_avatar_url=row.contributor.avatar_url,
                    contributor_role=row.contributor.role,
                )
            )

        return sorted(groups.values(), key=lambda g: g.activity_name)
