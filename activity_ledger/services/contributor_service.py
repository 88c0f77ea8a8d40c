from collections import Counter
from collections.abc import Iterable

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from activity_ledger.api.schemas.activity import coerce_meta
from activity_ledger.api.schemas.contributor import (
    ContributorActivity,
    ContributorDetail,
    ContributorProfile,
)
from activity_ledger.core.config import Settings, get_settings
from activity_ledger.core.timeutils import ensure_utc, utc_date_string
from activity_ledger.db.models.activity import Activity, ActivityDefinition
from activity_ledger.db.models.contributor import Contributor
from activity_ledger.db.upsert import dialect_insert
from activity_ledger.services.scoring import effective_points

logger = structlog.get_logger()

BOT_ROLE = "bot"


class ContributorService:
    """Service for contributor identities, aliases and profiles."""

    def __init__(self, db: AsyncSession, app_settings: Settings | None = None) -> None:
        self.db = db
        self.settings = app_settings or get_settings()

    def _new_contributor_row(self, username: str) -> dict:
        return {
            "username": username,
            "role": self.settings.default_contributor_role,
            "avatar_url": self.settings.avatar_url_template.format(username=username),
            "social_profiles": {
                "github": self.settings.profile_url_template.format(username=username)
            },
        }

    async def ensure_contributors(self, usernames: Iterable[str], commit: bool = True) -> int:
        """Create any contributor that does not exist yet.

        Existing rows are never touched. Returns the number of contributors
        created.
        """
        unique = sorted({u for u in usernames if u})
        if not unique:
            return 0

        insert = dialect_insert(self.db)
        stmt = (
            insert(Contributor)
            .values([self._new_contributor_row(u) for u in unique])
            .on_conflict_do_nothing(index_elements=[Contributor.username])
            .returning(Contributor.username)
        )
        result = await self.db.execute(stmt)
        created = list(result.scalars().all())
        if commit:
            await self.db.commit()

        if created:
            logger.info("Contributors created", count=len(created), usernames=created)
        return len(created)

    async def get_contributor(self, username: str) -> Contributor | None:
        return await self.db.get(Contributor, username, populate_existing=True)

    async def list_contributors(self, role: str | None = None) -> list[Contributor]:
        query = select(Contributor).order_by(Contributor.username)
        if role is not None:
            query = query.where(Contributor.role == role)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def resolve_aliases(self, aliases: Iterable[str]) -> dict[str, str]:
        """Map chat aliases to usernames in a single query.

        Aliases with no matching contributor are simply absent from the result.
        """
        wanted = sorted(set(aliases))
        if not wanted:
            return {}

        alias_column = Contributor.platform_aliases[self.settings.chat_alias_key].as_string()
        result = await self.db.execute(
            select(alias_column, Contributor.username)
            .where(alias_column.in_(wanted))
            .order_by(Contributor.username)
        )
        resolved: dict[str, str] = {}
        for alias, username in result.all():
            # Two contributors claiming one alias: first username wins
            resolved.setdefault(alias, username)
        return resolved

    async def set_platform_alias(self, username: str, key: str, value: str) -> Contributor:
        """Record a platform alias, creating the contributor if needed."""
        await self.ensure_contributors([username], commit=False)
        contributor = await self.db.get(Contributor, username, populate_existing=True)
        # Reassign so the JSON column is flagged dirty
        contributor.platform_aliases = {**(contributor.platform_aliases or {}), key: value}
        await self.db.commit()

        logger.info("Platform alias set", username=username, key=key, value=value)
        return contributor

    async def update_roles(self, usernames: Iterable[str], role: str) -> int:
        unique = sorted(set(usernames))
        if not unique:
            return 0

        result = await self.db.execute(
            update(Contributor)
            .where(Contributor.username.in_(unique))
            .values(role=role)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()

        logger.info("Contributor roles updated", role=role, count=result.rowcount)
        return result.rowcount

    async def update_bot_roles(self, logins: Iterable[str]) -> int:
        """Tag logins reported as bots by the version-control platform."""
        return await self.update_roles(logins, BOT_ROLE)

    async def compute_contributor_profile(self, username: str) -> ContributorProfile:
        """All-time activities, points and per-day counts for one contributor.

        An unknown username yields an empty profile rather than an error.
        """
        contributor = await self.get_contributor(username)
        if contributor is None:
            return ContributorProfile()

        result = await self.db.execute(
            select(Activity, ActivityDefinition)
            .join(ActivityDefinition, Activity.activity_definition == ActivityDefinition.slug)
            .where(Activity.contributor == username)
            .order_by(Activity.occurred_at.desc(), Activity.slug)
        )

        activities = []
        by_date: Counter[str] = Counter()
        total_points = 0
        for activity, definition in result.all():
            points = effective_points(activity.points, definition.points)
            total_points += points
            by_date[utc_date_string(activity.occurred_at)] += 1
            activities.append(
                ContributorActivity(
                    slug=activity.slug,
                    activity_definition=activity.activity_definition,
                    title=activity.title,
                    occurred_at=ensure_utc(activity.occurred_at),
                    link=activity.link,
                    text=activity.text,
                    points=points,
                    meta=coerce_meta(activity.meta),
                    activity_name=definition.name,
                    activity_description=definition.description,
                    activity_points=definition.points,
                    activity_icon=definition.icon,
                )
            )

        return ContributorProfile(
            contributor=ContributorDetail.model_validate(contributor),
            activities=activities,
            total_points=total_points,
            activity_by_date=dict(sorted(by_date.items())),
        )
