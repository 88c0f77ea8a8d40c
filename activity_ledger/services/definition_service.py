import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from activity_ledger.api.schemas.activity import ActivityDefinitionData
from activity_ledger.db.models.activity import ActivityDefinition, ActivityType
from activity_ledger.db.upsert import dialect_insert

logger = structlog.get_logger()


DEFAULT_DEFINITIONS: list[ActivityDefinitionData] = [
    ActivityDefinitionData(
        slug=ActivityType.COMMENT_CREATED.value,
        name="Commented",
        description="Commented on an Issue/PR",
        points=0,
        icon="message-circle",
    ),
    ActivityDefinitionData(
        slug=ActivityType.ISSUE_ASSIGNED.value,
        name="Issue Assigned",
        description="Got an issue assigned",
        points=1,
        icon="user-round-check",
    ),
    ActivityDefinitionData(
        slug=ActivityType.PR_REVIEWED.value,
        name="PR Reviewed",
        description="Reviewed a Pull Request",
        points=10,
        icon="eye",
    ),
    ActivityDefinitionData(
        slug=ActivityType.ISSUE_OPENED.value,
        name="Issue Opened",
        description="Raised an Issue",
        points=2,
        icon="circle-dot",
    ),
    ActivityDefinitionData(
        slug=ActivityType.PR_OPENED.value,
        name="PR Opened",
        description="Opened a Pull Request",
        points=5,
        icon="git-pull-request-create-arrow",
    ),
    ActivityDefinitionData(
        slug=ActivityType.PR_MERGED.value,
        name="PR Merged",
        description="Merged a Pull Request",
        points=7,
        icon="git-merge",
    ),
    ActivityDefinitionData(
        slug=ActivityType.PR_COLLABORATED.value,
        name="PR Collaborated",
        description="Collaborated on a Pull Request",
        points=2,
    ),
    ActivityDefinitionData(
        slug=ActivityType.ISSUE_CLOSED.value,
        name="Issue Closed",
        description="Closed an Issue",
        points=0,
    ),
    ActivityDefinitionData(
        slug=ActivityType.ISSUE_LABELED.value,
        name="Issue Labeled",
        description="Labeled/triaged an Issue",
        points=2,
        icon="tag",
    ),
    ActivityDefinitionData(
        slug=ActivityType.COMMIT_CREATED.value,
        name="Commit Created",
        description="Pushed a commit",
        points=0,
        icon="git-commit-horizontal",
    ),
    ActivityDefinitionData(
        slug=ActivityType.EOD_UPDATE.value,
        name="EOD Update",
        description="Dropped an EOD Update",
        points=2,
        icon="message-square",
    ),
]


class ActivityDefinitionService:
    """Service for the static catalog of recognised activity types."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def list_definitions(self) -> list[ActivityDefinition]:
        result = await self.db.execute(
            select(ActivityDefinition).order_by(ActivityDefinition.slug)
        )
        return list(result.scalars().all())

    async def get_definition(self, slug: str) -> ActivityDefinition | None:
        return await self.db.get(ActivityDefinition, slug)

    async def known_slugs(self) -> set[str]:
        result = await self.db.execute(select(ActivityDefinition.slug))
        return set(result.scalars().all())

    async def upsert_definitions(
        self,
        definitions: list[ActivityDefinitionData] | None = None,
    ) -> int:
        """Insert or refresh catalog rows. Seeds the default catalog when called bare."""
        definitions = DEFAULT_DEFINITIONS if definitions is None else definitions
        if not definitions:
            return 0

        insert = dialect_insert(self.db)
        stmt = insert(ActivityDefinition).values([d.model_dump() for d in definitions])
        stmt = stmt.on_conflict_do_update(
            index_elements=[ActivityDefinition.slug],
            set_={
                "name": stmt.excluded["name"],
                "description": stmt.excluded["description"],
                "points": stmt.excluded["points"],
                "icon": stmt.excluded["icon"],
            },
        )
        await self.db.execute(stmt)
        await self.db.commit()

        logger.info("Activity definitions upserted", count=len(definitions))
        return len(definitions)
