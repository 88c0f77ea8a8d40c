from collections.abc import Sequence
from enum import Enum

import structlog
from sqlalchemy import case, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from activity_ledger.api.schemas.activity import ActivityRecord
from activity_ledger.api.schemas.ingestion import UpsertResult
from activity_ledger.core.batching import chunked
from activity_ledger.core.config import Settings, get_settings
from activity_ledger.core.exceptions import StorageFailure, UnknownActivityDefinition
from activity_ledger.db.models.activity import Activity, ActivityDefinition
from activity_ledger.db.upsert import dialect_insert
from activity_ledger.services.contributor_service import ContributorService
from activity_ledger.services.scoring import effective_points

logger = structlog.get_logger()

TEXT_SEPARATOR = "\n\n"


class ConflictPolicy(str, Enum):
    """What an upsert does when the slug already exists."""

    # Overwrite every column; for re-fetched authoritative platform state
    REPLACE = "replace"
    # Keep the earliest timestamp and accumulate distinct texts
    MERGE_TEXT = "merge_text"


def merge_text(existing: str | None, incoming: str | None) -> str | None:
    """Combine two texts the way a MERGE_TEXT upsert does."""
    if not incoming or incoming == existing:
        return existing
    if not existing:
        return incoming
    return f"{existing}{TEXT_SEPARATOR}{incoming}"


def merge_activity(existing: ActivityRecord, incoming: ActivityRecord) -> ActivityRecord:
    """Fold ``incoming`` onto ``existing`` with MERGE_TEXT semantics."""
    return incoming.model_copy(
        update={
            "occurred_at": min(existing.occurred_at, incoming.occurred_at),
            "text": merge_text(existing.text, incoming.text),
        }
    )


def collapse_duplicates(
    activities: Sequence[ActivityRecord],
    policy: ConflictPolicy,
) -> list[ActivityRecord]:
    """Reduce same-slug records to one, in first-seen slug order.

    REPLACE keeps the last record. MERGE_TEXT folds them in input order.
    """
    collapsed: dict[str, ActivityRecord] = {}
    for activity in activities:
        previous = collapsed.get(activity.slug)
        if previous is not None and policy is ConflictPolicy.MERGE_TEXT:
            activity = merge_activity(previous, activity)
        collapsed[activity.slug] = activity
    return list(collapsed.values())


class ActivityService:
    """Service for writing and reading ledger activities."""

    def __init__(
        self,
        db: AsyncSession,
        batch_size: int | None = None,
        app_settings: Settings | None = None,
    ) -> None:
        self.db = db
        self.settings = app_settings or get_settings()
        self.batch_size = batch_size or self.settings.ingest_batch_size

    async def _definition_points(self) -> dict[str, int]:
        result = await self.db.execute(
            select(ActivityDefinition.slug, ActivityDefinition.points)
        )
        return dict(result.all())

    async def upsert_activities(
        self,
        activities: Sequence[ActivityRecord],
        policy: ConflictPolicy = ConflictPolicy.REPLACE,
    ) -> UpsertResult:
        """Idempotently write activities in sequential, separately committed batches.

        Records naming an unknown activity definition are rejected and counted.
        Duplicate slugs are collapsed before batching, so one slug never spans
        two batches. If a batch fails it is rolled back and ``StorageFailure``
        is raised carrying what earlier batches committed.
        """
        result = UpsertResult()
        definitions = await self._definition_points()

        accepted = []
        for activity in activities:
            if activity.activity_definition not in definitions:
                error = UnknownActivityDefinition(activity.activity_definition, activity.slug)
                logger.warning(
                    "Rejected activity",
                    slug=activity.slug,
                    definition=error.definition,
                    reason=error.reason,
                )
                result.rejected += 1
                result.rejected_slugs.append(activity.slug)
                continue
            accepted.append(activity)

        records = collapse_duplicates(accepted, policy)

        for batch in chunked(records, self.batch_size):
            try:
                written = await self.write_batch(batch, policy)
                await self.db.commit()
            except SQLAlchemyError as exc:
                await self.db.rollback()
                logger.error(
                    "Activity batch failed",
                    batch=result.batches + 1,
                    rows=len(batch),
                    committed=result.affected,
                    error=str(exc),
                )
                raise StorageFailure(
                    "upsert_activities",
                    committed=result.affected,
                    batches_committed=result.batches,
                    cause=exc,
                ) from exc

            result.affected += written
            result.batches += 1
            logger.info(
                "Upserted activity batch",
                batch=result.batches,
                rows=written,
                policy=policy.value,
                points=sum(
                    effective_points(a.points, definitions[a.activity_definition])
                    for a in batch
                ),
            )

        logger.info(
            "Activities upserted",
            affected=result.affected,
            rejected=result.rejected,
            batches=result.batches,
            policy=policy.value,
        )
        return result

    async def write_batch(
        self,
        batch: Sequence[ActivityRecord],
        policy: ConflictPolicy,
    ) -> int:
        """Ensure contributors and run one upsert statement, without committing.

        Slugs within ``batch`` must be unique.
        """
        if not batch:
            return 0

        await ContributorService(self.db, self.settings).ensure_contributors(
            (a.contributor for a in batch), commit=False
        )

        insert = dialect_insert(self.db)
        stmt = insert(Activity).values([a.to_row() for a in batch])
        stmt = stmt.on_conflict_do_update(
            index_elements=[Activity.slug],
            set_=self._conflict_updates(stmt, policy),
        ).returning(Activity.slug)

        result = await self.db.execute(stmt)
        return len(result.all())

    @staticmethod
    def _conflict_updates(stmt, policy: ConflictPolicy) -> dict:
        table = Activity.__table__
        incoming = stmt.excluded
        updates = {
            column.name: incoming[column.name]
            for column in table.columns
            if not column.primary_key
        }
        if policy is ConflictPolicy.REPLACE:
            return updates

        existing_text = table.c.text
        incoming_text = incoming["text"]
        updates["occurred_at"] = case(
            (incoming["occurred_at"] < table.c.occurred_at, incoming["occurred_at"]),
            else_=table.c.occurred_at,
        )
        updates["text"] = case(
            (
                or_(
                    incoming_text.is_(None),
                    incoming_text == "",
                    incoming_text == existing_text,
                ),
                existing_text,
            ),
            (or_(existing_text.is_(None), existing_text == ""), incoming_text),
            else_=existing_text + TEXT_SEPARATOR + incoming_text,
        )
        return updates

    async def get_activity(self, slug: str) -> ActivityRecord | None:
        activity = await self.db.get(Activity, slug, populate_existing=True)
        if activity is None:
            return None
        return ActivityRecord.model_validate(activity)

    async def get_activities_by_definitions(
        self,
        definition_slugs: Sequence[str],
    ) -> list[ActivityRecord]:
        """Activities of the given types, newest first."""
        if not definition_slugs:
            return []

        result = await self.db.execute(
            select(Activity)
            .where(Activity.activity_definition.in_(definition_slugs))
            .order_by(Activity.occurred_at.desc(), Activity.slug)
        )
        return [ActivityRecord.model_validate(a) for a in result.scalars().all()]
