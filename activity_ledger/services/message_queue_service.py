from collections.abc import Sequence
from itertools import groupby

import structlog
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from activity_ledger.api.schemas.ingestion import (
    EnqueueResult,
    PendingAuthorGroup,
    PendingMessageRecord,
)
from activity_ledger.core.batching import chunked
from activity_ledger.core.config import Settings, get_settings
from activity_ledger.core.exceptions import StorageFailure
from activity_ledger.db.models.pending_message import PendingMessage
from activity_ledger.db.upsert import dialect_insert

logger = structlog.get_logger()


class MessageQueueService:
    """Staging queue for chat messages awaiting promotion."""

    def __init__(
        self,
        db: AsyncSession,
        batch_size: int | None = None,
        app_settings: Settings | None = None,
    ) -> None:
        self.db = db
        settings = app_settings or get_settings()
        self.batch_size = batch_size or settings.ingest_batch_size

    async def enqueue(self, messages: Sequence[PendingMessageRecord]) -> EnqueueResult:
        """Stage messages; ids that are already staged are ignored."""
        result = EnqueueResult(received=len(messages))
        unique: dict[int, PendingMessageRecord] = {}
        for message in messages:
            unique.setdefault(message.id, message)
        insert = dialect_insert(self.db)
        batches_committed = 0

        for batch in chunked(list(unique.values()), self.batch_size):
            stmt = (
                insert(PendingMessage)
                .values([m.model_dump() for m in batch])
                .on_conflict_do_nothing(index_elements=[PendingMessage.id])
                .returning(PendingMessage.id)
            )
            try:
                rows = await self.db.execute(stmt)
                inserted = len(rows.all())
                await self.db.commit()
            except SQLAlchemyError as exc:
                await self.db.rollback()
                logger.error("Staging batch failed", rows=len(batch), error=str(exc))
                raise StorageFailure(
                    "enqueue",
                    committed=result.inserted,
                    batches_committed=batches_committed,
                    cause=exc,
                ) from exc
            result.inserted += inserted
            batches_committed += 1

        logger.info(
            "Messages staged",
            received=result.received,
            inserted=result.inserted,
            ignored=result.received - result.inserted,
        )
        return result

    async def list_pending_grouped_by_author(self) -> list[PendingAuthorGroup]:
        """Snapshot of the whole queue, grouped by author, oldest message first."""
        result = await self.db.execute(
            select(PendingMessage).order_by(
                PendingMessage.author_alias,
                PendingMessage.timestamp,
                PendingMessage.id,
            )
        )
        rows = result.scalars().all()

        return [
            PendingAuthorGroup(
                author_alias=alias,
                messages=[PendingMessageRecord.model_validate(row) for row in group],
            )
            for alias, group in groupby(rows, key=lambda row: row.author_alias)
        ]

    async def delete_by_ids(self, ids: Sequence[int], commit: bool = True) -> int:
        deleted = 0
        for batch in chunked(list(ids), self.batch_size):
            result = await self.db.execute(
                delete(PendingMessage)
                .where(PendingMessage.id.in_(batch))
                .execution_options(synchronize_session=False)
            )
            deleted += result.rowcount
        if commit:
            await self.db.commit()
        return deleted

    async def list_all(self) -> list[PendingMessageRecord]:
        result = await self.db.execute(
            select(PendingMessage).order_by(PendingMessage.timestamp, PendingMessage.id)
        )
        return [PendingMessageRecord.model_validate(row) for row in result.scalars().all()]
