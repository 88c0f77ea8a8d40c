import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from activity_ledger.api.schemas.ingestion import PendingAuthorGroup, PromotionResult
from activity_ledger.core.config import Settings, get_settings
from activity_ledger.core.exceptions import IdentityResolutionMiss, StorageFailure
from activity_ledger.normalizers.chat import eod_activity, group_messages_by_day
from activity_ledger.services.activity_service import ActivityService, ConflictPolicy
from activity_ledger.services.contributor_service import ContributorService
from activity_ledger.services.message_queue_service import MessageQueueService

logger = structlog.get_logger()


class PromotionService:
    """Turns staged chat messages into daily update activities."""

    def __init__(self, db: AsyncSession, app_settings: Settings | None = None) -> None:
        self.db = db
        self.settings = app_settings or get_settings()
        self.queue = MessageQueueService(db, app_settings=self.settings)
        self.activities = ActivityService(db, app_settings=self.settings)
        self.contributors = ContributorService(db, app_settings=self.settings)

    @staticmethod
    def _username_for(group: PendingAuthorGroup, resolved: dict[str, str]) -> str:
        username = resolved.get(group.author_alias)
        if username is None:
            raise IdentityResolutionMiss(group.author_alias, len(group.messages))
        return username

    async def promote_pending_messages(self) -> PromotionResult:
        """Promote every staged message whose author alias is known.

        Each (author, UTC day) is one transaction: the merged ``eod_update``
        activity is written and exactly that day's staged messages are deleted.
        Authors without a matching contributor are skipped and stay staged.
        A failed transaction raises ``StorageFailure``; days promoted before it
        stay committed and the rest can be retried by running promotion again.
        """
        result = PromotionResult()

        groups = await self.queue.list_pending_grouped_by_author()
        if not groups:
            logger.info("No staged messages to promote")
            return result

        resolved = await self.contributors.resolve_aliases(g.author_alias for g in groups)

        for group in groups:
            try:
                username = self._username_for(group, resolved)
            except IdentityResolutionMiss as miss:
                logger.warning(
                    "Unmatched chat alias, messages left staged",
                    alias=miss.alias,
                    messages=miss.message_count,
                )
                result.skipped += miss.message_count
                result.unmatched_aliases.append(miss.alias)
                continue

            for day, messages in group_messages_by_day(group.messages).items():
                activity = eod_activity(
                    contributor=username,
                    day=day,
                    texts=[m.text for m in messages],
                    occurred_at=messages[0].timestamp,
                )
                try:
                    await self.activities.write_batch([activity], ConflictPolicy.MERGE_TEXT)
                    await self.queue.delete_by_ids([m.id for m in messages], commit=False)
                    await self.db.commit()
                except SQLAlchemyError as exc:
                    await self.db.rollback()
                    logger.error(
                        "Promotion failed",
                        username=username,
                        day=day,
                        promoted=result.activities,
                        error=str(exc),
                    )
                    raise StorageFailure(
                        "promote_pending_messages",
                        committed=result.processed,
                        batches_committed=result.activities,
                        cause=exc,
                    ) from exc

                result.processed += len(messages)
                result.activities += 1
                logger.debug(
                    "Promoted daily update",
                    username=username,
                    day=day,
                    messages=len(messages),
                )

        logger.info(
            "Staged messages promoted",
            processed=result.processed,
            skipped=result.skipped,
            activities=result.activities,
            unmatched_aliases=result.unmatched_aliases,
        )
        return result
