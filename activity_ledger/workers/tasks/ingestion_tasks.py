import asyncio
import sys
from typing import Any

import structlog
from pydantic import ValidationError

from activity_ledger.api.schemas.activity import ActivityRecord
from activity_ledger.core.config import settings
from activity_ledger.core.exceptions import StorageFailure
from activity_ledger.db.database import create_worker_session_maker
from activity_ledger.normalizers.chat import pending_messages_from_chat
from activity_ledger.services.activity_service import ActivityService, ConflictPolicy
from activity_ledger.services.definition_service import ActivityDefinitionService
from activity_ledger.services.message_queue_service import MessageQueueService
from activity_ledger.services.promotion_service import PromotionService
from activity_ledger.workers.celery_app import celery_app

logger = structlog.get_logger()

# Windows requires ProactorEventLoop for asyncpg
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())


def run_async(coro):
    """Run async code in sync context."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        pending = asyncio.all_tasks(loop)
        for task in pending:
            task.cancel()
        loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
        loop.close()


@celery_app.task
def seed_activity_definitions() -> dict:
    """Insert or refresh the static activity definition catalog."""
    return run_async(_seed_activity_definitions_async())


async def _seed_activity_definitions_async() -> dict:
    engine, session_maker = create_worker_session_maker()
    try:
        async with session_maker() as db:
            count = await ActivityDefinitionService(db).upsert_definitions()
    finally:
        await engine.dispose()
    return {"status": "completed", "definitions": count}


@celery_app.task(bind=True, max_retries=3)
def ingest_activities(self, activities: list[dict[str, Any]], policy: str = "replace") -> dict:
    """Upsert normalized activities handed over by a scraper."""
    return run_async(_ingest_activities_async(self, activities, ConflictPolicy(policy)))


async def _ingest_activities_async(
    task,
    activities: list[dict[str, Any]],
    policy: ConflictPolicy,
) -> dict:
    records: list[ActivityRecord] = []
    malformed = 0
    for raw in activities:
        try:
            records.append(ActivityRecord.model_validate(raw))
        except ValidationError as exc:
            malformed += 1
            logger.warning(
                "Dropped malformed activity",
                slug=raw.get("slug") if isinstance(raw, dict) else None,
                errors=exc.error_count(),
            )

    engine, session_maker = create_worker_session_maker()
    try:
        async with session_maker() as db:
            result = await ActivityService(db).upsert_activities(records, policy)
    except StorageFailure as exc:
        logger.error(
            "Activity ingestion failed",
            committed=exc.committed,
            batches_committed=exc.batches_committed,
            retries=task.request.retries,
        )
        # Upserts are idempotent, so the whole payload is simply replayed
        raise task.retry(exc=exc, countdown=60 * (task.request.retries + 1))
    finally:
        await engine.dispose()

    return {"status": "completed", "malformed": malformed, **result.model_dump()}


@celery_app.task
def stage_chat_messages(messages: list[dict[str, Any]]) -> dict:
    """Filter raw chat messages and stage the qualifying ones."""
    return run_async(_stage_chat_messages_async(messages))


async def _stage_chat_messages_async(messages: list[dict[str, Any]]) -> dict:
    batch = pending_messages_from_chat(messages, settings.chat_min_message_length)
    engine, session_maker = create_worker_session_maker()
    try:
        async with session_maker() as db:
            result = await MessageQueueService(db).enqueue(batch.messages)
    finally:
        await engine.dispose()

    return {
        "status": "completed",
        "inserted": result.inserted,
        "discarded": batch.discarded,
        "malformed": len(batch.malformed),
    }


@celery_app.task(bind=True, max_retries=3)
def promote_pending_messages(self) -> dict:
    """Promote staged chat messages into daily update activities."""
    return run_async(_promote_pending_messages_async(self))


async def _promote_pending_messages_async(task) -> dict:
    engine, session_maker = create_worker_session_maker()
    try:
        async with session_maker() as db:
            result = await PromotionService(db).promote_pending_messages()
    except StorageFailure as exc:
        logger.error(
            "Promotion failed",
            promoted=exc.batches_committed,
            retries=task.request.retries,
        )
        # Promoted days are already deleted from the queue; the retry resumes the rest
        raise task.retry(exc=exc, countdown=60 * (task.request.retries + 1))
    finally:
        await engine.dispose()

    return {"status": "completed", **result.model_dump()}
