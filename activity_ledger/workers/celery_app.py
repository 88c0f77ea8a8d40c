from celery import Celery

from activity_ledger.core.config import settings

celery_app = Celery(
    "activity_ledger",
    broker=settings.celery_broker_url or str(settings.redis_url),
    backend=settings.celery_result_backend or str(settings.redis_url),
    include=[
        "activity_ledger.workers.tasks.ingestion_tasks",
    ],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
)

# Periodic tasks
celery_app.conf.beat_schedule = {
    "promote-pending-messages": {
        "task": "activity_ledger.workers.tasks.ingestion_tasks.promote_pending_messages",
        "schedule": settings.promotion_interval_seconds,
    },
}
