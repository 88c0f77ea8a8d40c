from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

import structlog

from activity_ledger.api.schemas.activity import ActivityRecord, ChatMeta
from activity_ledger.api.schemas.events import ChatMessage
from activity_ledger.api.schemas.ingestion import PendingMessageRecord
from activity_ledger.core.exceptions import MalformedEvent
from activity_ledger.core.timeutils import from_platform_timestamp, utc_date_string
from activity_ledger.db.models.activity import ActivityType
from activity_ledger.normalizers.base import coerce_event

logger = structlog.get_logger()

# Reactions, emoji and "+1" replies are not daily updates
MINIMUM_MESSAGE_LENGTH = 5

EOD_TITLE = "EOD Update"
EOD_SEPARATOR = "\n\n"


@dataclass
class StagingBatch:
    messages: list[PendingMessageRecord] = field(default_factory=list)
    discarded: int = 0
    malformed: list[MalformedEvent] = field(default_factory=list)


def is_valid_eod_message(
    message: ChatMessage,
    min_length: int = MINIMUM_MESSAGE_LENGTH,
) -> bool:
    """Plain user message with enough text to count as an update."""
    return (
        message.type == "message"
        and message.subtype is None
        and message.bot_id is None
        and bool(message.user)
        and message.text is not None
        and len(message.text.strip()) > min_length
    )


def message_id_from_ts(ts: str) -> int:
    """Millisecond id derived from a ``seconds.micros`` platform timestamp."""
    try:
        return int(Decimal(ts) * 1000)
    except (InvalidOperation, ValueError, OverflowError) as exc:
        raise MalformedEvent("chat_message", f"invalid timestamp {ts!r}", event_id=ts) from exc


def timestamp_from_ts(ts: str) -> datetime:
    """Aware UTC datetime for a platform timestamp; out of range values are malformed."""
    try:
        return from_platform_timestamp(ts)
    except (ValueError, OverflowError, OSError) as exc:
        raise MalformedEvent("chat_message", f"timestamp out of range {ts!r}", event_id=ts) from exc


def pending_messages_from_chat(
    messages: Iterable[ChatMessage | dict[str, Any]],
    min_length: int = MINIMUM_MESSAGE_LENGTH,
) -> StagingBatch:
    """Filter raw chat messages down to stageable daily updates."""
    batch = StagingBatch()

    for raw in messages:
        try:
            message = coerce_event(ChatMessage, raw, "chat_message")
            if not is_valid_eod_message(message, min_length):
                batch.discarded += 1
                continue
            batch.messages.append(
                PendingMessageRecord(
                    id=message_id_from_ts(message.ts),
                    author_alias=message.user,
                    timestamp=timestamp_from_ts(message.ts),
                    text=message.text.strip(),
                )
            )
        except MalformedEvent as exc:
            logger.warning("Dropped malformed chat message", reason=exc.reason, ts=exc.event_id)
            batch.malformed.append(exc)

    logger.debug(
        "Filtered chat messages",
        staged=len(batch.messages),
        discarded=batch.discarded,
        malformed=len(batch.malformed),
    )
    return batch


def group_messages_by_day(
    messages: Sequence[PendingMessageRecord],
) -> dict[str, list[PendingMessageRecord]]:
    """Bucket messages by UTC calendar day, keeping their order."""
    by_day: dict[str, list[PendingMessageRecord]] = {}
    for message in messages:
        by_day.setdefault(utc_date_string(message.timestamp), []).append(message)
    return by_day


def eod_slug(day: str, contributor: str) -> str:
    return f"{ActivityType.EOD_UPDATE.value}_{day}_{contributor}"


def eod_activity(
    contributor: str,
    day: str,
    texts: Sequence[str],
    occurred_at: datetime,
) -> ActivityRecord:
    """One daily update activity holding every text posted that day."""
    return ActivityRecord(
        slug=eod_slug(day, contributor),
        contributor=contributor,
        activity_definition=ActivityType.EOD_UPDATE.value,
        title=EOD_TITLE,
        occurred_at=occurred_at,
        text=EOD_SEPARATOR.join(texts),
        meta=ChatMeta(date=day),
    )
