from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Hashable, Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, TypeVar

import structlog
from pydantic import BaseModel, ValidationError

from activity_ledger.api.schemas.activity import ActivityRecord
from activity_ledger.core.exceptions import MalformedEvent

logger = structlog.get_logger()

BOT_ACTOR_TYPE = "Bot"

E = TypeVar("E", bound=BaseModel)
T = TypeVar("T")
K = TypeVar("K", bound=Hashable)


@dataclass
class NormalizationResult:
    """Activities produced from one batch of platform events."""

    activities: list[ActivityRecord] = field(default_factory=list)
    malformed: list[MalformedEvent] = field(default_factory=list)
    bot_logins: set[str] = field(default_factory=set)

    @property
    def dropped(self) -> int:
        return len(self.malformed)

    def add(self, activity: ActivityRecord) -> None:
        self.activities.append(activity)

    def reject(self, error: MalformedEvent) -> None:
        logger.warning(
            "Dropped malformed event",
            kind=error.kind,
            event_id=error.event_id,
            reason=error.reason,
        )
        self.malformed.append(error)

    def note_actor(self, login: str | None, actor_type: str | None) -> None:
        if login and actor_type == BOT_ACTOR_TYPE:
            self.bot_logins.add(login)

    def __add__(self, other: NormalizationResult) -> NormalizationResult:
        return NormalizationResult(
            activities=[*self.activities, *other.activities],
            malformed=[*self.malformed, *other.malformed],
            bot_logins=self.bot_logins | other.bot_logins,
        )


def coerce_event(model: type[E], raw: E | dict[str, Any], kind: str) -> E:
    """Validate a raw platform payload, raising ``MalformedEvent`` on failure."""
    if isinstance(raw, model):
        return raw
    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        fields = ", ".join(
            ".".join(str(p) for p in err["loc"]) or "<root>" for err in exc.errors()
        )
        event_id = None
        if isinstance(raw, dict):
            for key in ("id", "number", "commitId", "ts"):
                if raw.get(key) is not None:
                    event_id = str(raw[key])
                    break
        raise MalformedEvent(kind, f"invalid fields: {fields}", event_id=event_id) from exc


def require_author(author: str | None, kind: str, event_id: str) -> str:
    if not author:
        raise MalformedEvent(kind, "missing author", event_id=event_id)
    return author


def latest_per_key(
    items: Iterable[T],
    key: Callable[[T], K],
    timestamp: Callable[[T], datetime],
) -> dict[K, T]:
    """Keep the chronologically latest item for each key.

    Items are ordered by timestamp before folding, so the winner never depends
    on arrival order. Equal timestamps keep the one that arrived last.
    """
    return {key(item): item for item in sorted(items, key=timestamp)}


def find_duplicate_slugs(activities: Iterable[ActivityRecord]) -> list[str]:
    """Slugs produced more than once, in first-seen order."""
    counts = Counter(a.slug for a in activities)
    duplicates = [slug for slug, count in counts.items() if count > 1]
    for slug in duplicates:
        logger.warning("Duplicate activity slug", slug=slug, count=counts[slug])
    return duplicates
