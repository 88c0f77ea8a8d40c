from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from activity_ledger.core.timeutils import ensure_utc


class PendingMessageRecord(BaseModel):
    id: int
    author_alias: str = Field(..., min_length=1)
    timestamp: datetime
    text: str

    model_config = {"from_attributes": True}

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, v: datetime) -> datetime:
        return ensure_utc(v)


class PendingAuthorGroup(BaseModel):
    """Every staged message of one author, oldest first."""

    author_alias: str
    messages: list[PendingMessageRecord]

    @property
    def ids(self) -> list[int]:
        return [m.id for m in self.messages]


class UpsertResult(BaseModel):
    affected: int = 0
    rejected: int = 0
    batches: int = 0
    rejected_slugs: list[str] = Field(default_factory=list)


class EnqueueResult(BaseModel):
    inserted: int = 0
    received: int = 0


class PromotionResult(BaseModel):
    # Counted in messages; ``activities`` counts (author, day) activities written
    processed: int = 0
    skipped: int = 0
    activities: int = 0
    unmatched_aliases: list[str] = Field(default_factory=list)
