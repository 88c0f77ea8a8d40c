from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from activity_ledger.db.models.base import Base, JSONType


class ActivityType(str, Enum):
    """Slugs of the catalogued activity definitions."""

    # Version control
    ISSUE_OPENED = "issue_opened"
    ISSUE_CLOSED = "issue_closed"
    ISSUE_ASSIGNED = "issue_assigned"
    ISSUE_LABELED = "issue_labeled"
    PR_OPENED = "pr_opened"
    PR_MERGED = "pr_merged"
    PR_REVIEWED = "pr_reviewed"
    PR_COLLABORATED = "pr_collaborated"
    COMMENT_CREATED = "comment_created"
    COMMIT_CREATED = "commit_created"

    # Team chat
    EOD_UPDATE = "eod_update"


class ActivityDefinition(Base):
    __tablename__ = "activity_definition"

    slug: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    icon: Mapped[str | None] = mapped_column(String(64))

    activities = relationship("Activity", back_populates="definition")

    def __repr__(self) -> str:
        return f"<ActivityDefinition {self.slug}={self.points}>"


class Activity(Base):
    __tablename__ = "activity"

    slug: Mapped[str] = mapped_column(String(512), primary_key=True)
    contributor: Mapped[str] = mapped_column(
        ForeignKey("contributor.username"),
        nullable=False,
    )
    activity_definition: Mapped[str] = mapped_column(
        ForeignKey("activity_definition.slug"),
        nullable=False,
    )
    title: Mapped[str | None] = mapped_column(Text)
    occurred_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    link: Mapped[str | None] = mapped_column(Text)
    text: Mapped[str | None] = mapped_column(Text)
    # Overrides ActivityDefinition.points when set
    points: Mapped[int | None] = mapped_column(Integer)
    meta: Mapped[dict | None] = mapped_column(JSONType)

    # Relationships
    contributor_ref = relationship("Contributor", back_populates="activities")
    definition = relationship("ActivityDefinition", back_populates="activities")

    __table_args__ = (
        Index("idx_activity_contributor", "contributor"),
        Index("idx_activity_occurred_at", "occurred_at"),
        Index("idx_activity_definition", "activity_definition"),
    )

    def __repr__(self) -> str:
        return f"<Activity {self.slug} by {self.contributor}>"
