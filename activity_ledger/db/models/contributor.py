from datetime import datetime

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from activity_ledger.db.models.base import Base, JSONType, TimestampMixin


class Contributor(Base, TimestampMixin):
    __tablename__ = "contributor"

    username: Mapped[str] = mapped_column(String(255), primary_key=True)
    display_name: Mapped[str | None] = mapped_column(String(255))
    role: Mapped[str | None] = mapped_column(String(64), default="contributor")
    title: Mapped[str | None] = mapped_column(String(255))
    avatar_url: Mapped[str | None] = mapped_column(Text)
    bio: Mapped[str | None] = mapped_column(Text)
    social_profiles: Mapped[dict | None] = mapped_column(JSONType)
    joined_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    # e.g. {"slack_user_id": "U123ABC"}
    platform_aliases: Mapped[dict | None] = mapped_column(JSONType)
    meta: Mapped[dict | None] = mapped_column(JSONType)

    # Relationships
    activities = relationship("Activity", back_populates="contributor_ref")

    __table_args__ = (Index("idx_contributor_role", "role"),)

    def __repr__(self) -> str:
        return f"<Contributor {self.username} role={self.role}>"
