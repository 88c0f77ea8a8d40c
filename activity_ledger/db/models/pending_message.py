from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from activity_ledger.db.models.base import Base


class PendingMessage(Base):
    """A chat update waiting to be promoted into an ``eod_update`` activity."""

    __tablename__ = "pending_message"

    # Milliseconds of the platform message timestamp
    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    author_alias: Mapped[str] = mapped_column(String(64), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)

    __table_args__ = (
        Index("idx_pending_message_author_alias", "author_alias"),
        Index("idx_pending_message_timestamp", "timestamp"),
    )

    def __repr__(self) -> str:
        return f"<PendingMessage {self.id} from {self.author_alias}>"
