"""Activity log model.

Append-only audit trail of post lifecycle events. Rows are written in the
same transaction as the change they describe and are never updated.
"""

from datetime import datetime

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.stores.postgres import Base

ACTION_NEW_POST = "new_post"


class ActivityLog(Base):
    """Single activity entry referencing a post."""

    __tablename__ = "activity_logs"

    id: Mapped[int] = mapped_column(primary_key=True)

    action: Mapped[str] = mapped_column(String(50))  # e.g., "new_post"

    # Plain reference, not a foreign key: the log outlives whatever it points at
    post_id: Mapped[int] = mapped_column(index=True)

    logged_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return f"<ActivityLog {self.action} post={self.post_id}>"
