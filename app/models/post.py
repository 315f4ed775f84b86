"""Post model.

The system-of-record for blog posts. Cache entries and search documents
are derived copies of rows in this table.
"""

from datetime import datetime

from sqlalchemy import DateTime, Index, String, Text, func
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column

from app.stores.postgres import Base


class Post(Base):
    """A blog post."""

    __tablename__ = "posts"
    __table_args__ = (
        # Serves `tags @> ARRAY[...]` containment lookups.
        Index("ix_posts_tags_gin", "tags", postgresql_using="gin"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    title: Mapped[str] = mapped_column(String(255))
    content: Mapped[str] = mapped_column(Text)

    # Ordered, duplicates allowed
    tags: Mapped[list[str]] = mapped_column(ARRAY(Text), default=list, server_default="{}")

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:
        return f"<Post {self.id} {self.title!r}>"
