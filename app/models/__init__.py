"""SQLAlchemy ORM models.

Models represent database tables:
- posts: Blog posts (system-of-record)
- activity_logs: Append-only post activity trail
"""

from app.models.activity_log import ACTION_NEW_POST, ActivityLog
from app.models.post import Post

__all__ = ["ACTION_NEW_POST", "ActivityLog", "Post"]
