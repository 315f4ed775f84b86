"""Post repository on top of PostgreSQL.

Handles:
- Transactional post inserts paired with activity log entries
- Full-replacement updates
- Lookups by id and by tag containment (`tags @> ARRAY[tag]`, GIN-indexed)

Returns detached pydantic snapshots (`PostOut`, `ActivityEntry`) so callers
never hold ORM objects bound to a closed session.
"""

from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from typing import TypeVar

from sqlalchemy import Select, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import NotFoundError, PostServiceError, TransactionError, ValidationError
from app.models import ActivityLog, Post
from app.schemas import ActivityEntry, PostOut
from app.stores.postgres import Database

T = TypeVar("T")


def _validate(title: str, content: str) -> None:
    if not title or not title.strip():
        raise ValidationError("title must not be empty")
    if not content or not content.strip():
        raise ValidationError("content must not be empty")


def select_posts_by_tag(tag: str) -> Select[tuple[Post]]:
    """Posts whose tag array contains `tag`, newest first."""
    return select(Post).where(Post.tags.contains([tag])).order_by(Post.id.desc())


def select_activity_for_post(post_id: int) -> Select[tuple[ActivityLog]]:
    """Activity entries for a post, oldest first."""
    return (
        select(ActivityLog)
        .where(ActivityLog.post_id == post_id)
        .order_by(ActivityLog.id.asc())
    )


class PostStore:
    """Record store for posts and their activity log."""

    def __init__(self, db: Database):
        self._db = db

    async def run_in_transaction(self, fn: Callable[[AsyncSession], Awaitable[T]]) -> T:
        """Run `fn(session)` in one transaction.

        Any exception rolls back everything `fn` wrote. Database errors are
        re-raised as TransactionError; domain errors pass through unchanged.
        """
        try:
            async with self._db.session() as session:
                return await fn(session)
        except PostServiceError:
            raise
        except SQLAlchemyError as e:
            raise TransactionError(f"Transaction aborted: {e}") from e

    async def create(
        self,
        session: AsyncSession,
        title: str,
        content: str,
        tags: Sequence[str],
    ) -> PostOut:
        """Insert a post inside the caller's transaction."""
        _validate(title, content)

        post = Post(title=title, content=content, tags=list(tags))
        session.add(post)
        await session.flush()
        # Load id + server-side timestamps
        await session.refresh(post)
        return PostOut.model_validate(post)

    async def append_activity(self, session: AsyncSession, action: str, post_id: int) -> ActivityEntry:
        """Append an activity entry. Must be called inside an active transaction."""
        if not session.in_transaction():
            raise TransactionError("append_activity requires an active transaction")

        entry = ActivityLog(action=action, post_id=post_id)
        session.add(entry)
        await session.flush()
        await session.refresh(entry)
        return ActivityEntry.model_validate(entry)

    async def update(
        self,
        post_id: int,
        title: str,
        content: str,
        tags: Sequence[str],
    ) -> PostOut:
        """Replace title, content and tags of an existing post."""
        _validate(title, content)

        async def _apply(session: AsyncSession) -> PostOut:
            post = await session.get(Post, post_id)
            if post is None:
                raise NotFoundError(post_id)
            post.title = title
            post.content = content
            post.tags = list(tags)
            await session.flush()
            # updated_at is refreshed server-side via onupdate
            await session.refresh(post)
            return PostOut.model_validate(post)

        return await self.run_in_transaction(_apply)

    async def get_by_id(self, post_id: int) -> PostOut:
        async with self._db.session() as session:
            post = await session.get(Post, post_id)
            if post is None:
                raise NotFoundError(post_id)
            return PostOut.model_validate(post)

    async def search_by_tag(self, tag: str) -> list[PostOut]:
        async with self._db.session() as session:
            result = await session.execute(select_posts_by_tag(tag))
            return [PostOut.model_validate(p) for p in result.scalars().all()]

    async def list_activity(self, post_id: int) -> list[ActivityEntry]:
        async with self._db.session() as session:
            result = await session.execute(select_activity_for_post(post_id))
            return [ActivityEntry.model_validate(e) for e in result.scalars().all()]

    async def iter_posts(self, batch_size: int = 500) -> AsyncIterator[PostOut]:
        """Yield every post by ascending id, one keyset page at a time."""
        last_id = 0
        while True:
            async with self._db.session() as session:
                result = await session.execute(
                    select(Post).where(Post.id > last_id).order_by(Post.id.asc()).limit(batch_size)
                )
                page = [PostOut.model_validate(p) for p in result.scalars().all()]

            for post in page:
                yield post

            if len(page) < batch_size:
                return
            last_id = page[-1].id
