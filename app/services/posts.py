"""Post service: keeps the record store, cache and search index consistent.

Write flow (create/update):
1. Write to PostgreSQL in a transaction (the only all-or-nothing step)
2. After commit: invalidate the cached snapshot (update only)
3. After commit: upsert the search document

Read flow:
1. Redis snapshot (`post:<id>`), possibly stale up to the cache TTL
2. PostgreSQL on miss, then repopulate the cache
3. Elasticsearch for related posts (enriched reads only)

Steps 2-3 of writes and cache/index steps of reads are best-effort: their
errors become SoftFailure records that are logged and discarded. They never
change the outcome of a request. Store errors always propagate.
"""

import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any, Generic, Protocol, TypeVar

from app.errors import SoftFailure
from app.models import ACTION_NEW_POST
from app.schemas import ActivityEntry, PostCreate, PostOut, PostUpdate, PostWithRelated, SearchHit
from app.stores.redis import post_cache_key

logger = logging.getLogger("uvicorn.error")

T = TypeVar("T")

DEFAULT_RELATED_LIMIT = 5


class RecordStore(Protocol):
    async def run_in_transaction(self, fn: Callable[[Any], Awaitable[T]]) -> T: ...

    async def create(self, session: Any, title: str, content: str, tags: Sequence[str]) -> PostOut: ...

    async def append_activity(self, session: Any, action: str, post_id: int) -> ActivityEntry: ...

    async def update(self, post_id: int, title: str, content: str, tags: Sequence[str]) -> PostOut: ...

    async def get_by_id(self, post_id: int) -> PostOut: ...

    async def search_by_tag(self, tag: str) -> list[PostOut]: ...

    async def list_activity(self, post_id: int) -> list[ActivityEntry]: ...

    def iter_posts(self, batch_size: int = ...) -> AsyncIterator[PostOut]: ...


class PostCache(Protocol):
    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str, ttl: int | None = None) -> None: ...

    async def delete(self, key: str) -> None: ...


class PostIndex(Protocol):
    async def index_document(self, doc_id: int, fields: dict[str, Any]) -> None: ...

    async def search_full_text(self, query: str) -> list[SearchHit]: ...

    async def find_related(self, exclude_id: int, tags: Sequence[str], limit: int) -> list[SearchHit]: ...


@dataclass(frozen=True)
class SoftResult(Generic[T]):
    """Outcome of a best-effort call: a value, or the failure that was discarded."""

    value: T | None = None
    failure: SoftFailure | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None


async def best_effort(operation: str, key: str, call: Awaitable[T]) -> SoftResult[T]:
    """Await a cache/index call, downgrading any error to a logged SoftFailure.

    Cancellation is not an Exception and always propagates.
    """
    try:
        return SoftResult(value=await call)
    except Exception as e:
        failure = SoftFailure(operation=operation, key=key, error=e)
        logger.warning(f"Soft failure (ignored): {failure}")
        return SoftResult(failure=failure)


@dataclass
class ReindexStats:
    indexed: int = 0
    failed: int = 0


class PostService:
    """Coordinates post writes and reads across store, cache and index.

    Holds no mutable state; one instance is shared by all requests.
    """

    def __init__(
        self,
        store: RecordStore,
        cache: PostCache,
        index: PostIndex,
        *,
        related_limit: int = DEFAULT_RELATED_LIMIT,
    ):
        self.store = store
        self.cache = cache
        self.index = index
        self.related_limit = related_limit

    # ============================================================
    # Writes
    # ============================================================

    async def create_post(self, data: PostCreate) -> PostOut:
        """Persist a post and its "new_post" activity atomically, then index it."""

        async def _insert(session: Any) -> PostOut:
            post = await self.store.create(session, data.title, data.content, data.tags)
            await self.store.append_activity(session, ACTION_NEW_POST, post.id)
            return post

        post = await self.store.run_in_transaction(_insert)
        logger.info(f"Post {post.id} created")

        # Committed; indexing can only degrade search, never the create.
        await best_effort("index_document", str(post.id), self.index.index_document(post.id, post.search_fields()))
        return post

    async def update_post(self, post_id: int, data: PostUpdate) -> PostOut:
        """Replace a post, invalidate its snapshot, re-index, and return the stored row."""
        await self.store.update(post_id, data.title, data.content, data.tags)

        key = post_cache_key(post_id)
        # Invalidate before indexing so a failed index write can't keep a stale snapshot alive
        await best_effort("cache_delete", key, self.cache.delete(key))

        fields = {"id": post_id, "title": data.title, "content": data.content, "tags": list(data.tags)}
        await best_effort("index_document", str(post_id), self.index.index_document(post_id, fields))

        return await self.store.get_by_id(post_id)

    # ============================================================
    # Reads
    # ============================================================

    async def get_post(self, post_id: int) -> PostOut:
        """Read-through: cache, then store (repopulating the cache)."""
        key = post_cache_key(post_id)

        cached = await best_effort("cache_get", key, self._read_snapshot(key))
        if cached.value is not None:
            return cached.value

        post = await self.store.get_by_id(post_id)
        await best_effort("cache_set", key, self.cache.set(key, post.model_dump_json()))
        return post

    async def get_post_with_related(self, post_id: int) -> PostWithRelated:
        """The post plus up to `related_limit` posts sharing a tag.

        Index failures yield an empty related list; the post itself is
        all that has to succeed.
        """
        post = await self.get_post(post_id)

        related = await best_effort(
            "index_find_related",
            str(post_id),
            self.index.find_related(post_id, post.tags, self.related_limit),
        )
        return PostWithRelated(post=post, related=related.value or [])

    async def search_by_tag(self, tag: str) -> list[PostOut]:
        return await self.store.search_by_tag(tag)

    async def search_full_text(self, query: str) -> list[SearchHit]:
        return await self.index.search_full_text(query)

    async def list_activity(self, post_id: int) -> list[ActivityEntry]:
        """Activity entries for an existing post (NotFoundError otherwise)."""
        await self.store.get_by_id(post_id)
        return await self.store.list_activity(post_id)

    # ============================================================
    # Maintenance
    # ============================================================

    async def reindex_all(self, batch_size: int = 500) -> ReindexStats:
        """Re-upsert every stored post into the search index."""
        stats = ReindexStats()
        async for post in self.store.iter_posts(batch_size):
            result = await best_effort(
                "index_document",
                str(post.id),
                self.index.index_document(post.id, post.search_fields()),
            )
            if result.ok:
                stats.indexed += 1
            else:
                stats.failed += 1

        logger.info(f"Reindex finished: indexed={stats.indexed} failed={stats.failed}")
        return stats

    async def _read_snapshot(self, key: str) -> PostOut | None:
        raw = await self.cache.get(key)
        if raw is None:
            return None
        return PostOut.model_validate_json(raw)
