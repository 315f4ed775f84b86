"""Shared fixtures: in-memory stand-ins for PostgreSQL, Redis and Elasticsearch.

The fakes record every call into a shared `events` list so tests can assert
on cross-store ordering.
"""

from collections.abc import AsyncIterator, Sequence
from datetime import datetime, timezone
from typing import Any

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from app.errors import NotFoundError, SearchIndexError, TransactionError, ValidationError
from app.schemas import ActivityEntry, PostOut, SearchHit
from app.services.posts import PostService


def _now() -> datetime:
    return datetime.now(timezone.utc)


class FakePostStore:
    """Record store with real rollback semantics; ids are never reused."""

    def __init__(self, events: list[str]):
        self.events = events
        self.posts: dict[int, PostOut] = {}
        self.activity: list[ActivityEntry] = []
        self.fail_append_activity = False
        self._next_post_id = 1
        self._next_activity_id = 1

    async def run_in_transaction(self, fn):
        posts_before = dict(self.posts)
        activity_before = list(self.activity)
        session = object()
        try:
            result = await fn(session)
        except Exception:
            self.posts = posts_before
            self.activity = activity_before
            self.events.append("store.rollback")
            raise
        self.events.append("store.commit")
        return result

    async def create(self, session: Any, title: str, content: str, tags: Sequence[str]) -> PostOut:
        if not title.strip() or not content.strip():
            raise ValidationError("title and content must not be empty")
        now = _now()
        post = PostOut(
            id=self._next_post_id,
            title=title,
            content=content,
            tags=list(tags),
            created_at=now,
            updated_at=now,
        )
        self._next_post_id += 1
        self.posts[post.id] = post
        return post

    async def append_activity(self, session: Any, action: str, post_id: int) -> ActivityEntry:
        if self.fail_append_activity:
            raise TransactionError("activity insert failed")
        entry = ActivityEntry(id=self._next_activity_id, action=action, post_id=post_id, logged_at=_now())
        self._next_activity_id += 1
        self.activity.append(entry)
        return entry

    async def update(self, post_id: int, title: str, content: str, tags: Sequence[str]) -> PostOut:
        if not title.strip() or not content.strip():
            raise ValidationError("title and content must not be empty")
        if post_id not in self.posts:
            raise NotFoundError(post_id)
        post = self.posts[post_id].model_copy(
            update={"title": title, "content": content, "tags": list(tags), "updated_at": _now()}
        )
        self.posts[post_id] = post
        self.events.append("store.update")
        return post

    async def get_by_id(self, post_id: int) -> PostOut:
        self.events.append("store.get")
        if post_id not in self.posts:
            raise NotFoundError(post_id)
        return self.posts[post_id]

    async def search_by_tag(self, tag: str) -> list[PostOut]:
        return [p for _, p in sorted(self.posts.items(), reverse=True) if tag in p.tags]

    async def list_activity(self, post_id: int) -> list[ActivityEntry]:
        return [e for e in self.activity if e.post_id == post_id]

    async def iter_posts(self, batch_size: int = 500) -> AsyncIterator[PostOut]:
        for _, post in sorted(self.posts.items()):
            yield post


class FakeCache:
    """Dict-backed cache; `down=True` simulates an unreachable Redis."""

    def __init__(self, events: list[str]):
        self.events = events
        self.data: dict[str, str] = {}
        self.down = False

    def _check(self) -> None:
        if self.down:
            raise RedisConnectionError("Connection refused")

    async def get(self, key: str) -> str | None:
        self.events.append("cache.get")
        self._check()
        return self.data.get(key)

    async def set(self, key: str, value: str, ttl: int | None = None) -> None:
        self.events.append("cache.set")
        self._check()
        self.data[key] = value

    async def delete(self, key: str) -> None:
        self.events.append("cache.delete")
        self._check()
        self.data.pop(key, None)


class FakeSearchIndex:
    """Dict-backed index; `down=True` simulates an unreachable Elasticsearch."""

    def __init__(self, events: list[str]):
        self.events = events
        self.docs: dict[int, dict[str, Any]] = {}
        self.down = False
        self.related_calls: list[tuple[int, list[str], int]] = []

    def _check(self) -> None:
        if self.down:
            raise SearchIndexError("POST /posts/_search failed: ConnectError()")

    async def index_document(self, doc_id: int, fields: dict[str, Any]) -> None:
        self.events.append("index.put")
        self._check()
        self.docs[doc_id] = dict(fields)

    async def search_full_text(self, query: str) -> list[SearchHit]:
        self._check()
        q = query.lower()
        return [
            SearchHit.model_validate(d)
            for d in self.docs.values()
            if q in d["title"].lower() or q in d["content"].lower()
        ]

    async def find_related(self, exclude_id: int, tags: Sequence[str], limit: int) -> list[SearchHit]:
        if not tags:
            return []
        self.related_calls.append((exclude_id, list(tags), limit))
        self._check()
        wanted = set(tags)
        scored = [
            (len(wanted & set(d.get("tags", []))), doc_id, d)
            for doc_id, d in self.docs.items()
            if doc_id != exclude_id
        ]
        scored = [s for s in scored if s[0] > 0]
        scored.sort(key=lambda s: (-s[0], s[1]))
        return [SearchHit.model_validate(d) for _, _, d in scored[:limit]]


@pytest.fixture
def events() -> list[str]:
    return []


@pytest.fixture
def store(events: list[str]) -> FakePostStore:
    return FakePostStore(events)


@pytest.fixture
def cache(events: list[str]) -> FakeCache:
    return FakeCache(events)


@pytest.fixture
def index(events: list[str]) -> FakeSearchIndex:
    return FakeSearchIndex(events)


@pytest.fixture
def service(store: FakePostStore, cache: FakeCache, index: FakeSearchIndex) -> PostService:
    return PostService(store=store, cache=cache, index=index)
