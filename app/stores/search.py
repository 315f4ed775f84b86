"""Elasticsearch store for post search.

Talks to the Elasticsearch REST API directly over httpx.

Handles:
- Index provisioning (idempotent create with field mapping)
- Per-document upserts
- Full-text search over title + content
- "Related posts" lookups by tag overlap

The index is a denormalized, eventually-consistent copy of the posts table.
Every failure is raised as SearchIndexError; callers decide whether it is fatal.
"""

import logging
from collections.abc import Sequence
from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from app.errors import SearchIndexError
from app.schemas import SearchHit
from app.settings import Settings

logger = logging.getLogger("uvicorn.error")

# title/content: analyzed full text, tags: exact match
POSTS_MAPPING: dict[str, Any] = {
    "mappings": {
        "properties": {
            "id": {"type": "long"},
            "title": {"type": "text"},
            "content": {"type": "text"},
            "tags": {"type": "keyword"},
        }
    }
}


def build_full_text_query(query: str) -> dict[str, Any]:
    """multi_match over title and content."""
    return {
        "query": {
            "multi_match": {
                "query": query,
                "fields": ["title", "content"],
            }
        },
        "track_total_hits": True,
    }


def build_related_query(exclude_id: int, tags: Sequence[str], limit: int) -> dict[str, Any]:
    """OR across tags ("any tag matches"), excluding the source document.

    Each matching tag adds to the relevance score, so posts sharing more
    tags rank higher.
    """
    unique_tags = list(dict.fromkeys(tags))
    return {
        "query": {
            "bool": {
                "should": [{"term": {"tags": tag}} for tag in unique_tags],
                "minimum_should_match": 1,
                "must_not": [{"ids": {"values": [str(exclude_id)]}}],
            }
        },
        "size": limit,
    }


class SearchIndex:
    """Client for the posts index."""

    def __init__(self, client: httpx.AsyncClient, index: str = "posts"):
        self._http = client
        self.index = index

    @classmethod
    def from_settings(cls, settings: Settings) -> "SearchIndex":
        auth = None
        if settings.elasticsearch_username:
            auth = httpx.BasicAuth(settings.elasticsearch_username, settings.elasticsearch_password)
        client = httpx.AsyncClient(
            base_url=settings.elasticsearch_url,
            auth=auth,
            timeout=settings.search_timeout_seconds,
            headers={"Content-Type": "application/json"},
        )
        return cls(client, index=settings.elasticsearch_index)

    async def close(self) -> None:
        """Close HTTP client."""
        await self._http.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._http.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise SearchIndexError(f"{method} {path} failed: {e!r}") from e

    async def ensure_index(self) -> None:
        """Create the index with its mapping unless it already exists."""
        res = await self._request("HEAD", f"/{self.index}")
        if res.status_code == 200:
            return
        if res.status_code != 404:
            raise SearchIndexError(f"Index existence check returned HTTP {res.status_code}")

        res = await self._request("PUT", f"/{self.index}", json=POSTS_MAPPING)
        if res.is_success:
            logger.info(f"Search index '{self.index}' created")
            return
        # Another worker won the race
        if res.status_code == 400 and "resource_already_exists_exception" in res.text:
            return
        raise SearchIndexError(f"Failed to create index '{self.index}': HTTP {res.status_code} {res.text}")

    async def index_document(self, doc_id: int, fields: dict[str, Any]) -> None:
        """Upsert a document (replaces any existing one with the same id)."""
        res = await self._request(
            "PUT",
            f"/{self.index}/_doc/{doc_id}",
            params={"refresh": "true"},
            json=fields,
        )
        if not res.is_success:
            raise SearchIndexError(f"Index error for doc {doc_id}: HTTP {res.status_code} {res.text}")

    async def search_full_text(self, query: str) -> list[SearchHit]:
        return await self._search(build_full_text_query(query))

    async def find_related(self, exclude_id: int, tags: Sequence[str], limit: int) -> list[SearchHit]:
        """Up to `limit` documents sharing at least one tag, excluding `exclude_id`."""
        if not tags:
            return []
        return await self._search(build_related_query(exclude_id, tags, limit))

    async def _search(self, body: dict[str, Any]) -> list[SearchHit]:
        res = await self._request("POST", f"/{self.index}/_search", json=body)
        if not res.is_success:
            raise SearchIndexError(f"Search error: HTTP {res.status_code} {res.text}")

        try:
            hits = res.json()["hits"]["hits"]
            return [_parse_hit(h) for h in hits]
        except (ValueError, KeyError, TypeError, PydanticValidationError) as e:
            raise SearchIndexError(f"Malformed search response: {e!r}") from e


def _parse_hit(hit: dict[str, Any]) -> SearchHit:
    source = dict(hit.get("_source") or {})
    # Documents indexed without an id field still carry it as _id
    source.setdefault("id", hit.get("_id"))
    return SearchHit.model_validate(source)
