"""Schemas for post endpoints (/v1/posts) and cached snapshots."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class PostCreate(BaseModel):
    """Request body for POST /v1/posts."""

    title: str = Field(min_length=1, max_length=255)
    content: str = Field(min_length=1)
    tags: list[str] = Field(default_factory=list)


class PostUpdate(BaseModel):
    """Request body for PUT /v1/posts/{id}.

    Full replacement: title, content and tags are always supplied together.
    """

    title: str = Field(min_length=1, max_length=255)
    content: str = Field(min_length=1)
    tags: list[str] = Field(default_factory=list)


class PostOut(BaseModel):
    """Persisted post as returned to clients and stored in the cache."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    content: str
    tags: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    def search_fields(self) -> dict[str, object]:
        """Denormalized copy sent to the search index."""
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "tags": list(self.tags),
        }


class SearchHit(BaseModel):
    """A document returned by the search index (`_source`)."""

    model_config = ConfigDict(extra="ignore")

    id: int
    title: str = ""
    content: str = ""
    tags: list[str] = Field(default_factory=list)


class PostWithRelated(BaseModel):
    """A post bundled with related posts found by tag overlap."""

    post: PostOut
    related: list[SearchHit] = Field(default_factory=list)


class ActivityEntry(BaseModel):
    """A single activity log entry."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    action: str
    post_id: int
    logged_at: datetime
