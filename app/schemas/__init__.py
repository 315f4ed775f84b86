"""Pydantic schemas for API request/response validation."""

from app.schemas.common import ErrorDetail, ErrorResponse
from app.schemas.posts import (
    ActivityEntry,
    PostCreate,
    PostOut,
    PostUpdate,
    PostWithRelated,
    SearchHit,
)

__all__ = [
    "ErrorDetail",
    "ErrorResponse",
    "ActivityEntry",
    "PostCreate",
    "PostOut",
    "PostUpdate",
    "PostWithRelated",
    "SearchHit",
]
