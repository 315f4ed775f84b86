"""Error body shared by every endpoint.

Codes come from `app.errors`: VALIDATION_ERROR, POST_NOT_FOUND,
TRANSACTION_FAILED and SEARCH_UNAVAILABLE, plus INTERNAL_ERROR for
unhandled exceptions.
"""

from typing import Any

from pydantic import BaseModel

from app.errors import NotFoundError, PostServiceError


class ErrorDetail(BaseModel):
    """Structured error detail."""

    code: str
    message: str
    detail: dict[str, Any] | None = None

    @classmethod
    def from_error(cls, exc: PostServiceError) -> "ErrorDetail":
        """Build the detail for a post service error; not-found carries the post id."""
        detail = {"post_id": exc.post_id} if isinstance(exc, NotFoundError) else None
        return cls(code=exc.code, message=str(exc), detail=detail)


class ErrorResponse(BaseModel):
    """Standard error response format.

    Format: { "error": { "code": str, "message": str, "detail": object } }
    """

    error: ErrorDetail
