"""Error taxonomy for post operations.

Only errors from the record store change the outcome of a request.
Cache and search index failures are downgraded to `SoftFailure` records
by the post service and never reach the caller.
"""

from dataclasses import dataclass


class PostServiceError(Exception):
    """Base class for errors reported to callers."""

    code = "POST_SERVICE_ERROR"
    status_code = 500


class ValidationError(PostServiceError):
    """Malformed input (empty title/content). No side effects were performed."""

    code = "VALIDATION_ERROR"
    status_code = 400


class NotFoundError(PostServiceError):
    """Referenced post does not exist in the record store."""

    code = "POST_NOT_FOUND"
    status_code = 404

    def __init__(self, post_id: int):
        super().__init__(f"Post {post_id} not found")
        self.post_id = post_id


class TransactionError(PostServiceError):
    """Record store transaction failed and was rolled back."""

    code = "TRANSACTION_FAILED"
    status_code = 500


class SearchIndexError(PostServiceError):
    """Search index request failed (transport, HTTP status or payload)."""

    code = "SEARCH_UNAVAILABLE"
    status_code = 503


@dataclass(frozen=True)
class SoftFailure:
    """A cache or index error that was logged and discarded."""

    operation: str
    key: str
    error: BaseException

    def __str__(self) -> str:
        return f"{self.operation}({self.key}) failed: {self.error!r}"
