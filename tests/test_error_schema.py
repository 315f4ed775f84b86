import pytest

from app.errors import NotFoundError, SearchIndexError, TransactionError, ValidationError
from app.schemas import ErrorDetail, ErrorResponse


def test_not_found_detail_carries_post_id() -> None:
    detail = ErrorDetail.from_error(NotFoundError(7))

    assert detail.code == "POST_NOT_FOUND"
    assert detail.message == "Post 7 not found"
    assert detail.detail == {"post_id": 7}


@pytest.mark.parametrize(
    "exc,code",
    [
        (ValidationError("title must not be empty"), "VALIDATION_ERROR"),
        (TransactionError("insert failed"), "TRANSACTION_FAILED"),
        (SearchIndexError("index unreachable"), "SEARCH_UNAVAILABLE"),
    ],
)
def test_other_errors_have_no_detail(exc, code: str) -> None:
    body = ErrorResponse(error=ErrorDetail.from_error(exc)).model_dump()

    assert body == {"error": {"code": code, "message": str(exc), "detail": None}}
