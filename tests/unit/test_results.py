import pytest

from core.errors import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from services.results import Outcome, Result, unwrap


class TestResult:
    def test_success(self):
        result = Result.success({"id": 1})
        assert result.ok
        assert result.outcome is Outcome.OK
        assert unwrap(result) == {"id": 1}

    def test_no_changes_is_distinct_from_not_found(self):
        assert Result.no_changes().outcome is not Result.not_found().outcome

    @pytest.mark.parametrize(
        "result, error_cls, status_code",
        [
            (Result.not_found("Event not found"), NotFoundError, 404),
            (Result.conflict("duplicate"), ConflictError, 409),
            (Result.no_changes("No fields to update"), ValidationError, 400),
            (Result.invalid("bad"), ValidationError, 400),
            (Result.unauthorized("Invalid credentials"), AuthenticationError, 401),
        ],
    )
    def test_unwrap_raises_matching_error(self, result, error_cls, status_code):
        with pytest.raises(error_cls) as exc_info:
            unwrap(result)
        assert exc_info.value.status_code == status_code
        assert exc_info.value.message == result.message
