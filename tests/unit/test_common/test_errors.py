"""
Error Definition Tests
"""

from crudgate.common.errors import (
    HasSubItemsError,
    TokenExpiredError,
    UnauthorizedError,
    ValidationError,
)
from crudgate.domain.result import CrudResult, ResultKind


def test_to_dict():
    error = HasSubItemsError(details={"collections": ["users"]})
    assert error.to_dict() == {
        "error": {
            "message": "A record that includes sub-items cannot be deleted",
            "kind": "has_sub_items",
            "code": "has_sub_items",
            "details": {"collections": ["users"]},
        }
    }


def test_token_expired_is_unauthorized():
    error = TokenExpiredError()
    assert isinstance(error, UnauthorizedError)
    assert error.kind == "unauthorized"
    assert error.code == "token_expired"


def test_failure_result():
    result = CrudResult.failure(ValidationError("Bad id", code="invalid_id", details={"id": "x"}))
    assert result.kind == ResultKind.VALIDATION_ERROR
    assert not result.ok
    assert result.to_dict() == {
        "kind": "validation_error",
        "code": "invalid_id",
        "message": "Bad id",
        "value": None,
        "details": {"id": "x"},
    }


def test_not_found_result():
    result = CrudResult.not_found()
    assert result.kind == ResultKind.NOT_FOUND
    assert result.value == []
