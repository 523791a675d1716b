"""
Result Domain Model

Every pipeline returns a CrudResult: a kind, a finer-grained code, a display
message and an optional value.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from crudgate.common.errors import AppError


class ResultKind(str, Enum):
    """Result kinds"""

    SUCCESS = "success"
    NOT_FOUND = "not_found"
    VALIDATION_ERROR = "validation_error"
    UNAUTHORIZED = "unauthorized"
    RECORD_EXISTS = "record_exists"
    HAS_SUB_ITEMS = "has_sub_items"
    WRITE_FAILURE = "write_failure"
    READ_FAILURE = "read_failure"


@dataclass
class CrudResult:
    """
    Structured Pipeline Result

    `value` holds records (queries), counts (writes) or an async iterator (streams).
    """

    kind: ResultKind
    code: str
    message: str
    value: Any = None
    details: dict[str, Any] = field(default_factory=dict)
    from_cache: bool = False

    @property
    def ok(self) -> bool:
        return self.kind == ResultKind.SUCCESS

    @classmethod
    def success(cls, message: str, value: Any = None, from_cache: bool = False) -> "CrudResult":
        return cls(
            kind=ResultKind.SUCCESS,
            code="success",
            message=message,
            value=value,
            from_cache=from_cache,
        )

    @classmethod
    def not_found(cls, message: str = "Record(s) not found") -> "CrudResult":
        return cls(kind=ResultKind.NOT_FOUND, code="not_found", message=message, value=[])

    @classmethod
    def failure(cls, error: AppError, message: Optional[str] = None) -> "CrudResult":
        """Convert a stage error into a result"""
        return cls(
            kind=ResultKind(error.kind),
            code=error.code,
            message=message if message is not None else error.message,
            details=dict(error.details),
        )

    def to_dict(self) -> dict[str, Any]:
        result = {
            "kind": self.kind.value,
            "code": self.code,
            "message": self.message,
            "value": self.value,
        }
        if self.details:
            result["details"] = self.details
        if self.from_cache:
            result["from_cache"] = True
        return result
