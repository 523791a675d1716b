"""
Error Definitions

Defines the exception classes raised by pipeline stages. Every pipeline converts
them into a structured CrudResult at its public boundary.
"""

from typing import Any, Optional


class AppError(Exception):
    """
    Application Base Exception

    Base class for all custom exceptions, containing error message, kind, and code.
    """

    def __init__(
        self,
        message: str,
        kind: str = "app_error",
        code: str = "internal_error",
        details: Optional[dict[str, Any]] = None,
    ):
        """
        Initialize exception

        Args:
            message: Error message
            kind: Error kind (one of the result kinds)
            code: Finer-grained error code
            details: Extra error details
        """
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.code = code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """
        Convert to dictionary format

        Returns:
            dict: Error information dictionary
        """
        result = {
            "error": {
                "message": self.message,
                "kind": self.kind,
                "code": self.code,
            }
        }
        if self.details:
            result["error"]["details"] = self.details
        return result


class ValidationError(AppError):
    """
    Parameter Validation Error

    Raised when request parameters are missing or malformed, including an
    invalid id or too few existence probes for the submitted items.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        code: str = "validation_error",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            kind="validation_error",
            code=code,
            details=details,
        )


class UnauthorizedError(AppError):
    """
    Authorization Error

    Raised when the credential is invalid or expired, the user is inactive,
    or the identity lacks permission for the requested action.
    """

    def __init__(
        self,
        message: str = "You are not authorized to perform the requested action",
        code: str = "unauthorized",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            kind="unauthorized",
            code=code,
            details=details,
        )


class TokenExpiredError(UnauthorizedError):
    """Raised when the access grant of a token has expired"""

    def __init__(
        self,
        message: str = "Access expired: please login to continue",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message=message, code="token_expired", details=details)


class RecordExistsError(AppError):
    """
    Record Exists Error

    Raised when an existence probe matches a stored record.
    """

    def __init__(
        self,
        message: str = "Record already exists",
        code: str = "record_exists",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            kind="record_exists",
            code=code,
            details=details,
        )


class NotFoundError(AppError):
    """
    Resource Not Found Error

    Raised when the target records of an update or delete are absent.
    """

    def __init__(
        self,
        message: str = "Record(s) not found",
        code: str = "not_found",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            kind="not_found",
            code=code,
            details=details,
        )


class HasSubItemsError(AppError):
    """
    Referential Integrity Error

    Raised when a delete target is still referenced by child records.
    """

    def __init__(
        self,
        message: str = "A record that includes sub-items cannot be deleted",
        code: str = "has_sub_items",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            kind="has_sub_items",
            code=code,
            details=details,
        )


class WriteFailureError(AppError):
    """Raised when the storage backend fails to insert, update or delete"""

    def __init__(
        self,
        message: str = "Error writing record(s)",
        code: str = "write_failure",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            kind="write_failure",
            code=code,
            details=details,
        )


class ReadFailureError(AppError):
    """Raised when the storage backend fails to read"""

    def __init__(
        self,
        message: str = "Error reading record(s)",
        code: str = "read_failure",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            kind="read_failure",
            code=code,
            details=details,
        )
