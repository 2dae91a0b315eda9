"""
Exception classes for ssmigrate.
"""

from typing import Any, Dict, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .schema.models import Change


class SsMigrateError(Exception):
    """Base exception for all ssmigrate errors."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        result = self.message
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            result += f" [{details_str}]"
        if self.cause:
            result += f" (caused by: {self.cause})"
        return result


class ConfigurationError(SsMigrateError):
    """Raised when there's an error in configuration."""

    pass


class SchemaError(SsMigrateError):
    """Raised when the schema document is malformed or incomplete."""

    pass


class FieldLookupError(SsMigrateError, LookupError):
    """Raised when a change references a field or resource that cannot be found."""

    def __init__(
        self,
        message: str,
        resource: Optional[str] = None,
        field: Optional[str] = None,
    ) -> None:
        details = {}
        if resource:
            details["resource"] = resource
        if field:
            details["field"] = field

        super().__init__(message, details)
        self.resource = resource
        self.field = field


class StoreError(SsMigrateError):
    """Raised when a call to the spreadsheet store fails."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        details = {}
        if status_code:
            details["status_code"] = status_code
        if response_body:
            details["response_body"] = response_body

        super().__init__(message, details, cause)
        self.status_code = status_code
        self.response_body = response_body


class StoreNotFoundError(StoreError):
    """Raised when the spreadsheet or sheet does not exist."""

    pass


class StoreTimeoutError(StoreError):
    """Raised when a store call times out."""

    def __init__(
        self,
        message: str = "Store request timed out",
        timeout_duration: Optional[float] = None,
    ) -> None:
        if timeout_duration:
            message += f" (timeout: {timeout_duration}s)"

        super().__init__(message)
        self.timeout_duration = timeout_duration


class ApplyError(SsMigrateError):
    """Raised (and collected) when a single change fails to apply."""

    def __init__(
        self,
        change: "Change",
        message: str,
        cause: Optional[Exception] = None,
    ) -> None:
        super().__init__(f"failed to apply {change.path}: {message}", cause=cause)
        self.change = change
        self.reason = message

    def __str__(self) -> str:
        # The reason already carries the underlying error text
        return self.message
