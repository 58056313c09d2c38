"""
Error definitions - custom exception classes for the editor core.
Clear classification and meaningful messages; the core recovers from all of
these locally and only the HTTP layer turns them into responses.
"""
from enum import Enum
from typing import Optional, Any, Dict

from fastapi import status


class ErrorCode(str, Enum):
    """Error codes."""
    # Client errors
    INVALID_REPLACEMENT = "INVALID_REPLACEMENT"
    STALE_OFFSET = "STALE_OFFSET"

    # Server errors
    INTERNAL_ERROR = "INTERNAL_ERROR"

    # External collaborators
    CHECKER_UNAVAILABLE = "CHECKER_UNAVAILABLE"
    PERSISTENCE_FAILURE = "PERSISTENCE_FAILURE"


class BaseApplicationError(Exception):
    """Base application error."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code
        super().__init__(message)


class InvalidReplacementError(BaseApplicationError):
    """A placeholder candidate (manual rephrase needed) was applied as literal text."""
    def __init__(self, replacement: str):
        super().__init__(
            message=f"Replacement '{replacement}' is a placeholder and cannot be applied verbatim",
            error_code=ErrorCode.INVALID_REPLACEMENT,
            details={"replacement": replacement},
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY
        )


class StaleOffsetError(BaseApplicationError):
    """A span's offsets no longer fit the content it is applied to."""
    def __init__(self, span_id: str, start: int, end: int, content_length: int):
        super().__init__(
            message=f"Span '{span_id}' [{start}, {end}) does not fit content of length {content_length}",
            error_code=ErrorCode.STALE_OFFSET,
            details={
                "span_id": span_id,
                "start": start,
                "end": end,
                "content_length": content_length,
            },
            status_code=status.HTTP_409_CONFLICT
        )


class CheckerUnavailableError(BaseApplicationError):
    """The spelling/grammar service failed or could not be reached."""
    def __init__(self, reason: str, status_code: Optional[int] = None):
        details: Dict[str, Any] = {"service": "checker", "reason": reason}
        if status_code is not None:
            details["upstream_status"] = status_code

        super().__init__(
            message=f"Checker service is currently unavailable: {reason}",
            error_code=ErrorCode.CHECKER_UNAVAILABLE,
            details=details,
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE
        )


class PersistenceFailureError(BaseApplicationError):
    """A persistence collaborator call failed."""
    def __init__(self, message: str, operation: str):
        super().__init__(
            message=f"Persistence operation '{operation}' failed: {message}",
            error_code=ErrorCode.PERSISTENCE_FAILURE,
            details={"operation": operation},
            status_code=status.HTTP_502_BAD_GATEWAY
        )

