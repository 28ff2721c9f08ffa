"""Error handling module for podagent.

This module defines error codes, exception classes, and response models.

Error Response Format:
{
    "error": {
        "code": "LIST_FAILED",
        "message": "Failed to list instances"
    }
}
"""

from enum import Enum

from pydantic import BaseModel


class ErrorCode(str, Enum):
    """Error codes for the agent API."""

    NOT_AUTHENTICATED = "NOT_AUTHENTICATED"
    INVALID_AUTH = "INVALID_AUTH"
    LIST_FAILED = "LIST_FAILED"
    WATCH_FAILED = "WATCH_FAILED"
    TERMINATION_CANCELLED = "TERMINATION_CANCELLED"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class ErrorDetail(BaseModel):
    """Error detail containing code and message."""

    code: str
    message: str


class ErrorResponse(BaseModel):
    """Error response format."""

    error: ErrorDetail


class AgentError(Exception):
    """Base exception for podagent.

    All agent-specific exceptions should inherit from this class.
    This enables centralized exception handling in FastAPI.

    Attributes:
        code: The error code from ErrorCode enum.
        message: Human-readable error message.
        status_code: HTTP status code to return.
    """

    def __init__(self, code: ErrorCode, message: str, status_code: int) -> None:
        self.code = code
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert exception to ErrorResponse model."""
        return ErrorResponse(
            error=ErrorDetail(code=self.code.value, message=self.message)
        )


class NotAuthenticatedError(AgentError):
    """401 Unauthorized - No credentials supplied."""

    def __init__(self, message: str = "Authentication is required") -> None:
        super().__init__(ErrorCode.NOT_AUTHENTICATED, message, 401)


class InvalidAuthError(AgentError):
    """401 Unauthorized - Credentials malformed or rejected by the cluster."""

    def __init__(self, message: str = "Invalid authorization credentials") -> None:
        super().__init__(ErrorCode.INVALID_AUTH, message, 401)


class UnknownAuthError(AgentError):
    """500 Internal Server Error - Identity could not be resolved."""

    def __init__(self, message: str = "Failed to resolve identity") -> None:
        super().__init__(ErrorCode.UNKNOWN_ERROR, message, 500)


class ListError(AgentError):
    """502 Bad Gateway - Listing instances from the cluster failed."""

    def __init__(self, message: str = "Failed to list instances") -> None:
        super().__init__(ErrorCode.LIST_FAILED, message, 502)


class WatchError(AgentError):
    """502 Bad Gateway - Watch stream failed or ended unexpectedly."""

    def __init__(self, message: str = "Instance watch failed") -> None:
        super().__init__(ErrorCode.WATCH_FAILED, message, 502)


class TerminationCancelledError(AgentError):
    """408 Request Timeout - Caller cancelled before instances terminated."""

    def __init__(self, message: str = "Termination wait cancelled") -> None:
        super().__init__(ErrorCode.TERMINATION_CANCELLED, message, 408)
