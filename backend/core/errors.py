"""
API error types shared by services and routes.

Each error carries a stable textual code, a message, optional details and the
HTTP status it maps to. Routes let these propagate; the handler registered in
api.main renders them as ``{"code", "message", "details"}``.
"""
from typing import Any, Dict, List, Optional


class APIError(Exception):
    """Base class for errors surfaced to API callers."""

    code = "INTERNAL_SERVER_ERROR"
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, details: Optional[str] = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class InvalidRequestError(APIError):
    code = "INVALID_REQUEST"
    status_code = 400
    default_message = "Invalid request"


class ValidationError(APIError):
    """Validation failure carrying one message per offending field or row."""

    code = "VALIDATION_ERROR"
    status_code = 400
    default_message = "Validation failed"

    def __init__(
        self,
        message: Optional[str] = None,
        errors: Optional[List[str]] = None,
        details: Optional[str] = None,
    ):
        self.errors = list(errors or [])
        if details is None and self.errors:
            details = "One or more validation errors occurred"
        super().__init__(message, details)

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["validation_errors"] = self.errors
        return body


class UnauthorizedError(APIError):
    code = "UNAUTHORIZED"
    status_code = 401
    default_message = "Unauthorized access"


class ForbiddenError(APIError):
    code = "FORBIDDEN"
    status_code = 403
    default_message = "Access forbidden"


class VocabularyNotFoundError(APIError):
    code = "VOCABULARY_NOT_FOUND"
    status_code = 404
    default_message = "Vocabulary not found"


class VideoNotFoundError(APIError):
    code = "VIDEO_NOT_FOUND"
    status_code = 404
    default_message = "Video not found"


class ReindexInProgressError(APIError):
    code = "REINDEX_IN_PROGRESS"
    status_code = 409
    default_message = "A vocabulary rebuild is already in progress"


class DatabaseError(APIError):
    code = "DATABASE_ERROR"
    status_code = 500
    default_message = "Database operation failed"


class InternalServerError(APIError):
    code = "INTERNAL_SERVER_ERROR"
    status_code = 500
    default_message = "Internal server error"


class DeadlineExceededError(APIError):
    code = "REQUEST_TIMEOUT"
    status_code = 504
    default_message = "Request deadline exceeded"


class RequestCancelledError(APIError):
    code = "REQUEST_CANCELLED"
    status_code = 499
    default_message = "Request was cancelled"


def wrap_error(err: Exception, api_error: type = DatabaseError) -> APIError:
    """Wrap a lower-level exception into an APIError, keeping its text as details."""
    if isinstance(err, APIError):
        return err
    return api_error(details=str(err))
