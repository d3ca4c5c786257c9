"""
=============================================================================
NOTEASE INTAKE - ERROR HANDLING MODULE
=============================================================================
Submission error taxonomy and global exception handlers.

Features:
- One exception class per failure kind, each carrying its HTTP status
- Public messages never include internal details
- Logs full stack trace server-side for unexpected failures
- Every error body uses the {"success": false, "message": ...} contract

Usage:
    # In main.py
    from app.core.errors import register_exception_handlers
    register_exception_handlers(app)
=============================================================================
"""

import enum
import logging
import traceback

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings

logger = logging.getLogger(__name__)


class ErrorKind(str, enum.Enum):
    VALIDATION = "validation_error"
    INVALID_PAYLOAD = "invalid_payload"
    UPLOAD = "upload_error"
    PERSISTENCE = "persistence_error"
    NOTIFICATION = "notification_error"


class SubmissionError(Exception):
    """Base class for failures while handling a form submission."""

    kind: ErrorKind
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    public_message: str = "Server error while submitting the form."

    def __init__(self, message: str | None = None, *, status_code: int | None = None):
        super().__init__(message or self.public_message)
        if message is not None:
            self.public_message = message
        if status_code is not None:
            self.status_code = status_code


class FieldValidationError(SubmissionError):
    """A present field failed its validation rule. Client-correctable."""

    kind = ErrorKind.VALIDATION
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    public_message = "One or more fields are invalid."

    def __init__(self, message: str | None = None, *, field_key: str | None = None):
        super().__init__(message)
        self.field_key = field_key


class InvalidPayloadError(SubmissionError):
    kind = ErrorKind.INVALID_PAYLOAD
    status_code = status.HTTP_400_BAD_REQUEST
    public_message = "Missing required fields"


class UploadError(SubmissionError):
    kind = ErrorKind.UPLOAD
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    public_message = "Unsupported file upload."


class PersistenceError(SubmissionError):
    kind = ErrorKind.PERSISTENCE
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    public_message = "Server error while saving your submission. Please try again later."


class NotificationError(SubmissionError):
    """Administrator notification failed. Logged, never surfaced to the client."""

    kind = ErrorKind.NOTIFICATION


def error_body(message: str) -> dict:
    return {"success": False, "message": message}


def register_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI app."""

    @app.exception_handler(SubmissionError)
    async def submission_error_handler(request: Request, exc: SubmissionError):
        if exc.status_code >= 500:
            logger.error(
                "Submission failed on %s %s: %r",
                request.method,
                request.url.path,
                exc,
                extra={"event_name": "submission_error", "error_kind": exc.kind.value},
            )
        return JSONResponse(
            status_code=exc.status_code, content=error_body(exc.public_message)
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Catch-all handler for unhandled exceptions.

        - Logs the full traceback for debugging
        - Returns a generic error message to prevent info leakage
        - In debug mode, includes more details
        """
        logger.error(
            f"Unhandled exception on {request.method} {request.url.path}:\n"
            f"{traceback.format_exc()}"
        )

        content = error_body("Server error while submitting the form!")
        app_settings = getattr(request.app.state, "settings", settings)
        if app_settings.DEBUG:
            content["error_type"] = type(exc).__name__
            content["detail"] = str(exc)
            content["path"] = request.url.path

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content
        )
