"""Translation of classified failures into JSON error responses.

Handlers here only run when a route raised before returning a response, so a
request gets at most one error body. Once a response has started, Starlette's
``ServerErrorMiddleware`` re-raises without writing anything, and
``CleanupFileResponse`` logs late transmission errors instead of raising them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..config import MIB
from ..ingest.ingest_errors import (
    ClipCleanError,
    FileTooLargeError,
    MissingFileError,
    ProcessingFailedError,
    UnexpectedFileError,
    UnsupportedTypeError,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ErrorReport:
    """Status code and body for one failed request."""

    status_code: int
    error: str
    details: str | None = None

    def to_response(self) -> JSONResponse:
        content: dict[str, str] = {"error": self.error}
        if self.details is not None:
            content["details"] = self.details
        return JSONResponse(status_code=self.status_code, content=content)


INTERNAL_ERROR = ErrorReport(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error")


def classify(exc: Exception) -> ErrorReport:
    """Map an exception onto the public error taxonomy."""
    if isinstance(exc, MissingFileError):
        return ErrorReport(status.HTTP_400_BAD_REQUEST, "No video uploaded")
    if isinstance(exc, UnexpectedFileError):
        return ErrorReport(
            status.HTTP_400_BAD_REQUEST,
            "Only one video can be uploaded",
            f"Received {exc.count} files in the video field.",
        )
    if isinstance(exc, UnsupportedTypeError):
        return ErrorReport(
            status.HTTP_400_BAD_REQUEST,
            "Invalid file type. Please upload a video.",
            f"Received content type '{exc.content_type or 'unknown'}'.",
        )
    if isinstance(exc, FileTooLargeError):
        limit_mb = exc.limit_bytes // MIB
        return ErrorReport(
            status.HTTP_400_BAD_REQUEST,
            "File too large",
            f"File exceeds the {limit_mb}MB limit.",
        )
    if isinstance(exc, RequestValidationError):
        return ErrorReport(status.HTTP_400_BAD_REQUEST, "Invalid request")
    if isinstance(exc, ProcessingFailedError):
        return ErrorReport(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Processing Failed",
            exc.failure.summary(),
        )
    return INTERNAL_ERROR


async def clipclean_error_handler(request: Request, exc: ClipCleanError) -> JSONResponse:
    report = classify(exc)
    logger.warning(
        "request.failed",
        extra={
            "path": request.url.path,
            "status_code": report.status_code,
            "error": report.error,
            "reason": str(exc),
        },
    )
    return report.to_response()


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    report = classify(exc)
    logger.warning(
        "request.invalid",
        extra={
            "path": request.url.path,
            "status_code": report.status_code,
            "errors": exc.errors(),
        },
    )
    return report.to_response()


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "request.internal_error",
        extra={"path": request.url.path},
        exc_info=exc,
    )
    return INTERNAL_ERROR.to_response()


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ClipCleanError, clipclean_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_error_handler)


__all__ = [
    "ErrorReport",
    "classify",
    "clipclean_error_handler",
    "install_error_handlers",
    "unhandled_error_handler",
    "validation_error_handler",
]
