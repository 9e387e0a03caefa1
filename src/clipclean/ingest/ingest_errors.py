"""Domain-specific exceptions for the upload/process pipeline."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from .ingest_models import ProcessingFailed


class ClipCleanError(Exception):
    """Base class for classified request failures."""


class IngestError(ClipCleanError):
    """Base class for upload validation failures."""


class MissingFileError(IngestError):
    """Raised when the request carries no file in the upload field."""


class UnsupportedTypeError(IngestError):
    """Raised when the declared Content-Type is not a video type."""

    def __init__(self, content_type: str | None) -> None:
        super().__init__(f"unsupported content type: {content_type!r}")
        self.content_type = content_type


class FileTooLargeError(IngestError):
    """Raised when the upload exceeds the configured ceiling."""

    def __init__(self, size_bytes: int, limit_bytes: int) -> None:
        super().__init__(f"upload of {size_bytes} bytes exceeds limit of {limit_bytes}")
        self.size_bytes = size_bytes
        self.limit_bytes = limit_bytes


class ProcessingFailedError(ClipCleanError):
    """Raised when the external tool did not produce a usable output."""

    def __init__(self, failure: "ProcessingFailed") -> None:
        super().__init__(failure.summary())
        self.failure = failure


class UnexpectedFileError(IngestError):
    """Raised when the upload field carries more than one file."""

    def __init__(self, count: int) -> None:
        super().__init__(f"expected one file in upload field, received {count}")
        self.count = count
