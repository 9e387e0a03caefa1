"""Upload validation utilities."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from fastapi import UploadFile

from ..config import UploadLimits
from .ingest_errors import (
    FileTooLargeError,
    MissingFileError,
    UnexpectedFileError,
    UnsupportedTypeError,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class UploadValidator:
    """Validate upload metadata against configured limits.

    Only declared values are checked here, nothing is read from the body.
    The streamed size is enforced again while the file is written to disk.
    """

    limits: UploadLimits

    def select_upload(self, values: Sequence[UploadFile | str]) -> UploadFile | None:
        """Pick the single file sent under the upload field.

        Plain text values (a form submitted without choosing a file) count as
        no file. More than one file part is rejected.
        """
        files = [value for value in values if isinstance(value, UploadFile)]
        if len(files) > 1:
            logger.warning("ingest.upload.unexpected_files", extra={"count": len(files)})
            raise UnexpectedFileError(len(files))
        return files[0] if files else None

    def validate(self, upload: UploadFile | None) -> UploadFile:
        if upload is None or not upload.filename:
            logger.warning("ingest.upload.missing_file")
            raise MissingFileError("no file in upload field")

        content_type = (upload.content_type or "").lower()
        if not content_type.startswith(self.limits.allowed_mime_prefix):
            logger.warning(
                "ingest.upload.unsupported_media",
                extra={"content_type": upload.content_type, "upload_name": upload.filename},
            )
            raise UnsupportedTypeError(upload.content_type)

        declared = upload.size
        if declared is not None:
            self.check_size(declared)
        return upload

    def check_size(self, size_bytes: int) -> None:
        cap = self.limits.max_file_size_bytes
        if size_bytes > cap:
            logger.warning(
                "ingest.upload.payload_too_large",
                extra={"size_bytes": size_bytes, "limit_bytes": cap},
            )
            raise FileTooLargeError(size_bytes, cap)
