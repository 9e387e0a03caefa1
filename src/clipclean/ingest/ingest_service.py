"""Domain service coordinating upload, processing and delivery."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from fastapi import UploadFile

from ..config import ProcessingOptions, UploadLimits
from ..delivery.delivery import CleanupFileResponse, build_download_response
from ..media.staging import StagedRequest, StagingArea, remove_file
from ..processing.ffmpeg_pipeline import FfmpegPipeline
from .ingest_errors import ProcessingFailedError
from .ingest_models import OutputAsset, ProcessingFailed, UploadedAsset
from .validation import UploadValidator

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class IngestService:
    """Coordinates one request: receive → process → deliver.

    Every file the service writes is bound to the caller's
    :class:`StagedRequest` before the write starts. The caller owns the handle
    and must release it on any path that does not end in a delivered response.
    """

    validator: UploadValidator
    staging: StagingArea
    pipeline: FfmpegPipeline
    limits: UploadLimits
    processing: ProcessingOptions
    log: logging.Logger = field(default_factory=lambda: logger)

    def open_request(self) -> StagedRequest:
        return self.staging.open_request()

    async def receive(self, upload: UploadFile | None, staged: StagedRequest) -> UploadedAsset:
        """Validate ``upload`` and stream it into the upload staging directory."""
        upload = self.validator.validate(upload)
        original = upload.filename or "upload"
        target = staged.bind_input(self.staging.input_path_for(original))

        size = 0
        with target.open("wb") as sink:
            while True:
                chunk = await upload.read(self.limits.chunk_size_bytes)
                if not chunk:
                    break
                size += len(chunk)
                if size > self.limits.max_file_size_bytes:
                    break
                sink.write(chunk)

        if size > self.limits.max_file_size_bytes:
            remove_file(target)
            self.validator.check_size(size)

        asset = UploadedAsset(
            filename=target.name,
            path=target,
            size_bytes=size,
            content_type=upload.content_type or "application/octet-stream",
            original_filename=original,
        )
        self.log.info(
            "ingest.upload.staged",
            extra={
                "request_id": staged.request_id,
                "staged_name": asset.filename,
                "size_bytes": asset.size_bytes,
                "content_type": asset.content_type,
            },
        )
        return asset

    async def process(self, asset: UploadedAsset, staged: StagedRequest) -> OutputAsset:
        """Run the external tool; raise :class:`ProcessingFailedError` on failure."""
        job = self.pipeline.prepare(asset, staged)
        result = await self.pipeline.run(job)
        if isinstance(result, ProcessingFailed):
            raise ProcessingFailedError(result)
        return result.output

    def deliver(self, output: OutputAsset, staged: StagedRequest) -> CleanupFileResponse:
        return build_download_response(output, staged, self.processing)

    async def handle(self, upload: UploadFile | None) -> CleanupFileResponse:
        """Run the full pipeline for one request.

        On success the returned response owns the staged files and releases them
        after sending. Any exception releases them here before propagating.
        """
        staged = self.open_request()
        try:
            asset = await self.receive(upload, staged)
            output = await self.process(asset, staged)
            return self.deliver(output, staged)
        except BaseException:
            staged.release()
            raise


__all__ = ["IngestService"]
