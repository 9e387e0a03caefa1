from io import BytesIO

import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from clipclean.ingest.ingest_errors import (
    FileTooLargeError,
    ProcessingFailedError,
    UnsupportedTypeError,
)
from clipclean.ingest.ingest_models import FailureKind
from clipclean.ingest.ingest_service import IngestService
from clipclean.ingest.validation import UploadValidator
from clipclean.media.staging import StagingArea
from clipclean.processing.ffmpeg_pipeline import FfmpegPipeline

pytestmark = pytest.mark.unit


def make_upload(data: bytes, *, content_type: str, filename: str) -> UploadFile:
    return UploadFile(
        file=BytesIO(data),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


def build_service(config) -> IngestService:
    staging = StagingArea(config.staging)
    return IngestService(
        validator=UploadValidator(config.upload_limits),
        staging=staging,
        pipeline=FfmpegPipeline(options=config.processing, staging=staging),
        limits=config.upload_limits,
        processing=config.processing,
    )


@pytest.mark.asyncio
async def test_receive_stages_upload_under_sanitized_unique_name(make_config, staged_files) -> None:
    config = make_config(chunk_size_bytes=3)
    service = build_service(config)
    staged = service.open_request()
    upload = make_upload(b"0123456789", content_type="video/quicktime", filename="My Clip (1).mov")

    asset = await service.receive(upload, staged)

    assert asset.path.parent == config.staging.upload_dir
    assert asset.filename.endswith("-My_Clip__1_.mov")
    assert asset.filename.split("-")[0].isdigit()
    assert asset.size_bytes == 10
    assert asset.content_type == "video/quicktime"
    assert asset.original_filename == "My Clip (1).mov"
    assert asset.path.read_bytes() == b"0123456789"
    assert staged.input_path == asset.path
    assert staged_files(config) == [asset.path]


@pytest.mark.asyncio
async def test_receive_removes_partial_file_when_stream_exceeds_limit(make_config, staged_files) -> None:
    config = make_config(max_file_size_bytes=8, chunk_size_bytes=4)
    service = build_service(config)
    staged = service.open_request()
    # No declared size: the limit is only detected while streaming.
    upload = make_upload(b"x" * 20, content_type="video/mp4", filename="big.mp4")

    with pytest.raises(FileTooLargeError):
        await service.receive(upload, staged)

    assert staged_files(config) == []


@pytest.mark.asyncio
async def test_receive_rejects_before_touching_disk(make_config, staged_files) -> None:
    config = make_config()
    service = build_service(config)
    staged = service.open_request()
    upload = make_upload(b"hello", content_type="text/plain", filename="notes.txt")

    with pytest.raises(UnsupportedTypeError):
        await service.receive(upload, staged)

    assert staged.input_path is None
    assert staged_files(config) == []


@pytest.mark.asyncio
async def test_handle_returns_download_owning_staged_files(make_config, fake_ffmpeg, staged_files) -> None:
    config = make_config(ffmpeg_binary=fake_ffmpeg("success"))
    service = build_service(config)
    upload = make_upload(b"video-bytes", content_type="video/mp4", filename="clip.mp4")

    response = await service.handle(upload)

    assert response.headers["content-disposition"] == 'attachment; filename="clean.mp4"'
    assert response.media_type == "video/mp4"
    assert len(staged_files(config)) == 2


@pytest.mark.asyncio
async def test_handle_releases_files_when_processing_fails(make_config, fake_ffmpeg, staged_files) -> None:
    config = make_config(ffmpeg_binary=fake_ffmpeg("partial_failure"))
    service = build_service(config)
    upload = make_upload(b"video-bytes", content_type="video/mp4", filename="clip.mp4")

    with pytest.raises(ProcessingFailedError) as excinfo:
        await service.handle(upload)

    assert excinfo.value.failure.kind is FailureKind.EXIT_CODE
    assert "Conversion failed!" in excinfo.value.failure.diagnostic
    assert staged_files(config) == []
