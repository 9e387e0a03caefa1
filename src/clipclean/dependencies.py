"""Dependency wiring helpers."""

from fastapi import FastAPI

from .api.errors import install_error_handlers
from .api.health import router as health_router
from .config import AppConfig
from .ingest.ingest_api import router as ingest_router
from .ingest.ingest_service import IngestService
from .ingest.validation import UploadValidator
from .media.staging import StagingArea
from .processing.ffmpeg_pipeline import FfmpegPipeline


def include_routers(app: FastAPI, config: AppConfig) -> None:
    """Mount module routers, error handlers and attach services."""
    staging = StagingArea(config.staging)
    validator = UploadValidator(config.upload_limits)
    pipeline = FfmpegPipeline(options=config.processing, staging=staging)
    ingest_service = IngestService(
        validator=validator,
        staging=staging,
        pipeline=pipeline,
        limits=config.upload_limits,
        processing=config.processing,
    )

    app.state.config = config
    app.state.staging = staging
    app.state.pipeline = pipeline
    app.state.ingest_service = ingest_service

    install_error_handlers(app)
    app.include_router(health_router)
    app.include_router(ingest_router)
