"""Application configuration builder.

Settings are read from the environment once (``CLIPCLEAN_`` prefix) and
turned into plain dataclasses that are handed to each component when it is
constructed. Nothing below reads ``os.environ`` after :func:`load_config`.
"""

from __future__ import annotations

import logging
import os
import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Any, cast

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MIB = 1024 * 1024

# Constrained hosts (Railway) only allow writes below /tmp.
HOSTED_ENV_MARKER = "RAILWAY_ENVIRONMENT"


@dataclass(slots=True)
class StagingPaths:
    upload_dir: Path
    output_dir: Path


@dataclass(slots=True)
class UploadLimits:
    max_file_size_bytes: int = 50 * MIB
    allowed_mime_prefix: str = "video/"
    chunk_size_bytes: int = 1 * MIB

    @property
    def max_file_size_mb(self) -> int:
        return self.max_file_size_bytes // MIB


@dataclass(slots=True)
class ProcessingOptions:
    ffmpeg_binary: str = "ffmpeg"
    video_filters: str = "crop=in_w-200:in_h-100:0:0"
    output_options: tuple[str, ...] = ("-movflags", "faststart")
    output_prefix: str = "clean"
    output_extension: str = "mp4"
    output_media_type: str = "video/mp4"
    download_filename: str = "clean.mp4"
    timeout_seconds: float = 600.0
    max_concurrent_jobs: int = 2


@dataclass(slots=True)
class AppConfig:
    staging: StagingPaths
    upload_limits: UploadLimits
    processing: ProcessingOptions
    stale_file_seconds: int = 3600
    sweep_on_startup: bool = True
    log_level: str = "INFO"


class EnvSettings(BaseSettings):
    """Raw environment values; converted into :class:`AppConfig`."""

    model_config = cast(Any, SettingsConfigDict(env_prefix="CLIPCLEAN_", extra="ignore"))

    upload_dir: Path | None = Field(
        default=None, description="Staging directory for incoming uploads."
    )
    output_dir: Path | None = Field(
        default=None, description="Staging directory for processed outputs."
    )
    max_file_size_bytes: int = Field(default=50 * MIB, ge=1)
    allowed_mime_prefix: str = Field(default="video/", min_length=1)
    chunk_size_bytes: int = Field(default=1 * MIB, ge=1)
    ffmpeg_binary: str = Field(default="ffmpeg", min_length=1)
    video_filters: str = Field(default="crop=in_w-200:in_h-100:0:0")
    output_options: str = Field(
        default="-movflags faststart",
        description="Extra encoder arguments, shell-quoted.",
    )
    download_filename: str = Field(default="clean.mp4", min_length=1)
    timeout_seconds: float = Field(default=600.0, gt=0)
    max_concurrent_jobs: int = Field(default=2, ge=1)
    stale_file_seconds: int = Field(default=3600, ge=60)
    sweep_on_startup: bool = True
    log_level: str = Field(default="INFO", description="Root log level name.")

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        name = value.strip().upper()
        if name not in logging.getLevelNamesMapping():
            raise ValueError(f"unknown log level: {value!r}")
        return name

    @model_validator(mode="after")
    def _stale_window_exceeds_timeout(self) -> "EnvSettings":
        # The sweep must never remove files that a running job still owns.
        if self.stale_file_seconds <= self.timeout_seconds:
            raise ValueError(
                "stale_file_seconds must be greater than timeout_seconds "
                f"({self.stale_file_seconds} <= {self.timeout_seconds})"
            )
        return self


def _default_staging(hosted: bool) -> StagingPaths:
    if hosted:
        return StagingPaths(upload_dir=Path("/tmp/uploads"), output_dir=Path("/tmp/outputs"))
    return StagingPaths(upload_dir=Path("./uploads"), output_dir=Path("./outputs"))


def ensure_staging_paths(paths: StagingPaths) -> None:
    paths.upload_dir.mkdir(parents=True, exist_ok=True)
    paths.output_dir.mkdir(parents=True, exist_ok=True)


def build_config(settings: EnvSettings, *, hosted: bool = False) -> AppConfig:
    """Translate raw settings into the component configuration tree."""
    defaults = _default_staging(hosted)
    staging = StagingPaths(
        upload_dir=(settings.upload_dir or defaults.upload_dir).resolve(),
        output_dir=(settings.output_dir or defaults.output_dir).resolve(),
    )
    upload_limits = UploadLimits(
        max_file_size_bytes=settings.max_file_size_bytes,
        allowed_mime_prefix=settings.allowed_mime_prefix,
        chunk_size_bytes=settings.chunk_size_bytes,
    )
    processing = ProcessingOptions(
        ffmpeg_binary=settings.ffmpeg_binary,
        video_filters=settings.video_filters,
        output_options=tuple(shlex.split(settings.output_options)),
        download_filename=settings.download_filename,
        timeout_seconds=settings.timeout_seconds,
        max_concurrent_jobs=settings.max_concurrent_jobs,
    )
    return AppConfig(
        staging=staging,
        upload_limits=upload_limits,
        processing=processing,
        stale_file_seconds=settings.stale_file_seconds,
        sweep_on_startup=settings.sweep_on_startup,
        log_level=settings.log_level,
    )


def load_config() -> AppConfig:
    """Load configuration from environment and create staging directories."""
    config = build_config(EnvSettings(), hosted=HOSTED_ENV_MARKER in os.environ)
    ensure_staging_paths(config.staging)
    return config


__all__ = [
    "MIB",
    "AppConfig",
    "EnvSettings",
    "ProcessingOptions",
    "StagingPaths",
    "UploadLimits",
    "build_config",
    "ensure_staging_paths",
    "load_config",
]
