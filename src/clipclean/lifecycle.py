"""Lifecycle helpers run at application startup."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI

from .config import AppConfig, ensure_staging_paths
from .media.staging import StagingArea

logger = logging.getLogger(__name__)


def sweep_orphans_once(
    staging: StagingArea,
    *,
    older_than_seconds: float,
    dry_run: bool = False,
) -> list[Path]:
    """Remove staged files abandoned by a previous process."""
    removed = staging.sweep_stale(older_than_seconds, dry_run=dry_run)
    if removed:
        logger.info(
            "lifecycle.sweep.removed",
            extra={"count": len(removed), "dry_run": dry_run},
        )
    return removed


def build_lifespan(config: AppConfig):
    """Return a lifespan context creating staging dirs and sweeping orphans."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        ensure_staging_paths(config.staging)
        if config.sweep_on_startup:
            sweep_orphans_once(
                app.state.staging, older_than_seconds=config.stale_file_seconds
            )
        logger.info(
            "lifecycle.started",
            extra={
                "upload_dir": str(config.staging.upload_dir),
                "output_dir": str(config.staging.output_dir),
                "max_upload_mb": config.upload_limits.max_file_size_mb,
            },
        )
        yield

    return lifespan


__all__ = ["build_lifespan", "sweep_orphans_once"]
