"""Liveness endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/")
async def health(request: Request) -> dict[str, object]:
    config = request.app.state.config
    return {
        "status": "ok",
        "service": "clipclean",
        "max_upload_mb": config.upload_limits.max_file_size_mb,
    }
