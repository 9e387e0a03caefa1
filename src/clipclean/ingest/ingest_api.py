"""HTTP routes for video processing."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from .ingest_service import IngestService

router = APIRouter(tags=["ingest"])

UPLOAD_FIELD = "video"


def get_ingest_service(request: Request) -> IngestService:
    """Fetch ingest service from application state."""
    try:
        return request.app.state.ingest_service  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - wiring error
        raise RuntimeError("IngestService is not configured") from exc


@router.post("/process-video")
async def process_video(
    request: Request,
    service: IngestService = Depends(get_ingest_service),
) -> Response:
    """Crop the uploaded video and return it as ``clean.mp4``.

    The form is parsed here rather than through a ``File`` parameter so that
    an empty or text-only ``video`` field reaches the validator instead of
    FastAPI's 422 handler. Validation and processing failures surface as
    ``ClipCleanError`` subclasses and are rendered by ``api.errors``.
    """
    async with request.form() as form:
        upload = service.validator.select_upload(form.getlist(UPLOAD_FIELD))
        return await service.handle(upload)
