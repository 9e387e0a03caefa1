"""File download responses that release staged files when sending ends."""

from __future__ import annotations

import logging
from collections.abc import Callable
from os import PathLike

from starlette.responses import FileResponse
from starlette.types import Message, Receive, Scope, Send

from ..config import ProcessingOptions
from ..ingest.ingest_models import OutputAsset
from ..media.staging import StagedRequest

logger = logging.getLogger(__name__)


class CleanupFileResponse(FileResponse):
    """``FileResponse`` that always runs ``on_close`` after the send attempt.

    ``on_close`` runs whether the body was fully sent, partially sent or not
    sent at all. Once ``http.response.start`` went out, a send failure is only
    logged because no other response can be written for the request; before
    that point it propagates to the error handlers.
    """

    def __init__(
        self,
        path: str | PathLike[str],
        *,
        on_close: Callable[[], object],
        **kwargs: object,
    ) -> None:
        super().__init__(path, **kwargs)  # type: ignore[arg-type]
        self._on_close = on_close

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        headers_sent = False

        async def tracking_send(message: Message) -> None:
            nonlocal headers_sent
            await send(message)
            if message["type"] == "http.response.start":
                headers_sent = True

        try:
            await super().__call__(scope, receive, tracking_send)
        except Exception as exc:
            if not headers_sent:
                raise
            logger.error(
                "delivery.transmission_failed",
                extra={"path": str(self.path), "error": repr(exc)},
            )
        finally:
            self._on_close()


def build_download_response(
    output: OutputAsset,
    staged: StagedRequest,
    options: ProcessingOptions,
) -> CleanupFileResponse:
    """Stream ``output`` as an attachment and release ``staged`` afterwards."""
    logger.info(
        "delivery.started",
        extra={
            "request_id": staged.request_id,
            "path": str(output.path),
            "size_bytes": output.size_bytes,
        },
    )
    return CleanupFileResponse(
        output.path,
        on_close=staged.release,
        media_type=options.output_media_type,
        filename=options.download_filename,
    )
