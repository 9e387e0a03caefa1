"""clipclean: upload a video, crop it with ffmpeg, download the result.

Staged files are owned by the request that created them and are removed once
the response has been sent, whatever its outcome.
"""

from .core.app import create_app

__all__ = ["create_app"]
