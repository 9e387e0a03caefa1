"""Staging directories and request-scoped ownership of staged files."""

from __future__ import annotations

import logging
import re
import secrets
import time
from dataclasses import dataclass, field
from pathlib import Path

from ..config import StagingPaths

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9.]")


def sanitize_filename(filename: str | None) -> str:
    """Replace every character outside ``[A-Za-z0-9.]`` with ``_``.

    Path separators are therefore neutralised as well. Names made only of dots
    (``.``, ``..``) would still resolve outside the file itself and fall back to
    ``upload``.
    """
    if not filename:
        return "upload"
    safe = _UNSAFE_CHARS.sub("_", filename)
    if not safe.strip("."):
        return "upload"
    return safe


def unique_token() -> str:
    """Return ``<epoch-ms>-<random hex>``; unique across concurrent requests."""
    return f"{time.time_ns() // 1_000_000}-{secrets.token_hex(4)}"


def remove_file(path: Path) -> bool:
    """Delete ``path`` if present. Returns ``True`` when a file was removed.

    An absent file is not an error. Other OS errors are logged and swallowed so
    that cleanup of one file never prevents cleanup of the next.
    """
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    except OSError as exc:
        logger.error("staging.remove_failed", extra={"path": str(path), "error": str(exc)})
        return False
    logger.info("staging.removed", extra={"path": str(path)})
    return True


@dataclass(slots=True)
class StagedRequest:
    """Ownership handle over the files one request creates.

    Paths are bound as soon as they are generated, before anything is written,
    so :meth:`release` also sweeps partially written files. ``release`` runs its
    deletions once; later calls are no-ops.
    """

    request_id: str
    input_path: Path | None = None
    output_path: Path | None = None
    released: bool = False

    def bind_input(self, path: Path) -> Path:
        self._ensure_open()
        self.input_path = path
        return path

    def bind_output(self, path: Path) -> Path:
        self._ensure_open()
        self.output_path = path
        return path

    def release(self) -> list[Path]:
        """Delete every bound file and return the ones actually removed."""
        if self.released:
            return []
        self.released = True
        removed: list[Path] = []
        for path in (self.input_path, self.output_path):
            if path is not None and remove_file(path):
                removed.append(path)
        logger.info(
            "staging.request.released",
            extra={"request_id": self.request_id, "removed": len(removed)},
        )
        return removed

    def _ensure_open(self) -> None:
        if self.released:
            raise RuntimeError(f"staged request {self.request_id} already released")


@dataclass(slots=True)
class StagingArea:
    """Generates unique paths inside the upload and output directories."""

    paths: StagingPaths
    log: logging.Logger = field(default_factory=lambda: logger)

    def open_request(self) -> StagedRequest:
        return StagedRequest(request_id=secrets.token_hex(8))

    def input_path_for(self, original_filename: str | None) -> Path:
        name = f"{unique_token()}-{sanitize_filename(original_filename)}"
        return self.paths.upload_dir / name

    def output_path_for(self, prefix: str, extension: str) -> Path:
        return self.paths.output_dir / f"{prefix}-{unique_token()}.{extension.lstrip('.')}"

    def sweep_stale(
        self,
        older_than_seconds: float,
        *,
        now: float | None = None,
        dry_run: bool = False,
    ) -> list[Path]:
        """Remove files older than the threshold left behind by a crashed process."""
        reference = time.time() if now is None else now
        cutoff = reference - older_than_seconds
        stale: list[Path] = []
        for directory in (self.paths.upload_dir, self.paths.output_dir):
            if not directory.is_dir():
                continue
            for entry in directory.iterdir():
                try:
                    if not entry.is_file() or entry.stat().st_mtime > cutoff:
                        continue
                except FileNotFoundError:
                    continue
                if dry_run or remove_file(entry):
                    stale.append(entry)
        if stale:
            self.log.info(
                "staging.sweep.done",
                extra={"count": len(stale), "dry_run": dry_run},
            )
        return stale


__all__ = [
    "StagedRequest",
    "StagingArea",
    "remove_file",
    "sanitize_filename",
    "unique_token",
]
