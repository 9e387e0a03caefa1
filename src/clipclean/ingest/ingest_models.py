"""Data structures for the upload/process pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from pathlib import Path


class JobStatus(StrEnum):
    """Lifecycle statuses of a single external-tool invocation."""

    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class FailureKind(StrEnum):
    """Why the external tool did not produce a usable output."""

    EXIT_CODE = "exit_code"
    SIGNAL = "signal"
    LAUNCH_ERROR = "launch_error"
    MISSING_OUTPUT = "missing_output"
    TIMEOUT = "timeout"


@dataclass(slots=True)
class UploadedAsset:
    """A validated upload persisted in the upload staging directory."""

    filename: str
    path: Path
    size_bytes: int
    content_type: str
    original_filename: str


@dataclass(slots=True)
class OutputAsset:
    path: Path
    size_bytes: int


@dataclass(slots=True)
class ProcessingJob:
    """Request-scoped record of one external-tool invocation."""

    job_id: str
    input_path: Path
    output_path: Path
    arguments: tuple[str, ...]
    status: JobStatus = JobStatus.PENDING
    started_at: datetime | None = None
    finished_at: datetime | None = None

    @property
    def duration_seconds(self) -> float | None:
        if self.started_at is None or self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds()


@dataclass(slots=True, frozen=True)
class ProcessingSucceeded:
    output: OutputAsset


@dataclass(slots=True, frozen=True)
class ProcessingFailed:
    kind: FailureKind
    diagnostic: str = ""
    exit_code: int | None = None

    def summary(self) -> str:
        """One-line description suitable for the error response."""
        if self.kind is FailureKind.EXIT_CODE:
            head = f"ffmpeg exited with code {self.exit_code}"
        elif self.kind is FailureKind.SIGNAL:
            head = f"ffmpeg was killed by signal {-(self.exit_code or 0)}"
        elif self.kind is FailureKind.TIMEOUT:
            head = "ffmpeg did not finish in time"
        elif self.kind is FailureKind.LAUNCH_ERROR:
            head = "ffmpeg could not be started"
        else:
            head = "ffmpeg produced no output file"
        last_line = _last_line(self.diagnostic)
        return f"{head}: {last_line}" if last_line else head


ProcessingResult = ProcessingSucceeded | ProcessingFailed


def _last_line(text: str) -> str:
    for line in reversed(text.strip().splitlines()):
        if line.strip():
            return line.strip()
    return ""
