"""External ffmpeg invocation for staged uploads."""

from __future__ import annotations

import asyncio
import contextlib
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

import structlog

from ..config import ProcessingOptions
from ..ingest.ingest_models import (
    FailureKind,
    JobStatus,
    OutputAsset,
    ProcessingFailed,
    ProcessingJob,
    ProcessingResult,
    ProcessingSucceeded,
    UploadedAsset,
)
from ..media.staging import StagedRequest, StagingArea

logger = structlog.get_logger(__name__)

DIAGNOSTIC_TAIL_CHARS = 4000


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _tail(stderr: bytes | None) -> str:
    if not stderr:
        return ""
    return stderr.decode("utf-8", errors="replace")[-DIAGNOSTIC_TAIL_CHARS:]


@dataclass(slots=True)
class FfmpegPipeline:
    """Run ffmpeg as an asyncio child process, one per job.

    At most ``options.max_concurrent_jobs`` children run at once; further jobs
    wait for a free slot. A job that outlives ``options.timeout_seconds`` or
    whose awaiting task is cancelled has its child killed and reaped.
    """

    options: ProcessingOptions
    staging: StagingArea
    _slots: asyncio.Semaphore = field(init=False)

    def __post_init__(self) -> None:
        self._slots = asyncio.Semaphore(self.options.max_concurrent_jobs)

    def prepare(self, asset: UploadedAsset, staged: StagedRequest) -> ProcessingJob:
        """Generate the output path, bind it to ``staged`` and build the job."""
        output_path = staged.bind_output(
            self.staging.output_path_for(
                self.options.output_prefix, self.options.output_extension
            )
        )
        return ProcessingJob(
            job_id=staged.request_id,
            input_path=asset.path,
            output_path=output_path,
            arguments=self.build_arguments(),
        )

    def build_arguments(self) -> tuple[str, ...]:
        arguments: list[str] = []
        if self.options.video_filters:
            arguments += ["-vf", self.options.video_filters]
        arguments += list(self.options.output_options)
        return tuple(arguments)

    def build_command(self, job: ProcessingJob) -> list[str]:
        return [
            self.options.ffmpeg_binary,
            "-y",
            "-hide_banner",
            "-loglevel",
            "error",
            "-i",
            str(job.input_path),
            *job.arguments,
            str(job.output_path),
        ]

    async def run(self, job: ProcessingJob) -> ProcessingResult:
        """Execute ``job`` and return its discriminated outcome."""
        log = logger.bind(job_id=job.job_id, input_path=str(job.input_path))
        if self._slots.locked():
            log.info("processing.queued", max_concurrent_jobs=self.options.max_concurrent_jobs)
        async with self._slots:
            return await self._execute(job, log)

    async def _execute(self, job: ProcessingJob, log: structlog.stdlib.BoundLogger) -> ProcessingResult:
        command = self.build_command(job)
        job.status = JobStatus.RUNNING
        job.started_at = _utcnow()
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            return self._fail(job, ProcessingFailed(FailureKind.LAUNCH_ERROR, str(exc)), log)

        log.info("processing.started", pid=process.pid, command=" ".join(command))
        try:
            _, stderr = await asyncio.wait_for(
                process.communicate(), timeout=self.options.timeout_seconds
            )
        except asyncio.TimeoutError:
            await self._kill(process)
            failure = ProcessingFailed(
                FailureKind.TIMEOUT,
                f"no exit after {self.options.timeout_seconds:g} seconds",
                process.returncode,
            )
            return self._fail(job, failure, log)
        except asyncio.CancelledError:
            await self._kill(process)
            job.status = JobStatus.FAILED
            job.finished_at = _utcnow()
            log.warning("processing.cancelled", pid=process.pid)
            raise

        diagnostic = _tail(stderr)
        return_code = process.returncode
        if return_code is not None and return_code < 0:
            return self._fail(job, ProcessingFailed(FailureKind.SIGNAL, diagnostic, return_code), log)
        if return_code != 0:
            return self._fail(job, ProcessingFailed(FailureKind.EXIT_CODE, diagnostic, return_code), log)

        output = self._collect_output(job.output_path)
        if output is None:
            return self._fail(job, ProcessingFailed(FailureKind.MISSING_OUTPUT, diagnostic, 0), log)

        job.status = JobStatus.SUCCEEDED
        job.finished_at = _utcnow()
        log.info(
            "processing.completed",
            output_path=str(output.path),
            size_bytes=output.size_bytes,
            duration_seconds=job.duration_seconds,
        )
        return ProcessingSucceeded(output=output)

    @staticmethod
    def _collect_output(path: Path) -> OutputAsset | None:
        try:
            size = path.stat().st_size
        except FileNotFoundError:
            return None
        if size == 0:
            return None
        return OutputAsset(path=path, size_bytes=size)

    @staticmethod
    async def _kill(process: asyncio.subprocess.Process) -> None:
        if process.returncode is None:
            with contextlib.suppress(ProcessLookupError):
                process.kill()
        await process.wait()

    @staticmethod
    def _fail(
        job: ProcessingJob,
        failure: ProcessingFailed,
        log: structlog.stdlib.BoundLogger,
    ) -> ProcessingFailed:
        job.status = JobStatus.FAILED
        job.finished_at = _utcnow()
        log.error(
            "processing.failed",
            kind=failure.kind.value,
            exit_code=failure.exit_code,
            diagnostic=failure.diagnostic,
            duration_seconds=job.duration_seconds,
        )
        return failure
