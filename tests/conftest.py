from __future__ import annotations

import stat
from collections.abc import Callable
from pathlib import Path

import pytest

from clipclean.config import (
    MIB,
    AppConfig,
    ProcessingOptions,
    StagingPaths,
    UploadLimits,
    ensure_staging_paths,
)

# Stand-ins for ffmpeg. Every script receives the real command line built by
# FfmpegPipeline; the output path is always the last argument.
FAKE_TOOLS: dict[str, str] = {
    "success": (
        "while [ $# -gt 1 ]; do\n"
        '  if [ "$1" = "-i" ]; then input="$2"; fi\n'
        "  shift\n"
        "done\n"
        'cp "$input" "$1"\n'
    ),
    "slow_success": (
        "sleep 0.4\n"
        "while [ $# -gt 1 ]; do\n"
        '  if [ "$1" = "-i" ]; then input="$2"; fi\n'
        "  shift\n"
        "done\n"
        'cp "$input" "$1"\n'
    ),
    "failure": 'echo "Invalid filter graph" >&2\nexit 1\n',
    "partial_failure": (
        "for last; do :; done\n"
        'printf partial > "$last"\n'
        'echo "Conversion failed!" >&2\n'
        "exit 1\n"
    ),
    "killed": "kill -9 $$\n",
    "no_output": "exit 0\n",
    "hang": (
        "for last; do :; done\n"
        ': > "$last.started"\n'
        "exec sleep 30\n"
    ),
}


@pytest.fixture
def fake_ffmpeg(tmp_path: Path) -> Callable[[str], str]:
    """Install a fake ffmpeg script and return its path."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir(exist_ok=True)

    def _install(behaviour: str) -> str:
        script = bin_dir / f"ffmpeg-{behaviour}"
        script.write_text("#!/bin/sh\n" + FAKE_TOOLS[behaviour])
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return str(script)

    return _install


@pytest.fixture
def make_config(tmp_path: Path) -> Callable[..., AppConfig]:
    def _build(
        *,
        ffmpeg_binary: str = "ffmpeg",
        max_file_size_bytes: int = 50 * MIB,
        chunk_size_bytes: int = 64 * 1024,
        timeout_seconds: float = 10.0,
        max_concurrent_jobs: int = 2,
        sweep_on_startup: bool = True,
    ) -> AppConfig:
        config = AppConfig(
            staging=StagingPaths(
                upload_dir=tmp_path / "uploads",
                output_dir=tmp_path / "outputs",
            ),
            upload_limits=UploadLimits(
                max_file_size_bytes=max_file_size_bytes,
                chunk_size_bytes=chunk_size_bytes,
            ),
            processing=ProcessingOptions(
                ffmpeg_binary=ffmpeg_binary,
                timeout_seconds=timeout_seconds,
                max_concurrent_jobs=max_concurrent_jobs,
            ),
            sweep_on_startup=sweep_on_startup,
        )
        ensure_staging_paths(config.staging)
        return config

    return _build


@pytest.fixture
def staged_files() -> Callable[[AppConfig], list[Path]]:
    """Return every file currently present in both staging directories."""

    def _list(config: AppConfig) -> list[Path]:
        found: list[Path] = []
        for directory in (config.staging.upload_dir, config.staging.output_dir):
            found.extend(sorted(p for p in directory.iterdir() if p.is_file()))
        return found

    return _list
