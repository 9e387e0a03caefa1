"""Cron entry point for removing orphaned staging files."""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass

from clipclean.config import load_config
from clipclean.lifecycle import sweep_orphans_once
from clipclean.media.staging import StagingArea


@dataclass(slots=True)
class SweepSummary:
    removed: int
    dry_run: bool


def perform_sweep(*, dry_run: bool, older_than_seconds: float | None = None) -> SweepSummary:
    """Execute the sweep and return summary counters."""
    config = load_config()
    threshold = older_than_seconds if older_than_seconds is not None else config.stale_file_seconds
    staging = StagingArea(config.staging)
    removed = sweep_orphans_once(staging, older_than_seconds=threshold, dry_run=dry_run)
    return SweepSummary(removed=len(removed), dry_run=dry_run)


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Remove orphaned upload/output staging files.")
    parser.add_argument("--dry-run", action="store_true", help="Only report counts without deleting files.")
    parser.add_argument(
        "--older-than",
        type=float,
        default=None,
        help="Age threshold in seconds (defaults to CLIPCLEAN_STALE_FILE_SECONDS).",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv or [])
    try:
        summary = perform_sweep(dry_run=args.dry_run, older_than_seconds=args.older_than)
    except Exception as exc:
        print(f"sweep failed: {exc}", file=sys.stderr)
        return 2

    if summary.dry_run:
        print(f"sweep dry-run, stale_files={summary.removed}", file=sys.stdout)
    else:
        print(f"sweep done, removed={summary.removed}", file=sys.stdout)
    return 0


if __name__ == "__main__":  # pragma: no cover - manual invocation
    sys.exit(main(sys.argv[1:]))
