#!/usr/bin/env python3
"""Analyze loudness of audio files with ffmpeg and print NDJSON records.

Each positional argument is a file path or a wildcard pattern. One record is
written to stdout per resolved file as soon as its analysis finishes; logs go
to stderr. The log level defaults to LOUDSCAN_LOG_LEVEL (WARNING if unset).

Exit codes:
    0  every file was analyzed
    1  at least one file failed
    2  ffmpeg missing, bad arguments or unresolvable input
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from collections.abc import Sequence

from loudscan.config import CONCURRENCY, FFMPEG_BIN, WINDOW_SEC
from loudscan.emitter import emit_records, to_ndjson_line
from loudscan.orchestrator import BatchMode, BatchSettings, run_batch
from loudscan.schemas import AnalysisFailureRecord
from loudscan.utils.paths import PathResolutionError, resolve_targets
from services.worker_loudness.run import AnalyzerNotFoundError

logger = logging.getLogger("loudscan.cli")

EXIT_OK = 0
EXIT_FILE_FAILURES = 1
EXIT_SETUP_FAILURE = 2

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Measure peak/RMS/noise floor and EBU R128 loudness of audio files",
    )
    parser.add_argument("paths", nargs="+", help="Audio files or wildcard patterns")
    parser.add_argument(
        "--window",
        type=float,
        default=WINDOW_SEC,
        help=f"astats window length in seconds (default: {WINDOW_SEC:g})",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        default=CONCURRENCY,
        help=f"Maximum concurrent ffmpeg processes (default: {CONCURRENCY})",
    )
    parser.add_argument(
        "--serial",
        action="store_true",
        help="Analyze files one at a time in input order",
    )
    parser.add_argument(
        "--skip-missing",
        action="store_true",
        help="Skip inputs that match no file instead of aborting",
    )
    parser.add_argument(
        "--ffmpeg",
        default=FFMPEG_BIN,
        help=f"ffmpeg executable (default: {FFMPEG_BIN})",
    )
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        default=None,
        help="Log level for stderr output",
    )
    return parser


def _configure_logging(level_name: str | None) -> None:
    level_name = level_name or os.environ.get("LOUDSCAN_LOG_LEVEL", "WARNING").upper()
    if level_name not in LOG_LEVELS:
        level_name = "WARNING"
    logging.basicConfig(
        level=getattr(logging, level_name),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.log_level)

    try:
        settings = BatchSettings(
            window_sec=args.window,
            mode=BatchMode.SERIAL if args.serial else BatchMode.PARALLEL,
            concurrency=args.concurrency,
            ffmpeg_bin=args.ffmpeg,
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_SETUP_FAILURE

    try:
        targets = resolve_targets(args.paths, skip_unresolved=args.skip_missing)
    except PathResolutionError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_SETUP_FAILURE

    try:
        results = run_batch(targets, settings)
    except AnalyzerNotFoundError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return EXIT_SETUP_FAILURE

    failures = 0
    for record in emit_records(results):
        if isinstance(record, AnalysisFailureRecord):
            failures += 1
        sys.stdout.write(to_ndjson_line(record))
        sys.stdout.flush()

    if failures:
        print(f"{failures} of {len(targets)} files failed", file=sys.stderr)
        return EXIT_FILE_FAILURES
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
