"""Loudness Batch Analyzer - Batch scheduler.

Fans a list of audio files out to the loudness worker, one ffmpeg process
per file, and streams back exactly one LoudnessResult per input.

Modes:
- serial: strict input order; a file starts only after the previous one finished
- parallel: fixed-size worker pool of `concurrency` threads; results are
  yielded in completion order, which need not match input order

Isolation:
- each task runs behind its own exception boundary; an unexpected error
  becomes a WORKER_ERROR outcome for that file only
- settings are frozen and captured when the batch is scheduled, so every
  task sees the same window length

Environment:
- the color-suppression variable is forced once before the first process is
  spawned and restored only after every task has finished (or after the
  consumer closes the stream early)
"""

from __future__ import annotations

import functools
import logging
import math
from collections.abc import Callable, Iterable, Iterator
from concurrent.futures import ThreadPoolExecutor, as_completed
from contextlib import closing
from dataclasses import dataclass
from enum import StrEnum

from loudscan.config import (
    COLOR_ENV_VALUE,
    COLOR_ENV_VAR,
    CONCURRENCY,
    FFMPEG_BIN,
    WINDOW_SEC,
)
from loudscan.utils.env import EnvOverride
from services.worker_loudness.run import (
    AnalysisErrorCode,
    LoudnessResult,
    analyze_file,
    failure,
    require_analyzer,
)

logger = logging.getLogger(__name__)

# Shared by every batch in the process so overlapping batches restore once
_COLOR_OVERRIDE = EnvOverride(COLOR_ENV_VAR, COLOR_ENV_VALUE)

# Per-file analysis callable: (path, window_sec) -> LoudnessResult
AnalyzeFn = Callable[[str, float], LoudnessResult]


class BatchMode(StrEnum):
    """How files in a batch are scheduled."""

    SERIAL = "serial"
    PARALLEL = "parallel"


@dataclass(frozen=True)
class BatchSettings:
    """Immutable batch configuration, captured by value at scheduling time.

    concurrency is ignored in serial mode.
    """

    window_sec: float = WINDOW_SEC
    mode: BatchMode = BatchMode.PARALLEL
    concurrency: int = CONCURRENCY
    ffmpeg_bin: str = FFMPEG_BIN

    def __post_init__(self) -> None:
        if isinstance(self.window_sec, bool) or not isinstance(self.window_sec, int | float):
            raise ValueError(f"window_sec must be a number, got {self.window_sec!r}")
        if not math.isfinite(self.window_sec) or self.window_sec <= 0:
            raise ValueError(f"window_sec must be a positive number, got {self.window_sec!r}")
        if isinstance(self.concurrency, bool) or not isinstance(self.concurrency, int):
            raise ValueError(f"concurrency must be an integer, got {self.concurrency!r}")
        if self.concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {self.concurrency}")
        # Accept plain strings ("serial") as well as enum members
        object.__setattr__(self, "mode", BatchMode(self.mode))


# --- Task Isolation ---


def _run_task(analyze: AnalyzeFn, path: str, window_sec: float) -> LoudnessResult:
    """Run one analysis behind an exception boundary."""
    try:
        return analyze(path, window_sec)
    except Exception as e:
        logger.exception("Unexpected error analyzing %s", path)
        return failure(path, AnalysisErrorCode.WORKER_ERROR, f"Unexpected error: {e}")


# --- Runners ---


def _run_serial(
    targets: list[str],
    settings: BatchSettings,
    analyze: AnalyzeFn,
) -> Iterator[LoudnessResult]:
    window_sec = settings.window_sec
    for path in targets:
        yield _run_task(analyze, path, window_sec)


def _run_parallel(
    targets: list[str],
    settings: BatchSettings,
    analyze: AnalyzeFn,
) -> Iterator[LoudnessResult]:
    window_sec = settings.window_sec
    executor = ThreadPoolExecutor(
        max_workers=settings.concurrency,
        thread_name_prefix="loudscan-worker",
    )
    try:
        futures = [executor.submit(_run_task, analyze, path, window_sec) for path in targets]
        for future in as_completed(futures):
            yield future.result()
    finally:
        # Queued files are dropped if the consumer stops early; running ones finish
        executor.shutdown(wait=True, cancel_futures=True)


def _iter_batch(
    targets: list[str],
    settings: BatchSettings,
    analyze: AnalyzeFn,
) -> Iterator[LoudnessResult]:
    runner = _run_serial if settings.mode == BatchMode.SERIAL else _run_parallel
    logger.info(
        "Starting batch: %d files, mode=%s, concurrency=%d, window=%gs",
        len(targets),
        settings.mode,
        settings.concurrency,
        settings.window_sec,
    )

    completed = 0
    failed = 0
    with _COLOR_OVERRIDE.scope():
        with closing(runner(targets, settings, analyze)) as outcomes:
            for outcome in outcomes:
                completed += 1
                if not outcome.ok:
                    failed += 1
                yield outcome

    logger.info("Batch finished: %d/%d files, %d failed", completed, len(targets), failed)


# --- Entry Point ---


def run_batch(
    targets: Iterable[str],
    settings: BatchSettings | None = None,
    analyze: AnalyzeFn | None = None,
) -> Iterator[LoudnessResult]:
    """Analyze a batch of files, streaming one outcome per target.

    The analyzer presence check runs immediately, before any file is
    touched, when the default ffmpeg worker is used. Its failure is the only
    error that propagates; per-file failures are yielded as outcomes.

    Args:
        targets: Absolute file paths. Duplicates are analyzed independently.
        settings: Batch configuration (defaults from loudscan.config).
        analyze: Per-file callable (path, window_sec) -> LoudnessResult.
            Defaults to the ffmpeg worker.

    Returns:
        Iterator of LoudnessResult, one per target. Order matches input in
        serial mode and is completion order in parallel mode.

    Raises:
        AnalyzerNotFoundError: If ffmpeg is missing (default worker only).
    """
    settings = settings or BatchSettings()
    snapshot = list(targets)

    if analyze is None:
        require_analyzer(settings.ffmpeg_bin)
        analyze = functools.partial(analyze_file, ffmpeg_bin=settings.ffmpeg_bin)

    return _iter_batch(snapshot, settings, analyze)


__all__ = [
    "AnalyzeFn",
    "BatchMode",
    "BatchSettings",
    "run_batch",
]
