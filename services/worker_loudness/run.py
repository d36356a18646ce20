"""Loudness Batch Analyzer - Loudness Worker.

Runs ffmpeg against one audio file and turns its diagnostic report into a
LoudnessMetrics record.

Input: absolute path of an audio file
Output: LoudnessResult (metrics on success, error code on failure)

One ffmpeg invocation computes both:
- astats: peak level, RMS level, noise floor over sliding windows,
  aggregated overall (not per channel)
- ebur128: integrated loudness, loudness range (low/high), true peak,
  with dual-mono downmix and per-frame logging suppressed

Decoded audio is discarded (null muxer). stdout and stderr are merged and
returned whatever the exit code: ffmpeg writes the report incrementally,
so complete metric lines may precede a late failure.

Dependencies:
- Requires ffmpeg installed and in PATH (or LOUDSCAN_FFMPEG_BIN)

Error codes:
- ANALYZER_NOT_FOUND: ffmpeg is not on the execution path (fatal for the batch)
- INPUT_NOT_FOUND: source file does not exist
- SPAWN_FAILED: the ffmpeg process could not be started
- ANALYZER_FAILED: ffmpeg exited non-zero and reported no metric at all
- WORKER_ERROR: unexpected error while analyzing one file
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import time
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

from loudscan.config import DIAGNOSTIC_TAIL_CHARS, FFMPEG_BIN, WINDOW_SEC
from loudscan.utils.diagnostics import LoudnessMetrics, has_range_anomaly, parse_metrics
from loudscan.utils.paths import leaf_name

logger = logging.getLogger(__name__)


# --- Error Codes ---


class AnalysisErrorCode(StrEnum):
    """Error codes for the loudness analysis stage."""

    ANALYZER_NOT_FOUND = "ANALYZER_NOT_FOUND"
    INPUT_NOT_FOUND = "INPUT_NOT_FOUND"
    SPAWN_FAILED = "SPAWN_FAILED"
    ANALYZER_FAILED = "ANALYZER_FAILED"
    WORKER_ERROR = "WORKER_ERROR"


class AnalysisError(Exception):
    """Base exception for analysis errors."""

    def __init__(self, error_code: str, message: str):
        self.error_code = error_code
        self.message = message
        super().__init__(f"{error_code}: {message}")


class AnalyzerNotFoundError(AnalysisError):
    """ffmpeg is not available. Aborts the whole batch."""

    def __init__(self, ffmpeg_bin: str):
        self.ffmpeg_bin = ffmpeg_bin
        super().__init__(
            AnalysisErrorCode.ANALYZER_NOT_FOUND,
            f"Analyzer not found on PATH: {ffmpeg_bin}",
        )


class InvocationError(AnalysisError):
    """The ffmpeg process for one file could not be started."""

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(
            AnalysisErrorCode.SPAWN_FAILED,
            f"Cannot start analyzer for {path}: {reason}",
        )


# --- Result Types ---


@dataclass(frozen=True)
class LoudnessResult:
    """Outcome of analyzing one file: metrics or a failure, never both."""

    path: str
    ok: bool
    metrics: LoudnessMetrics | None = None
    error_code: str | None = None
    message: str | None = None
    elapsed_ms: int = 0

    @property
    def name(self) -> str:
        return leaf_name(self.path)


def failure(path: str, error_code: str, message: str, elapsed_ms: int = 0) -> LoudnessResult:
    """Build a failed LoudnessResult."""
    return LoudnessResult(
        path=path,
        ok=False,
        error_code=error_code,
        message=message,
        elapsed_ms=elapsed_ms,
    )


# --- Setup Check ---


def require_analyzer(ffmpeg_bin: str = FFMPEG_BIN) -> str:
    """Verify ffmpeg can be found before any file is processed.

    Args:
        ffmpeg_bin: Executable name or path.

    Returns:
        Resolved executable path.

    Raises:
        AnalyzerNotFoundError: If the executable is not on PATH.
    """
    resolved = shutil.which(ffmpeg_bin)
    if resolved is None:
        logger.error("Analyzer not found on PATH: %s", ffmpeg_bin)
        raise AnalyzerNotFoundError(ffmpeg_bin)
    return resolved


# --- ffmpeg Subprocess ---


def build_analyzer_command(
    path: str,
    window_sec: float = WINDOW_SEC,
    ffmpeg_bin: str = FFMPEG_BIN,
) -> list[str]:
    """Build the ffmpeg argv for one analysis.

    Args:
        path: Audio file to analyze.
        window_sec: astats window length in seconds.
        ffmpeg_bin: Executable name or path.

    Returns:
        Command as a list of arguments.
    """
    filters = (
        f"astats=length={window_sec:g}:measure_perchannel=none,"
        "ebur128=peak=true:dualmono=true:framelog=quiet"
    )
    return [
        ffmpeg_bin,
        "-hide_banner",
        "-nostats",
        "-nostdin",
        "-i",
        path,
        "-af",
        filters,
        "-f",
        "null",
        "-",
    ]


def invoke_analyzer(
    path: str,
    window_sec: float = WINDOW_SEC,
    ffmpeg_bin: str = FFMPEG_BIN,
) -> tuple[int, str]:
    """Run ffmpeg on one file and capture its merged diagnostic text.

    No timeout is applied: a hung ffmpeg blocks its slot.

    Args:
        path: Audio file to analyze.
        window_sec: astats window length in seconds.
        ffmpeg_bin: Executable name or path.

    Returns:
        Tuple of (returncode, diagnostic_text). The text is returned for
        non-zero exits too.

    Raises:
        InvocationError: If the process could not be started.
    """
    cmd = build_analyzer_command(path, window_sec, ffmpeg_bin)
    logger.debug("Running analyzer: %s", cmd)

    try:
        result = subprocess.run(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            check=False,
        )
    except OSError as e:
        # FileNotFoundError and PermissionError land here
        raise InvocationError(path, str(e)) from e

    text = (result.stdout or b"").decode("utf-8", errors="replace")
    return result.returncode, text


# --- Main Analysis Logic ---


def analyze_file(
    path: str,
    window_sec: float = WINDOW_SEC,
    ffmpeg_bin: str = FFMPEG_BIN,
) -> LoudnessResult:
    """Analyze one audio file.

    This is the per-task entry point used by the scheduler. Per-file
    problems come back as a failed LoudnessResult; nothing is raised for
    them.

    Args:
        path: Absolute path of the audio file.
        window_sec: astats window length in seconds.
        ffmpeg_bin: Executable name or path.

    Returns:
        LoudnessResult with metrics (possibly partial) or an error code.
    """
    start = time.monotonic()

    if not Path(path).exists():
        logger.warning("Source file not found: %s", path)
        return failure(path, AnalysisErrorCode.INPUT_NOT_FOUND, f"Source file not found: {path}")

    try:
        returncode, text = invoke_analyzer(path, window_sec, ffmpeg_bin)
    except InvocationError as e:
        logger.warning("Analyzer could not start for %s: %s", path, e.message)
        return failure(path, e.error_code, e.message, _elapsed_ms(start))

    metrics = parse_metrics(text, name=leaf_name(path))
    elapsed_ms = _elapsed_ms(start)

    if returncode != 0 and metrics.is_empty():
        tail = text.strip()[-DIAGNOSTIC_TAIL_CHARS:]
        logger.warning("Analyzer failed for %s (exit %d)", path, returncode)
        return failure(
            path,
            AnalysisErrorCode.ANALYZER_FAILED,
            f"ffmpeg exited with code {returncode}: {tail}",
            elapsed_ms,
        )

    if returncode != 0:
        logger.warning(
            "Analyzer exited with code %d for %s; keeping metrics reported before failure",
            returncode,
            path,
        )
    if has_range_anomaly(metrics):
        logger.warning(
            "LRA high (%s) below LRA low (%s) for %s",
            metrics.loudness_range_high_lufs,
            metrics.loudness_range_low_lufs,
            path,
        )

    logger.info("Analysis complete for %s in %dms", path, elapsed_ms)
    return LoudnessResult(path=path, ok=True, metrics=metrics, elapsed_ms=elapsed_ms)


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


# --- Standalone Execution ---


if __name__ == "__main__":
    import sys

    logging.basicConfig(level=logging.INFO)

    if len(sys.argv) != 2:
        print(f"Usage: {sys.argv[0]} <audio_path>")
        sys.exit(1)

    require_analyzer()
    outcome = analyze_file(str(Path(sys.argv[1]).resolve()))
    if outcome.ok:
        for field_name, value in outcome.metrics.metric_values().items():
            print(f"{field_name}: {value}")
        sys.exit(0)
    else:
        print(f"Error: {outcome.error_code} - {outcome.message}")
        sys.exit(1)
