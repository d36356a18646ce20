"""Loudness Batch Analyzer - Configuration constants.

Minimal configuration. No external config libraries.
Defaults can be overridden through LOUDSCAN_* environment variables.
"""

import os
from pathlib import Path

# Repository root (parent of loudscan/)
REPO_ROOT = Path(__file__).parent.parent.resolve()

# Versioned JSON schemas for emitted records
SPECS_DIR = REPO_ROOT / "specs"

LOUDNESS_RECORD_SCHEMA_ID = "loudness_record.v1"
ANALYSIS_FAILURE_SCHEMA_ID = "analysis_failure.v1"

DEFAULT_WINDOW_SEC = 1.0
DEFAULT_CONCURRENCY = 5
DEFAULT_FFMPEG_BIN = "ffmpeg"

# ffmpeg honours this variable when deciding whether to colorize its log output.
# It is forced for the whole batch so diagnostic text is parse-stable.
COLOR_ENV_VAR = "AV_LOG_FORCE_NOCOLOR"
COLOR_ENV_VALUE = "1"

# Number of trailing diagnostic characters kept in failure messages
DIAGNOSTIC_TAIL_CHARS = 500


def _get_window_sec() -> float:
    """Get the astats window length from environment or use default.

    Environment variable LOUDSCAN_WINDOW_SEC allows override.

    Returns:
        Window length in seconds (always positive).
    """
    env_val = os.environ.get("LOUDSCAN_WINDOW_SEC")
    if env_val:
        try:
            window = float(env_val)
            if window > 0:
                return window
        except ValueError:
            pass
    return DEFAULT_WINDOW_SEC


def _get_concurrency() -> int:
    """Get the parallel worker limit from environment or use default.

    Environment variable LOUDSCAN_CONCURRENCY allows override.

    Returns:
        Positive concurrency limit.
    """
    env_val = os.environ.get("LOUDSCAN_CONCURRENCY")
    if env_val:
        try:
            limit = int(env_val)
            if limit > 0:
                return limit
        except ValueError:
            pass
    return DEFAULT_CONCURRENCY


def _get_ffmpeg_bin() -> str:
    return os.environ.get("LOUDSCAN_FFMPEG_BIN") or DEFAULT_FFMPEG_BIN


WINDOW_SEC = _get_window_sec()
CONCURRENCY = _get_concurrency()
FFMPEG_BIN = _get_ffmpeg_bin()
