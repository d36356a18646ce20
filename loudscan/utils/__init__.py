"""Loudness Batch Analyzer - Utility modules."""

from loudscan.utils.diagnostics import (
    NEG_INF,
    LoudnessMetrics,
    NoiseFloorSentinel,
    parse_metrics,
)
from loudscan.utils.env import EnvOverride
from loudscan.utils.paths import PathResolutionError, leaf_name, resolve_targets

__all__ = [
    # diagnostics
    "NEG_INF",
    "LoudnessMetrics",
    "NoiseFloorSentinel",
    "parse_metrics",
    # env
    "EnvOverride",
    # paths
    "PathResolutionError",
    "leaf_name",
    "resolve_targets",
]
