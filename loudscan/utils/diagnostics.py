"""Loudness Batch Analyzer - Metric parser for ffmpeg diagnostic text.

Decodes the human-readable report written by ffmpeg's astats and ebur128
filters into a LoudnessMetrics record. The report is treated as an ad-hoc
wire format: one rule per field, every rule anchored to end of line and
independently nullable, so format drift degrades to missing fields instead
of failing the batch.

Pure and stateless. No I/O.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import asdict, dataclass, fields
from decimal import ROUND_HALF_EVEN, Decimal, localcontext
from enum import StrEnum


class NoiseFloorSentinel(StrEnum):
    """Non-numeric noise floor values reported by astats."""

    NEG_INF = "-inf"


NEG_INF = NoiseFloorSentinel.NEG_INF

NoiseFloor = float | NoiseFloorSentinel


@dataclass(frozen=True)
class LoudnessMetrics:
    """Structured metrics for one analyzed file.

    Every metric is optional: None means the corresponding line was never
    seen in the diagnostic text.
    """

    name: str | None = None
    peak_level_db: float | None = None
    rms_level_db: float | None = None
    noise_floor_db: NoiseFloor | None = None
    true_peak_dbfs: float | None = None
    integrated_loudness_lufs: float | None = None
    loudness_range_lu: float | None = None
    loudness_range_low_lufs: float | None = None
    loudness_range_high_lufs: float | None = None

    def metric_values(self) -> dict[str, NoiseFloor | None]:
        """Return all metric fields (everything except name)."""
        values = asdict(self)
        values.pop("name")
        return values

    def is_empty(self) -> bool:
        """True when no metric at all was extracted."""
        return all(value is None for value in self.metric_values().values())


METRIC_FIELDS = tuple(f.name for f in fields(LoudnessMetrics) if f.name != "name")


# --- Numeric Handling ---

_ONE_DECIMAL = Decimal("0.1")


def round_one_decimal(text: str) -> float:
    """Round a printed decimal value to one place, half-to-even.

    Rounding is applied to the decimal text rather than the binary float so
    that "-3.15" and "-3.25" behave as printed (-3.2 and -3.2).
    """
    with localcontext() as ctx:
        # Room for every printed digit plus the rounding carry
        ctx.prec = max(ctx.prec, len(text) + 2)
        return float(Decimal(text).quantize(_ONE_DECIMAL, rounding=ROUND_HALF_EVEN))


def _noise_floor(text: str) -> NoiseFloor:
    if text == NEG_INF.value:
        return NEG_INF
    return round_one_decimal(text)


# --- Rules ---


@dataclass(frozen=True)
class MetricRule:
    """One line pattern and the conversion applied to its captured value."""

    field: str
    pattern: re.Pattern[str]
    convert: Callable[[str], NoiseFloor]


_UNSIGNED = r"\d+(?:\.\d+)?"
_SIGNED = rf"-?{_UNSIGNED}"

_RULES: tuple[MetricRule, ...] = (
    MetricRule(
        "peak_level_db",
        re.compile(rf"\bPeak level dB:\s*({_SIGNED})$"),
        round_one_decimal,
    ),
    MetricRule(
        "rms_level_db",
        re.compile(rf"\bRMS level dB:\s*({_SIGNED})$"),
        round_one_decimal,
    ),
    MetricRule(
        "noise_floor_db",
        re.compile(rf"\bNoise floor dB:\s*(-inf|{_SIGNED})$"),
        _noise_floor,
    ),
    MetricRule(
        "integrated_loudness_lufs",
        re.compile(rf"\bI:\s*({_SIGNED})\s+LUFS$"),
        float,
    ),
    MetricRule(
        "loudness_range_lu",
        re.compile(rf"\bLRA:\s*({_UNSIGNED})\s+LU$"),
        float,
    ),
    MetricRule(
        "loudness_range_low_lufs",
        re.compile(rf"\bLRA low:\s*({_SIGNED})\s+LUFS$"),
        float,
    ),
    MetricRule(
        "loudness_range_high_lufs",
        re.compile(rf"\bLRA high:\s*({_SIGNED})\s+LUFS$"),
        float,
    ),
    MetricRule(
        "true_peak_dbfs",
        re.compile(rf"\bPeak:\s*([-+]?{_UNSIGNED})\s+dBFS$"),
        float,
    ),
)


def metric_rules() -> tuple[MetricRule, ...]:
    """Return the per-field rule table."""
    return _RULES


# --- Parsing ---


def parse_metrics(text: str | Iterable[str], name: str | None = None) -> LoudnessMetrics:
    """Extract loudness metrics from ffmpeg diagnostic text.

    Lines are scanned independently; when a field is reported more than once
    the last occurrence wins. Fields with no matching line stay None. Never
    raises for text that passed a rule's pattern.

    Args:
        text: Full diagnostic text, or an iterable of its lines.
        name: Leaf name of the analyzed file, copied into the record.

    Returns:
        LoudnessMetrics with every matched field filled in.
    """
    lines = text.splitlines() if isinstance(text, str) else text
    values: dict[str, NoiseFloor] = {}

    for raw in lines:
        line = raw.rstrip()
        for rule in _RULES:
            match = rule.pattern.search(line)
            if match:
                values[rule.field] = rule.convert(match.group(1))
                break

    return LoudnessMetrics(name=name, **values)


def has_range_anomaly(metrics: LoudnessMetrics) -> bool:
    """True when both LRA bounds are present and high is below low.

    The parser reports what the tool emitted; this only flags the anomaly.
    """
    low = metrics.loudness_range_low_lufs
    high = metrics.loudness_range_high_lufs
    return low is not None and high is not None and high < low


__all__ = [
    "METRIC_FIELDS",
    "NEG_INF",
    "LoudnessMetrics",
    "MetricRule",
    "NoiseFloorSentinel",
    "has_range_anomaly",
    "metric_rules",
    "parse_metrics",
    "round_one_decimal",
]
