"""Loudness Batch Analyzer - Result emitter.

Wraps each per-file outcome into its public record as soon as it arrives,
so callers can consume results before the batch completes.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from loudscan.schemas import AnalysisFailureRecord, LoudnessRecord
from loudscan.utils.diagnostics import NoiseFloorSentinel
from services.worker_loudness.run import LoudnessResult

Record = LoudnessRecord | AnalysisFailureRecord


def _record_name(result: LoudnessResult) -> str:
    """Leaf name, or the full path when the path has no leaf (e.g. "/")."""
    return result.name or result.path or "<empty path>"


def to_record(result: LoudnessResult) -> Record:
    """Convert one LoudnessResult to its output record.

    Args:
        result: Outcome from the scheduler.

    Returns:
        LoudnessRecord for a success, AnalysisFailureRecord otherwise.
    """
    if not result.ok or result.metrics is None:
        return AnalysisFailureRecord.model_validate(
            {
                "Name": _record_name(result),
                "Path": result.path or "<empty path>",
                "Error": str(result.error_code),
                "Message": result.message or "",
            }
        )

    metrics = result.metrics
    noise_floor = metrics.noise_floor_db
    if isinstance(noise_floor, NoiseFloorSentinel):
        noise_floor = noise_floor.value

    return LoudnessRecord.model_validate(
        {
            "Name": metrics.name or _record_name(result),
            "Peak": metrics.peak_level_db,
            "RMS": metrics.rms_level_db,
            "NoiseFloor": noise_floor,
            "TruePeak": metrics.true_peak_dbfs,
            "IntegratedLoudness": metrics.integrated_loudness_lufs,
            "LoudnessRange": metrics.loudness_range_lu,
            "LRALow": metrics.loudness_range_low_lufs,
            "LRAHigh": metrics.loudness_range_high_lufs,
        }
    )


def emit_records(results: Iterable[LoudnessResult]) -> Iterator[Record]:
    """Lazily convert a stream of outcomes to records."""
    for result in results:
        yield to_record(result)


def to_ndjson_line(record: Record) -> str:
    """Serialize a record as one NDJSON line (with trailing newline)."""
    return record.model_dump_json(by_alias=True) + "\n"


__all__ = ["Record", "emit_records", "to_ndjson_line", "to_record"]
