"""Loudness Batch Analyzer - Pydantic models for emitted records and the API.

Record models correspond to the JSON schemas in /specs and serialize with
the public field names (Name, Peak, RMS, ...) via by_alias=True.
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from loudscan.config import CONCURRENCY, WINDOW_SEC


# --- Output Records ---


class LoudnessRecord(BaseModel):
    """Per-file metrics record.

    Corresponds to specs/loudness_record.schema.json. Unset metrics are null,
    never zero. NoiseFloor is the only field that may hold the string "-inf".
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(..., alias="Name", min_length=1, description="File leaf name")
    peak: float | None = Field(default=None, alias="Peak", description="Peak level dB (1 decimal)")
    rms: float | None = Field(default=None, alias="RMS", description="RMS level dB (1 decimal)")
    noise_floor: Literal["-inf"] | float | None = Field(
        default=None,
        alias="NoiseFloor",
        description="Noise floor dB (1 decimal) or the literal '-inf'",
    )
    true_peak: float | None = Field(default=None, alias="TruePeak", description="True peak dBFS")
    integrated_loudness: float | None = Field(
        default=None,
        alias="IntegratedLoudness",
        description="Integrated loudness LUFS",
    )
    loudness_range: float | None = Field(
        default=None,
        alias="LoudnessRange",
        ge=0,
        description="Loudness range LU",
    )
    lra_low: float | None = Field(default=None, alias="LRALow", description="LRA low bound LUFS")
    lra_high: float | None = Field(default=None, alias="LRAHigh", description="LRA high bound LUFS")


class AnalysisFailureRecord(BaseModel):
    """Per-file failure record.

    Corresponds to specs/analysis_failure.schema.json.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(..., alias="Name", min_length=1, description="File leaf name")
    path: str = Field(..., alias="Path", min_length=1, description="Absolute file path")
    error: str = Field(..., alias="Error", description="Error code")
    message: str = Field(..., alias="Message", description="Human-readable error description")


# --- API Models ---


class AnalyzeRequest(BaseModel):
    """Request payload for a batch analysis."""

    model_config = ConfigDict(extra="forbid")

    paths: list[str] = Field(
        ...,
        min_length=1,
        description="Absolute paths of the audio files to analyze (duplicates allowed)",
    )
    window_sec: float = Field(
        default=WINDOW_SEC,
        gt=0,
        description="astats window length in seconds",
    )
    concurrency: int = Field(
        default=CONCURRENCY,
        ge=1,
        description="Maximum concurrent analyses (ignored in serial mode)",
    )
    mode: Literal["serial", "parallel"] = Field(
        default="parallel",
        description="Scheduling mode",
    )

    @field_validator("paths")
    @classmethod
    def validate_paths(cls, v: list[str]) -> list[str]:
        """Each path must be absolute and name a file, not a bare root."""
        for item in v:
            path = Path(item)
            if not item or not path.is_absolute():
                raise ValueError(f"Path must be absolute, got {item!r}")
            if not path.name:
                raise ValueError(f"Path must name a file, got {item!r}")
        return v


class AnalyzeErrorResponse(BaseModel):
    """Response for batch-level failures."""

    model_config = ConfigDict(extra="forbid")

    status: str = Field(default="error", description="Operation status")
    error_code: str = Field(..., description="Error code")
    error_message: str = Field(..., description="Human-readable error description")


__all__ = [
    "LoudnessRecord",
    "AnalysisFailureRecord",
    "AnalyzeRequest",
    "AnalyzeErrorResponse",
]
