"""Loudness Batch Analyzer - Analyze API FastAPI application.

Streams one NDJSON record per requested file as soon as each analysis
completes. Per-file failures are part of the stream; only a missing
analyzer fails the whole request.

Run with:
    uvicorn services.analyze_api.main:app --reload  # dev server only
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Iterator

from fastapi import FastAPI
from fastapi.responses import JSONResponse, StreamingResponse

from loudscan import __version__
from loudscan.config import FFMPEG_BIN
from loudscan.emitter import emit_records, to_ndjson_line
from loudscan.orchestrator import BatchSettings, run_batch
from loudscan.schemas import AnalyzeErrorResponse, AnalyzeRequest
from services.worker_loudness.run import AnalysisErrorCode, AnalyzerNotFoundError, LoudnessResult

logger = logging.getLogger(__name__)

NDJSON_MEDIA_TYPE = "application/x-ndjson"


app = FastAPI(
    title="Loudness Batch Analyzer - Analyze API",
    description="Batch loudness analysis via ffmpeg astats/ebur128, streamed as NDJSON.",
    version=__version__,
)


# --- Error Handling ---


def error_code_to_status(error_code: str) -> int:
    """Map batch-level error codes to HTTP status codes.

    - ANALYZER_NOT_FOUND -> 503
    - anything else -> 500
    """
    if error_code == AnalysisErrorCode.ANALYZER_NOT_FOUND:
        return 503
    return 500


def make_error_response(error_code: str, error_message: str) -> JSONResponse:
    """Create a JSON error response."""
    return JSONResponse(
        status_code=error_code_to_status(error_code),
        content=AnalyzeErrorResponse(
            error_code=error_code,
            error_message=error_message,
        ).model_dump(),
    )


def _stream_ndjson(results: Iterator[LoudnessResult]) -> Iterator[str]:
    for record in emit_records(results):
        yield to_ndjson_line(record)


# --- Endpoints ---


@app.post(
    "/v1/analyze",
    responses={
        200: {"content": {NDJSON_MEDIA_TYPE: {}}, "description": "One record per line"},
        503: {"model": AnalyzeErrorResponse, "description": "Analyzer not available"},
    },
    summary="Analyze a batch of audio files",
    description="Run loudness analysis on local files and stream one NDJSON record per file.",
)
def analyze(request: AnalyzeRequest):
    """Analyze a batch of local audio files.

    Records arrive in completion order in parallel mode and in request
    order in serial mode.
    """
    settings = BatchSettings(
        window_sec=request.window_sec,
        mode=request.mode,
        concurrency=request.concurrency,
        ffmpeg_bin=FFMPEG_BIN,
    )
    try:
        results = run_batch(request.paths, settings)
    except AnalyzerNotFoundError as e:
        return make_error_response(e.error_code, e.message)

    logger.info("Streaming analysis of %d files", len(request.paths))
    return StreamingResponse(_stream_ndjson(results), media_type=NDJSON_MEDIA_TYPE)


@app.get("/health", summary="Health check")
def health_check():
    """Health check that also reports whether ffmpeg is on PATH."""
    return {"status": "ok", "analyzer_available": shutil.which(FFMPEG_BIN) is not None}
