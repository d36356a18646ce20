"""Loudness Batch Analyzer - Analyze API service.

FastAPI service that runs a loudness batch and streams records as NDJSON.
"""

__all__: list[str] = []
