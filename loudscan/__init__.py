"""Loudness Batch Analyzer - Core application modules.

Provides:
- Metric parser for ffmpeg astats/ebur128 diagnostic text
- Bounded-concurrency batch scheduler
- Result emitter and versioned record contracts (/specs)
"""

__version__ = "0.1.0"
