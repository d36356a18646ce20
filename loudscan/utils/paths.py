"""Loudness Batch Analyzer - Input path resolution.

Turns user-supplied paths and wildcard patterns into the ordered list of
absolute file paths the scheduler consumes. Does NOT open or validate the
audio content.
"""

from __future__ import annotations

import glob
import logging
from collections.abc import Iterable
from pathlib import Path

logger = logging.getLogger(__name__)

_WILDCARD_CHARS = frozenset("*?[")


class PathResolutionError(Exception):
    """A requested path or pattern matched no file."""

    def __init__(self, item: str, reason: str):
        self.item = item
        self.reason = reason
        super().__init__(f"Cannot resolve {item!r}: {reason}")


def is_pattern(item: str) -> bool:
    """Check whether an input item contains glob wildcards."""
    return any(c in _WILDCARD_CHARS for c in item)


def _resolve_one(item: str) -> list[str]:
    if is_pattern(item):
        matches = sorted(m for m in glob.glob(item) if Path(m).is_file())
        if not matches:
            raise PathResolutionError(item, "pattern matched no files")
        return [str(Path(m).resolve()) for m in matches]

    path = Path(item)
    if not path.exists():
        raise PathResolutionError(item, "no such file")
    if not path.is_file():
        raise PathResolutionError(item, "not a regular file")
    return [str(path.resolve())]


def resolve_targets(inputs: Iterable[str], skip_unresolved: bool = False) -> list[str]:
    """Resolve paths and wildcard patterns to absolute file paths.

    Input order is preserved; pattern matches are sorted within their item.
    Duplicates are kept, they are analyzed independently.

    Args:
        inputs: Paths or glob patterns.
        skip_unresolved: Log and skip items that match nothing instead of raising.

    Returns:
        Ordered list of absolute file paths.

    Raises:
        PathResolutionError: If an item matches nothing and skip_unresolved is False.
    """
    targets: list[str] = []
    for item in inputs:
        try:
            targets.extend(_resolve_one(item))
        except PathResolutionError as e:
            if not skip_unresolved:
                raise
            logger.warning("Skipping input: %s", e)
    return targets


def leaf_name(path: str | Path) -> str:
    """Get the file's leaf name (no directory part).

    Args:
        path: File path.

    Returns:
        The final path component.
    """
    return Path(path).name


__all__ = [
    "PathResolutionError",
    "is_pattern",
    "leaf_name",
    "resolve_targets",
]
