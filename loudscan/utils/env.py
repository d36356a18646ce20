"""Loudness Batch Analyzer - Scoped environment variable override.

The override is process-wide: it must wrap the whole batch, never a single
task, otherwise one task could restore the variable while siblings are still
spawning child processes. Overlapping batches (e.g. concurrent API requests)
share one override: the first to enter forces the value, the last to leave
restores it.
"""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Iterator
from contextlib import contextmanager

logger = logging.getLogger(__name__)


class EnvOverride:
    """Reference-counted override of one environment variable."""

    def __init__(self, name: str, value: str):
        self.name = name
        self.value = value
        self._lock = threading.Lock()
        self._holders = 0
        self._previous: str | None = None

    @property
    def holders(self) -> int:
        return self._holders

    def _acquire(self) -> None:
        with self._lock:
            if self._holders == 0:
                self._previous = os.environ.get(self.name)
                os.environ[self.name] = self.value
                logger.debug("Set %s=%s (previous=%r)", self.name, self.value, self._previous)
            self._holders += 1

    def _release(self) -> None:
        with self._lock:
            self._holders -= 1
            if self._holders > 0:
                return
            if self._previous is None:
                os.environ.pop(self.name, None)
            else:
                os.environ[self.name] = self._previous
            logger.debug("Restored %s to %r", self.name, self._previous)
            self._previous = None

    @contextmanager
    def scope(self) -> Iterator[None]:
        """Force the variable for the duration of the block.

        On exit of the last holder the prior value is restored, or the
        variable is removed if it was absent before. Restoration also
        happens when the block raises.
        """
        self._acquire()
        try:
            yield
        finally:
            self._release()


__all__ = ["EnvOverride"]
