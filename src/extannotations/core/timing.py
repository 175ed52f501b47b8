"""Duration logging for the expensive phases of cache construction."""

from __future__ import annotations

import time
from types import TracebackType

import structlog

log = structlog.get_logger(__name__)


class timed:  # noqa: N801
    """Log how long the wrapped block took, at DEBUG level.

    Usage::

        with timed("annotation_cache:read"):
            cache = read_cache(path)

    Exceptions pass through untouched. Frozen error types cannot take the
    traceback reassignment a generator-based context manager performs.
    """

    def __init__(self, label: str) -> None:
        self._label = label
        self._start = 0.0

    def __enter__(self) -> None:
        self._start = time.perf_counter()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        elapsed_ms = (time.perf_counter() - self._start) * 1000
        log.debug("phase_timed", phase=self._label, duration_ms=round(elapsed_ms, 2))
