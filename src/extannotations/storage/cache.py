"""The persisted unit: a compacted map plus the freshness it was built from."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from extannotations.storage.annotation_map import AnnotationMap


@dataclass
class AnnotationsCache:
    """Compacted annotation map stamped with the newest source file mtime.

    ``last_write_time_ns`` is the highest ``st_mtime_ns`` among the annotation
    files the map was built from.
    """

    last_write_time_ns: int
    annotations: AnnotationMap = field(default_factory=AnnotationMap)

    @property
    def last_write_time_utc(self) -> datetime:
        return datetime.fromtimestamp(self.last_write_time_ns / 1_000_000_000, tz=timezone.utc)

    def is_stale(self, freshest_ns: int) -> bool:
        """True when some source file is newer than this cache."""
        return self.last_write_time_ns < freshest_ns
