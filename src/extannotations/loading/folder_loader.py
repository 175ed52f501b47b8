"""Builds the process-wide annotation map from installed annotation folders.

Parsing every installed annotation file takes seconds, so the compacted result
is persisted and reused across processes for as long as no source file is
newer than the persisted copy.

Freshness algorithm:
1. Scan all annotation folders; ``freshest`` = highest file mtime.
2. Read the persisted cache; unreadable, corrupt or empty counts as absent.
3. Absent, or older than ``freshest``: re-parse all files, compact, persist.
4. Otherwise reuse the persisted map as-is.

Any failure is fatal (MissingExternalAnnotationsError): an analyzer running
without the baseline annotations would silently report wrong results.
"""

from __future__ import annotations

import threading
from pathlib import Path

import structlog

from extannotations.config.models import AnnotationsConfig
from extannotations.core.errors import (
    CacheCorruptError,
    CacheSchemaMismatchError,
    MissingExternalAnnotationsError,
)
from extannotations.core.timing import timed
from extannotations.discovery import FolderOnDiskScanner, enumerate_annotation_files
from extannotations.parsing import AnnotationDocumentParser
from extannotations.storage.annotation_map import AnnotationMap
from extannotations.storage.cache import AnnotationsCache
from extannotations.storage.serialization import read_cache_file, write_cache_file

log = structlog.get_logger(__name__)

# Serializes read/rebuild/save of the cache file between loaders in this
# process (hosts run several analyzers in parallel).
_CACHE_FILE_LOCK = threading.Lock()


class FolderExternalAnnotationsLoader:
    """Scans, parses and persists the installed external annotations."""

    def __init__(
        self,
        config: AnnotationsConfig | None = None,
        *,
        scanner: FolderOnDiskScanner | None = None,
        parser: AnnotationDocumentParser | None = None,
        cache_path: Path | None = None,
    ) -> None:
        config = config or AnnotationsConfig()
        self._scanner = scanner or FolderOnDiskScanner(config.locations, config.scanner)
        self._parser = parser or AnnotationDocumentParser()
        self._cache_path = cache_path or Path(config.locations.cache_path)

    @property
    def cache_path(self) -> Path:
        return self._cache_path

    def create(self) -> AnnotationMap:
        """Return the consolidated map, rebuilding the persisted cache when stale.

        Raises:
            MissingExternalAnnotationsError: If no annotation files exist, the
                result is empty, or any step fails (inner error chained).
        """
        try:
            return self._get_cached()
        except MissingExternalAnnotationsError:
            raise
        except Exception as e:
            raise MissingExternalAnnotationsError.load_failed(
                self._scanner.get_folders_to_probe(), f"{type(e).__name__}: {e}"
            ) from e

    def _get_cached(self) -> AnnotationMap:
        with _CACHE_FILE_LOCK:
            with timed("annotation_cache:scan"):
                files = enumerate_annotation_files(self._scanner.get_folders_to_scan())
            if not files:
                raise MissingExternalAnnotationsError.no_source_data(
                    self._scanner.get_folders_to_probe()
                )
            freshest = max(path.stat().st_mtime_ns for path in files)

            cached = self._try_read_cache()
            if cached is None or cached.is_stale(freshest):
                cached = self._rebuild(files, freshest)
                self._try_save(cached)
            else:
                log.info(
                    "annotation_cache_reused",
                    path=str(self._cache_path),
                    members=len(cached.annotations),
                )
            return cached.annotations

    def _try_read_cache(self) -> AnnotationsCache | None:
        if not self._cache_path.is_file():
            return None
        try:
            with timed("annotation_cache:read"):
                cached = read_cache_file(self._cache_path)
        except (OSError, CacheCorruptError, CacheSchemaMismatchError) as e:
            log.warning("annotation_cache_load_failed", path=str(self._cache_path), error=str(e))
            return None
        if not cached.annotations:
            return None
        return cached

    def _rebuild(self, files: list[Path], freshest: int) -> AnnotationsCache:
        with timed("annotation_cache:create"):
            annotations = AnnotationMap()
            for path in files:
                self._parser.parse_file(path, annotations)
            removed = annotations.compact()

        if not annotations:
            raise MissingExternalAnnotationsError.empty_result(self._scanner.get_folders_to_probe())

        log.info(
            "annotation_cache_rebuilt",
            files=len(files),
            members=len(annotations),
            compacted=removed,
        )
        return AnnotationsCache(last_write_time_ns=freshest, annotations=annotations)

    def _try_save(self, cache: AnnotationsCache) -> None:
        try:
            with timed("annotation_cache:write"):
                write_cache_file(self._cache_path, cache)
        except OSError as e:
            # Another host process may hold the file; the next run retries.
            log.warning("annotation_cache_save_failed", path=str(self._cache_path), error=str(e))
