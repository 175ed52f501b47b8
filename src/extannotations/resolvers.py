"""Answers "is nullability of this symbol already declared externally?".

Three interchangeable implementations, picked by the host:

- SimpleExternalAnnotationsResolver: wraps a ready-made map
- GlobalExternalAnnotationsResolver: installed annotation folders only
- CachingExternalAnnotationsResolver: installed folders plus side-by-side
  files next to referenced assemblies, each cached until the file changes
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import Protocol

import structlog

from extannotations.config.loader import load_config
from extannotations.config.models import WatcherConfig
from extannotations.core.errors import InternalError
from extannotations.discovery import path_identity
from extannotations.loading.assembly_loader import AssemblyExternalAnnotationsLoader
from extannotations.providers import AnnotationCacheProvider, GlobalAnnotationCacheProvider
from extannotations.storage.annotation_map import AnnotationMap
from extannotations.symbols import Compilation, Symbol
from extannotations.watcher import (
    FileChangeEvent,
    FileChangeKind,
    FileWatchHandle,
    WatcherFactory,
    start_file_watcher,
)

log = structlog.get_logger(__name__)


class ExternalAnnotationsResolver(Protocol):
    def ensure_scanned(self) -> None:
        """Build the process-wide annotation set now instead of on first lookup."""
        ...

    def has_annotation_for_symbol(
        self, symbol: Symbol, applies_to_item: bool, compilation: Compilation
    ) -> bool: ...


class SimpleExternalAnnotationsResolver:
    """Resolver over an existing AnnotationMap."""

    def __init__(self, source: AnnotationMap) -> None:
        self._source = source

    def ensure_scanned(self) -> None:
        pass

    def has_annotation_for_symbol(
        self,
        symbol: Symbol,
        applies_to_item: bool,
        compilation: Compilation,  # noqa: ARG002
    ) -> bool:
        return self._source.contains_symbol(symbol, applies_to_item)


class GlobalExternalAnnotationsResolver:
    """Resolver over the installed annotation folders only."""

    def __init__(self, provider: AnnotationCacheProvider | None = None) -> None:
        self._provider = provider or GlobalAnnotationCacheProvider()

    def ensure_scanned(self) -> None:
        self._provider.get_value()

    def has_annotation_for_symbol(
        self,
        symbol: Symbol,
        applies_to_item: bool,
        compilation: Compilation,  # noqa: ARG002
    ) -> bool:
        return self._provider.get_value().contains_symbol(symbol, applies_to_item)


@dataclass(frozen=True)
class _AssemblyCacheEntry:
    map: AnnotationMap
    watcher: FileWatchHandle


class CachingExternalAnnotationsResolver:
    """Installed annotations plus side-by-side files, cached per file path.

    A side-by-side file is parsed on first use and kept until its watcher
    reports a change, creation, deletion or rename. There is no refresh call:
    the next lookup after such a notification re-resolves and re-parses.
    """

    def __init__(
        self,
        provider: AnnotationCacheProvider | None = None,
        *,
        loader: AssemblyExternalAnnotationsLoader | None = None,
        watcher_factory: WatcherFactory | None = None,
        watcher_config: WatcherConfig | None = None,
    ) -> None:
        self._provider = provider or GlobalAnnotationCacheProvider()
        self._loader = loader or AssemblyExternalAnnotationsLoader()
        if watcher_factory is None:
            watcher_factory = partial(
                start_file_watcher, config=watcher_config or load_config().watcher
            )
        self._watcher_factory: WatcherFactory = watcher_factory
        # Keyed by path_identity(); dict operations are atomic, no lock needed
        self._assembly_cache: dict[str, _AssemblyCacheEntry] = {}

    def ensure_scanned(self) -> None:
        self._provider.get_value()

    def has_annotation_for_symbol(
        self, symbol: Symbol, applies_to_item: bool, compilation: Compilation
    ) -> bool:
        return self._has_annotation_in_shared_cache(
            symbol, applies_to_item
        ) or self._has_annotation_in_side_by_side_file(symbol, applies_to_item, compilation)

    def is_file_in_side_by_side_cache(self, path: Path | str) -> bool:
        return path_identity(path) in self._assembly_cache

    def dispose(self) -> None:
        """Stop all watchers and drop every side-by-side entry."""
        while self._assembly_cache:
            _key, entry = self._assembly_cache.popitem()
            entry.watcher.stop()

    def __enter__(self) -> CachingExternalAnnotationsResolver:
        return self

    def __exit__(self, *args: object) -> None:
        self.dispose()

    def _has_annotation_in_shared_cache(self, symbol: Symbol, applies_to_item: bool) -> bool:
        return self._provider.get_value().contains_symbol(symbol, applies_to_item)

    def _has_annotation_in_side_by_side_file(
        self, symbol: Symbol, applies_to_item: bool, compilation: Compilation
    ) -> bool:
        path = self._loader.get_path_for_external_symbol_or_none(symbol, compilation)
        if path is None:
            return False
        entry = self._get_or_add_entry(path)
        return entry.map.contains_symbol(symbol, applies_to_item)

    def _get_or_add_entry(self, path: Path) -> _AssemblyCacheEntry:
        key = path_identity(path)
        entry = self._assembly_cache.get(key)
        if entry is not None:
            return entry

        created = self._create_entry(path)
        # Two threads may both get here; the first insert wins
        entry = self._assembly_cache.setdefault(key, created)
        if entry is not created:
            created.watcher.stop()
        return entry

    def _create_entry(self, path: Path) -> _AssemblyCacheEntry:
        annotations = self._loader.parse_file(path)
        watcher = self._watcher_factory(path, self._on_file_changed)
        log.debug("side_by_side_entry_loaded", path=str(path), members=len(annotations))
        return _AssemblyCacheEntry(map=annotations, watcher=watcher)

    def _on_file_changed(self, event: FileChangeEvent) -> None:
        if event.kind == FileChangeKind.RENAMED:
            event = _old_values_from(event)

        entry = self._assembly_cache.pop(path_identity(event.path), None)
        if entry is not None:
            entry.watcher.stop()
            log.debug("side_by_side_entry_evicted", path=str(event.path), change=event.kind.value)


def _old_values_from(event: FileChangeEvent) -> FileChangeEvent:
    """Rebuild a rename notification as one for the path that was being watched."""
    old_path = event.old_path
    if old_path is None or old_path.parent == old_path:
        raise InternalError.unexpected(
            "failed to extract directory from renamed path", path=str(old_path)
        )
    return FileChangeEvent(kind=event.kind, path=old_path.parent / old_path.name)
