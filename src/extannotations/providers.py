"""Build-once providers for the consolidated annotation map.

Both providers have single-flight semantics: the first caller builds, any
concurrent callers block until that build finishes, and everyone afterwards
gets the published value without locking. A failed build is remembered and
re-raised; it is not retried within the same provider.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Generic, Protocol, TypeVar

from extannotations.config.loader import load_config
from extannotations.loading.folder_loader import FolderExternalAnnotationsLoader
from extannotations.storage.annotation_map import AnnotationMap

T = TypeVar("T")


class AnnotationCacheProvider(Protocol):
    def get_value(self) -> AnnotationMap: ...


class Lazy(Generic[T]):
    """Thread-safe lazily computed value, built by exactly one caller."""

    def __init__(self, factory: Callable[[], T]) -> None:
        self._factory = factory
        self._lock = threading.Lock()
        self._done = False
        self._value: T | None = None
        self._error: BaseException | None = None

    @property
    def is_value_created(self) -> bool:
        return self._done

    @property
    def value(self) -> T:
        if not self._done:
            with self._lock:
                if not self._done:
                    try:
                        self._value = self._factory()
                    except Exception as e:
                        self._error = e
                    self._done = True
        if self._error is not None:
            raise self._error
        return self._value  # type: ignore[return-value]


def _create_from_installed_folders() -> AnnotationMap:
    return FolderExternalAnnotationsLoader(load_config()).create()


_global_lock = threading.Lock()
_global_cache: Lazy[AnnotationMap] = Lazy(_create_from_installed_folders)


def set_global_cache_factory(factory: Callable[[], AnnotationMap]) -> None:
    """Replace how the process-wide map is built. Discards any built value."""
    global _global_cache
    with _global_lock:
        _global_cache = Lazy(factory)


def reset_global_cache() -> None:
    """Restore the default factory (scan installed folders). Discards any built value."""
    set_global_cache_factory(_create_from_installed_folders)


class GlobalAnnotationCacheProvider:
    """Process-wide map, shared by every resolver in the process."""

    def get_value(self) -> AnnotationMap:
        return _global_cache.value


class LocalAnnotationCacheProvider:
    """Map owned by this provider instance, built from the given factory."""

    def __init__(self, factory: Callable[[], AnnotationMap]) -> None:
        self._cache: Lazy[AnnotationMap] = Lazy(factory)

    def get_value(self) -> AnnotationMap:
        return self._cache.value
