"""Per-file change notifications for cached side-by-side annotation files.

Each handle watches one directory (non-recursive) filtered to one file name
and runs its own daemon thread. Callbacks run on that thread.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Protocol

import structlog
from watchfiles import Change, watch

from extannotations.config.models import WatcherConfig

log = structlog.get_logger(__name__)


class FileChangeKind(Enum):
    """Kind of file change detected."""

    CHANGED = "changed"
    CREATED = "created"
    DELETED = "deleted"
    RENAMED = "renamed"


@dataclass(frozen=True)
class FileChangeEvent:
    """A file change notification.

    For RENAMED, ``path`` is the new location and ``old_path`` the location
    the watch was registered for.
    """

    kind: FileChangeKind
    path: Path
    old_path: Path | None = None


ChangeCallback = Callable[[FileChangeEvent], None]


class FileWatchHandle(Protocol):
    def stop(self) -> None:
        """Stop delivering notifications. Safe to call more than once, from any thread."""
        ...


WatcherFactory = Callable[[Path, ChangeCallback], FileWatchHandle]

_CHANGE_KINDS: dict[Change, FileChangeKind] = {
    Change.added: FileChangeKind.CREATED,
    Change.modified: FileChangeKind.CHANGED,
    Change.deleted: FileChangeKind.DELETED,
}

_STOP_JOIN_TIMEOUT_SEC = 2.0


class SingleFileWatcher:
    """Watches one file via watchfiles on a background thread.

    Usage::

        watcher = SingleFileWatcher(path, on_change)
        watcher.start()
        # ... later ...
        watcher.stop()
    """

    def __init__(
        self,
        path: Path,
        on_change: ChangeCallback,
        config: WatcherConfig | None = None,
    ) -> None:
        self._path = path
        self._on_change = on_change
        self._config = config or WatcherConfig()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def path(self) -> Path:
        return self._path

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self._run,
            name=f"annotation-watch:{self._path.name}",
            daemon=True,
        )
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()
        thread = self._thread
        # Callbacks may stop their own watcher; never join the current thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=_STOP_JOIN_TIMEOUT_SEC)

    def _accepts(self, _change: Change, path: str) -> bool:
        return Path(path).name == self._path.name

    def _run(self) -> None:
        directory = self._path.parent
        try:
            for changes in watch(
                directory,
                watch_filter=self._accepts,
                stop_event=self._stop_event,
                recursive=False,
                debounce=self._config.debounce_ms,
                force_polling=self._config.force_polling,
                poll_delay_ms=self._config.poll_delay_ms,
            ):
                for change, raw_path in changes:
                    self._on_change(FileChangeEvent(_CHANGE_KINDS[change], Path(raw_path)))
                if self._stop_event.is_set():
                    break
        except OSError as e:
            # Directory removed or unwatchable: report the file as gone so
            # whatever depends on it gets invalidated.
            log.warning("annotation_watch_failed", path=str(self._path), error=str(e))
            if not self._stop_event.is_set():
                self._on_change(FileChangeEvent(FileChangeKind.DELETED, self._path))


def start_file_watcher(
    path: Path,
    on_change: ChangeCallback,
    config: WatcherConfig | None = None,
) -> SingleFileWatcher:
    """Default WatcherFactory: create and start a SingleFileWatcher."""
    watcher = SingleFileWatcher(path, on_change, config)
    watcher.start()
    return watcher
