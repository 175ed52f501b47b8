"""Tests for the watchfiles-backed single file watcher."""

from __future__ import annotations

import threading
import time
from pathlib import Path

import pytest

from extannotations.config.models import WatcherConfig
from extannotations.watcher import (
    FileChangeEvent,
    FileChangeKind,
    SingleFileWatcher,
    start_file_watcher,
)

POLLING = WatcherConfig(force_polling=True, poll_delay_ms=50, debounce_ms=50)


class Recorder:
    def __init__(self) -> None:
        self.events: list[FileChangeEvent] = []
        self.received = threading.Event()

    def __call__(self, event: FileChangeEvent) -> None:
        self.events.append(event)
        self.received.set()


def _wait_for_event(recorder: Recorder, action, timeout: float = 10.0) -> None:
    """Repeat ``action`` until the watcher reports something.

    The polling backend only notices changes after its first scan, so a
    single early write can go unseen.
    """
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        action()
        if recorder.received.wait(0.3):
            return
    pytest.fail("no change notification received")


@pytest.fixture
def watched(tmp_path: Path) -> Path:
    path = tmp_path / "Lib.ExternalAnnotations.xml"
    path.write_text("<assembly />")
    return path


class TestSingleFileWatcher:
    def test_reports_modification(self, watched: Path) -> None:
        # Given
        recorder = Recorder()
        watcher = start_file_watcher(watched, recorder, POLLING)
        counter = iter(range(1_000_000))

        def rewrite() -> None:
            watched.write_text(f"<assembly n='{next(counter)}' />")

        try:
            # When
            _wait_for_event(recorder, rewrite)
        finally:
            watcher.stop()

        # Then
        assert recorder.events[0].path.name == watched.name
        assert recorder.events[0].kind in (FileChangeKind.CHANGED, FileChangeKind.CREATED)

    def test_ignores_sibling_files(self, watched: Path) -> None:
        recorder = Recorder()
        sibling = watched.with_name("Other.xml")
        watcher = start_file_watcher(watched, recorder, POLLING)
        counter = iter(range(1_000_000))

        def touch_both() -> None:
            n = next(counter)
            sibling.write_text(f"<assembly n='{n}' />")
            watched.write_text(f"<assembly n='{n}' />")

        try:
            _wait_for_event(recorder, touch_both)
        finally:
            watcher.stop()

        assert all(event.path.name == watched.name for event in recorder.events)

    def test_reports_deletion(self, watched: Path) -> None:
        recorder = Recorder()
        watcher = start_file_watcher(watched, recorder, POLLING)

        def recreate_and_delete() -> None:
            watched.write_text("<assembly />")
            time.sleep(0.2)
            watched.unlink()

        try:
            _wait_for_event(recorder, recreate_and_delete)
        finally:
            watcher.stop()

        assert recorder.events

    def test_stop_ends_thread(self, watched: Path) -> None:
        watcher = SingleFileWatcher(watched, Recorder(), POLLING)
        watcher.start()
        assert watcher.is_running

        watcher.stop()
        watcher.stop()

        assert not watcher.is_running

    def test_stop_from_callback_does_not_deadlock(self, watched: Path) -> None:
        stopped = threading.Event()
        holder: dict[str, SingleFileWatcher] = {}

        def stop_self(_event: FileChangeEvent) -> None:
            holder["watcher"].stop()
            stopped.set()

        holder["watcher"] = SingleFileWatcher(watched, stop_self, POLLING)
        holder["watcher"].start()
        counter = iter(range(1_000_000))

        deadline = time.monotonic() + 10
        while not stopped.is_set() and time.monotonic() < deadline:
            watched.write_text(f"<assembly n='{next(counter)}' />")
            stopped.wait(0.3)

        assert stopped.is_set()
        holder["watcher"].stop()
        assert not holder["watcher"].is_running

    def test_stop_before_start(self, watched: Path) -> None:
        watcher = SingleFileWatcher(watched, Recorder(), POLLING)
        watcher.stop()
        assert not watcher.is_running
