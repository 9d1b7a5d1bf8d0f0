"""Debounced watchdog observer that reports working-tree changes."""

from __future__ import annotations

import threading
import time
from pathlib import Path
from typing import Callable

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from branchdiff.fs.filtering import RepoPathFilter
from branchdiff.runtime_logging import get_runtime_logger

# Reads (opened, closed_no_write) must not count: git itself opens files while diffing.
CHANGE_EVENT_TYPES = frozenset({"created", "modified", "deleted", "moved", "closed"})


class _DebouncedHandler(FileSystemEventHandler):
    def __init__(
        self,
        callback: Callable[[], None],
        *,
        path_filter: RepoPathFilter,
        debounce_s: float,
    ) -> None:
        super().__init__()
        self.callback = callback
        self.path_filter = path_filter
        self.debounce_s = debounce_s
        self._lock = threading.Lock()
        self._last_event_at = 0.0
        self._timer: threading.Timer | None = None
        self._logger = get_runtime_logger().bind(component="watch")

    def relevant(self, event: FileSystemEvent) -> bool:
        paths = [getattr(event, "src_path", ""), getattr(event, "dest_path", "")]
        return any(path and not self.path_filter.ignores(str(path)) for path in paths)

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type not in CHANGE_EVENT_TYPES:
            return
        if not self.relevant(event):
            return
        with self._lock:
            self._last_event_at = time.monotonic()
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self.debounce_s, self._fire_if_stable)
            self._timer.daemon = True
            self._timer.start()
        self._logger.debug(
            "watch.event",
            event_type=event.event_type,
            src_path=str(event.src_path),
        )

    def _fire_if_stable(self) -> None:
        with self._lock:
            if time.monotonic() - self._last_event_at < self.debounce_s:
                return
            self._timer = None
        try:
            self.callback()
        except Exception as exc:
            self._logger.error("watch.callback.failed", error=str(exc))

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None


class RepoWatcher:
    """Call ``on_change`` (from a worker thread) once edits under ``project_root`` settle."""

    def __init__(
        self,
        project_root: Path,
        on_change: Callable[[], None],
        *,
        debounce_s: float = 0.5,
    ) -> None:
        self.project_root = project_root.resolve()
        self._handler = _DebouncedHandler(
            on_change,
            path_filter=RepoPathFilter(self.project_root),
            debounce_s=debounce_s,
        )
        self._observer = Observer()
        self._logger = get_runtime_logger().bind(component="watch")

    def start(self) -> None:
        self._observer.schedule(self._handler, str(self.project_root), recursive=True)
        self._observer.start()
        self._logger.info("watch.started", path=str(self.project_root))

    def close(self) -> None:
        self._handler.cancel()
        if not self._observer.is_alive():
            return
        self._observer.stop()
        self._observer.join(timeout=2)
        self._logger.info("watch.closed", path=str(self.project_root))


class NullWatcher:
    """No-op watcher for tests and restricted environments."""

    def start(self) -> None:
        return

    def close(self) -> None:
        return
