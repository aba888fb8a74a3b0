"""
ScheduleWatch File Watcher.

Cross-platform folder monitoring using watchdog.
Requires Python 3.11+.
"""

import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

from watchdog.events import (
    DirCreatedEvent,
    DirModifiedEvent,
    DirMovedEvent,
    FileCreatedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver

from watcher.debouncer import Debouncer
from utils.config import get_settings
from utils.files import is_transient
from utils.logger import LoggerMixin


class WorkbookEventHandler(FileSystemEventHandler, LoggerMixin):
    """
    Handles file system events for the watched folder.

    Directory events and deletions are ignored. Files whose names start
    with the transient marker never reach the debouncer.
    """

    def __init__(self, debouncer: Debouncer, transient_prefix: str = "~") -> None:
        """
        Initialize the event handler.

        Args:
            debouncer: Debounce gate that emits change signals
            transient_prefix: File name prefix of temporary artifacts
        """
        super().__init__()
        self._debouncer = debouncer
        self._transient_prefix = transient_prefix

    def _offer(self, raw_path: str | bytes, change_type: str) -> None:
        path = Path(os.fsdecode(raw_path))
        if is_transient(path, self._transient_prefix):
            self.log.debug("ignoring_transient_file", path=str(path))
            return
        self._debouncer.debounce(path, change_type)

    def on_created(self, event: FileCreatedEvent | DirCreatedEvent) -> None:
        """Handle file creation."""
        if event.is_directory:
            return
        self._offer(event.src_path, "created")

    def on_modified(self, event: FileModifiedEvent | DirModifiedEvent) -> None:
        """Handle file modification."""
        if event.is_directory:
            return
        self._offer(event.src_path, "modified")

    def on_moved(self, event: FileMovedEvent | DirMovedEvent) -> None:
        """Handle rename; the destination is what now holds the data."""
        if event.is_directory:
            return
        self._offer(event.dest_path, "moved")


class FileWatcher(LoggerMixin):
    """
    Watches one folder (non-recursively) and emits debounced change signals.

    The signal callback receives the path and change type of the event
    that opened the debounce window.
    """

    def __init__(
        self,
        root_path: Path,
        on_signal: Callable[[Path, str], Any] | None = None,
        debounce_window_ms: int | None = None,
        transient_prefix: str | None = None,
    ) -> None:
        """
        Initialize the file watcher.

        Args:
            root_path: Folder to watch
            on_signal: Callback fired once per debounced burst
            debounce_window_ms: Debounce window in milliseconds
            transient_prefix: File name prefix of temporary artifacts
        """
        settings = get_settings().monitor

        self._root_path = Path(root_path)
        self._transient_prefix = transient_prefix or settings.transient_prefix
        window_ms = (
            debounce_window_ms
            if debounce_window_ms is not None
            else settings.debounce_window_ms
        )

        self._debouncer = Debouncer(window_ms=window_ms, callback=on_signal)
        self._handler = WorkbookEventHandler(
            debouncer=self._debouncer,
            transient_prefix=self._transient_prefix,
        )

        self._observer: BaseObserver | None = None
        self._running = False

    def start(self) -> None:
        """Start watching the folder."""
        if self._running:
            return

        if not self._root_path.is_dir():
            raise FileNotFoundError(f"watch folder does not exist: {self._root_path}")

        observer = Observer()
        observer.schedule(self._handler, str(self._root_path), recursive=False)
        observer.start()
        self._observer = observer
        self._running = True

        self.log.info(
            "file_watcher_started",
            path=str(self._root_path),
            debounce_window_ms=self._debouncer.window_ms,
            transient_prefix=self._transient_prefix,
        )

    def stop(self) -> None:
        """Stop watching and release the OS watch handle."""
        observer, self._observer = self._observer, None
        if observer is None:
            self._running = False
            return

        observer.stop()
        if observer.is_alive():
            observer.join(timeout=5.0)

        self._running = False
        self.log.info("file_watcher_stopped", path=str(self._root_path))

    @property
    def is_running(self) -> bool:
        """Check if the watcher is running."""
        return self._running

    @property
    def root_path(self) -> Path:
        """Folder being watched."""
        return self._root_path

    def __enter__(self) -> "FileWatcher":
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit."""
        self.stop()
