"""
ScheduleWatch Folder Monitor.

Ties the file watcher to the tabular ingester: change signals go through
a single-slot queue to one worker thread, which scans the folder and
hands each outcome to the host.
Requires Python 3.11+.
"""

import queue
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any

from ingest.ingester import TabularIngester
from ingest.models import Batch, FailureReason, IngestFailure, ScanResult
from monitor.sinks import LogSink
from utils.config import MonitorSettings, get_settings
from utils.logger import LoggerMixin
from watcher.file_watcher import FileWatcher

# How often the idle worker re-checks the stop event (seconds)
_POLL_INTERVAL = 0.2
_JOIN_TIMEOUT = 10.0


class FolderMonitor(LoggerMixin):
    """
    Watches a folder and delivers a Batch for every logical change.

    Only one scan runs at a time. While a scan is running, at most one
    further scan is queued; additional signals are dropped because the
    queued scan reads the file's latest state anyway.
    """

    def __init__(
        self,
        settings: MonitorSettings | None = None,
        on_batch: Callable[[Batch], Any] | None = None,
        on_failure: Callable[[IngestFailure], Any] | None = None,
    ) -> None:
        """
        Initialize the monitor.

        Args:
            settings: Monitor settings (defaults to application settings)
            on_batch: Called with each successfully parsed batch
            on_failure: Called with each terminal scan failure
        """
        self._settings = settings or get_settings().monitor
        sink = LogSink()
        self._on_batch = on_batch or sink.on_batch
        self._on_failure = on_failure or sink.on_failure

        self._stop_event = threading.Event()
        self._signals: queue.Queue[str] = queue.Queue(maxsize=1)
        self._ingester = TabularIngester(self._settings, stop_event=self._stop_event)

        self._watcher: FileWatcher | None = None
        self._worker: threading.Thread | None = None
        self._state_lock = threading.Lock()
        self._running = False

    @property
    def folder(self) -> Path:
        """Folder being monitored."""
        if self._settings.folder_path is None:
            raise ValueError("folder_path is not configured (set MONITOR_FOLDER_PATH)")
        return self._settings.folder_path

    @property
    def is_running(self) -> bool:
        """Check if the monitor is running."""
        return self._running

    @property
    def pending_scans(self) -> int:
        """Number of queued scan requests (0 or 1)."""
        return self._signals.qsize()

    def start(self) -> None:
        """
        Start the worker and the file watcher. Calling again is a no-op.

        Raises:
            ValueError: No folder is configured
            FileNotFoundError: The folder does not exist
            RuntimeError: The worker of an earlier run is still inside a scan
        """
        with self._state_lock:
            if self._running:
                return

            folder = self.folder
            previous = self._worker
            if previous is not None:
                previous.join(timeout=_JOIN_TIMEOUT)
                if previous.is_alive():
                    raise RuntimeError("previous worker is still finishing a scan")
            self._stop_event.clear()

            watcher = FileWatcher(
                folder,
                on_signal=self._on_signal,
                debounce_window_ms=self._settings.debounce_window_ms,
                transient_prefix=self._settings.transient_prefix,
            )
            worker = threading.Thread(
                target=self._run,
                name="folder-monitor-worker",
                daemon=True,
            )
            worker.start()
            try:
                watcher.start()
            except Exception:
                self._stop_event.set()
                worker.join(timeout=_JOIN_TIMEOUT)
                raise

            self._watcher = watcher
            self._worker = worker
            self._running = True

        self.log.info(
            "folder_monitor_started",
            folder=str(folder),
            sheet=self._settings.sheet_name,
            max_attempts=self._settings.max_attempts,
            retry_delay_ms=self._settings.retry_delay_ms,
        )

        if self._settings.scan_on_start:
            self.request_scan("startup")

    def stop(self) -> None:
        """Stop watching and wait for the worker. Safe to call at any time."""
        with self._state_lock:
            self._stop_event.set()

            watcher, self._watcher = self._watcher, None
            if watcher is not None:
                watcher.stop()

            worker, self._worker = self._worker, None
            if worker is not None and worker is not threading.current_thread():
                worker.join(timeout=_JOIN_TIMEOUT)
                if worker.is_alive():
                    # Still inside a scan; start() waits for it before restarting
                    self._worker = worker
                    self.log.warning("worker_still_running", timeout_seconds=_JOIN_TIMEOUT)

            self._drain()
            was_running, self._running = self._running, False

        if was_running:
            self.log.info("folder_monitor_stopped", folder=str(self._settings.folder_path))

    def request_scan(self, trigger: str = "manual") -> bool:
        """
        Queue a scan of the folder.

        Args:
            trigger: What caused the request, for logging

        Returns:
            True if queued, False if a scan was already pending
        """
        try:
            self._signals.put_nowait(trigger)
        except queue.Full:
            self.log.debug("scan_already_pending", trigger=trigger)
            return False
        return True

    def scan_once(self) -> ScanResult:
        """Run one scan synchronously and deliver its outcome."""
        result = self._ingester.scan(self.folder)
        self._deliver(result)
        return result

    def _on_signal(self, path: Path, change_type: str) -> None:
        self.request_scan(f"{change_type}:{path.name}")

    def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                trigger = self._signals.get(timeout=_POLL_INTERVAL)
            except queue.Empty:
                continue
            if self._stop_event.is_set():
                break
            self.log.debug("scan_started", trigger=trigger)
            try:
                self.scan_once()
            except Exception:
                self.log.exception("scan_crashed", trigger=trigger, folder=str(self.folder))

    def _deliver(self, result: ScanResult) -> None:
        if result.batch is not None:
            self._invoke(self._on_batch, result.batch)
        elif result.failure is not None:
            if result.failure.reason is FailureReason.CANCELLED:
                self.log.info("scan_cancelled", path=str(result.failure.path))
                return
            self._invoke(self._on_failure, result.failure)

    def _invoke(self, callback: Callable[[Any], Any], payload: Any) -> None:
        try:
            callback(payload)
        except Exception as e:
            self.log.error(
                "delivery_callback_failed",
                callback=getattr(callback, "__qualname__", repr(callback)),
                error=str(e),
            )

    def _drain(self) -> None:
        while True:
            try:
                self._signals.get_nowait()
            except queue.Empty:
                return

    def __enter__(self) -> "FolderMonitor":
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit."""
        self.stop()
