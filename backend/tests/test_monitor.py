"""
Tests for Folder Monitor.

Requires Python 3.11+.
"""

import threading
import time
from pathlib import Path

import pytest

import ingest.ingester as ingester_module
import monitor.service as service_module
from conftest import SAMPLE_ROW, make_row, truncate_part
from ingest.models import Batch, FailureReason, IngestFailure, ScanResult
from monitor.service import FolderMonitor
from monitor.sinks import LogSink
from utils.config import MonitorSettings


class Collector:
    """Records delivered batches and failures."""

    def __init__(self) -> None:
        self.batches: list[Batch] = []
        self.failures: list[IngestFailure] = []
        self.delivered = threading.Event()

    def on_batch(self, batch: Batch) -> None:
        self.batches.append(batch)
        self.delivered.set()

    def on_failure(self, failure: IngestFailure) -> None:
        self.failures.append(failure)
        self.delivered.set()


def wait_for(predicate, timeout: float = 10.0) -> bool:
    """Poll until predicate() is truthy or the timeout passes."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.05)
    return False


@pytest.fixture
def collector() -> Collector:
    """Create a delivery collector."""
    return Collector()


@pytest.fixture
def monitor(monitor_settings, collector):
    """Create a monitor wired to the collector; stopped after the test."""
    folder_monitor = FolderMonitor(
        monitor_settings,
        on_batch=collector.on_batch,
        on_failure=collector.on_failure,
    )
    yield folder_monitor
    folder_monitor.stop()


class TestScanOnce:
    """Test cases for synchronous scans."""

    def test_delivers_batch(self, monitor, collector, make_workbook):
        """A successful scan is handed to on_batch."""
        make_workbook([SAMPLE_ROW, make_row("JOB2", "CUST2")])

        result = monitor.scan_once()

        assert result.ok
        assert len(collector.batches) == 1
        assert [u.job_number for u in collector.batches[0]] == ["JOB1", "JOB2"]
        assert collector.failures == []

    def test_delivers_failure(self, monitor, collector, make_workbook):
        """A structural failure is handed to on_failure."""
        make_workbook([SAMPLE_ROW], sheet_name="Sheet1")

        monitor.scan_once()

        assert collector.batches == []
        assert collector.failures[0].reason is FailureReason.MISSING_SHEET

    def test_damaged_workbook_delivers_failure(self, monitor, collector, make_workbook):
        """A cut-off sheet part is a failure value, not an exception."""
        truncate_part(make_workbook([SAMPLE_ROW] * 50))

        result = monitor.scan_once()

        assert result.batch is None
        assert collector.failures[0].reason is FailureReason.INVALID_WORKBOOK
        assert collector.failures[0].attempts == 1

    def test_no_file_delivers_nothing(self, monitor, collector):
        """An empty folder is a silent no-op."""
        result = monitor.scan_once()

        assert result.is_noop
        assert collector.batches == []
        assert collector.failures == []

    def test_cancelled_not_delivered(self, monitor, collector, monkeypatch, tmp_path):
        """Scans aborted by shutdown are not reported as failures."""
        cancelled = ScanResult(
            failure=IngestFailure(FailureReason.CANCELLED, tmp_path / "schedule.xlsx", "stopping", 1)
        )
        monkeypatch.setattr(monitor._ingester, "scan", lambda folder: cancelled)

        monitor.scan_once()

        assert collector.failures == []

    def test_callback_errors_contained(self, monitor_settings, make_workbook):
        """A failing host callback does not break the monitor."""

        def broken(batch):
            raise RuntimeError("downstream unavailable")

        make_workbook([SAMPLE_ROW])
        folder_monitor = FolderMonitor(monitor_settings, on_batch=broken)

        assert folder_monitor.scan_once().ok


class TestSignalQueue:
    """Test cases for the single pending re-scan policy."""

    def test_second_request_coalesced(self, monitor):
        """At most one scan waits behind the running one."""
        assert monitor.request_scan("first") is True
        assert monitor.request_scan("second") is False
        assert monitor.pending_scans == 1

    def test_stop_drains_pending(self, monitor):
        """Stopping discards queued work."""
        monitor.request_scan()
        monitor.stop()

        assert monitor.pending_scans == 0


class TestLifecycle:
    """Test cases for start/stop."""

    def test_requires_folder(self, collector):
        """Starting without a folder is a configuration error."""
        folder_monitor = FolderMonitor(
            MonitorSettings(folder_path=None, scan_on_start=False),
            on_batch=collector.on_batch,
        )

        with pytest.raises(ValueError):
            folder_monitor.start()
        folder_monitor.stop()

    def test_missing_folder(self, monitor_settings, tmp_path):
        """A folder that does not exist fails at start and leaves no worker."""
        settings = monitor_settings.model_copy(update={"folder_path": tmp_path / "absent"})
        folder_monitor = FolderMonitor(settings)

        with pytest.raises(FileNotFoundError):
            folder_monitor.start()
        assert not folder_monitor.is_running

    def test_stop_before_start(self, monitor):
        """stop() is safe before start() and when repeated."""
        monitor.stop()
        monitor.stop()

        assert not monitor.is_running

    def test_start_idempotent(self, monitor):
        """Starting twice is a no-op."""
        monitor.start()
        monitor.start()

        assert monitor.is_running
        monitor.stop()
        assert not monitor.is_running

    def test_restart_waits_for_running_scan(self, monitor, monkeypatch):
        """A worker still inside a scan blocks a restart until it finishes."""
        entered = threading.Event()
        release = threading.Event()

        def slow_scan(folder):
            entered.set()
            release.wait(timeout=10.0)
            return ScanResult()

        monkeypatch.setattr(service_module, "_JOIN_TIMEOUT", 0.1)
        monkeypatch.setattr(monitor._ingester, "scan", slow_scan)
        monitor.start()
        monitor.request_scan("test")
        assert entered.wait(timeout=5.0)

        monitor.stop()
        assert not monitor.is_running
        with pytest.raises(RuntimeError):
            monitor.start()

        release.set()
        monkeypatch.setattr(service_module, "_JOIN_TIMEOUT", 10.0)
        monitor.start()
        assert monitor.is_running

    def test_context_manager(self, monitor_settings, collector):
        """The monitor can be used as a context manager."""
        with FolderMonitor(monitor_settings, on_batch=collector.on_batch) as folder_monitor:
            assert folder_monitor.is_running
        assert not folder_monitor.is_running


class TestPipeline:
    """End-to-end tests through the worker thread."""

    def test_scan_on_start(self, monitor_settings, collector, make_workbook):
        """The current file is read when the monitor starts."""
        make_workbook([SAMPLE_ROW])
        settings = monitor_settings.model_copy(update={"scan_on_start": True})

        with FolderMonitor(settings, on_batch=collector.on_batch, on_failure=collector.on_failure):
            assert collector.delivered.wait(timeout=10.0)

        assert collector.batches[0].units[0].job_number == "JOB1"

    def test_rewrite_triggers_scan(self, monitor, collector, make_workbook, tmp_path, tmp_path_factory):
        """A workbook saved into the folder produces a batch."""
        staging = tmp_path_factory.mktemp("staging")
        staged = make_workbook([SAMPLE_ROW, make_row("JOB2", "CUST2")], folder=staging)

        monitor.start()
        staged.rename(tmp_path / "schedule.xlsx")

        deadline = time.monotonic() + 10.0
        while time.monotonic() < deadline:
            if collector.batches and len(collector.batches[-1]) == 2:
                break
            collector.delivered.wait(timeout=0.2)
            collector.delivered.clear()

        assert collector.batches
        assert len(collector.batches[-1]) == 2

    def test_stop_interrupts_locked_retry(self, monitor_settings, collector, make_workbook, monkeypatch):
        """Shutdown returns promptly while the worker waits on a locked file."""

        def always_locked(path: Path):
            raise PermissionError(13, "locked by another process")

        monkeypatch.setattr(ingester_module, "open_workbook", always_locked)
        make_workbook([SAMPLE_ROW])
        settings = monitor_settings.model_copy(
            update={"max_attempts": 100, "retry_delay_ms": 30_000}
        )
        folder_monitor = FolderMonitor(settings, on_batch=collector.on_batch, on_failure=collector.on_failure)
        folder_monitor.start()
        folder_monitor.request_scan("test")
        time.sleep(0.3)

        started = time.monotonic()
        folder_monitor.stop()

        assert time.monotonic() - started < 5.0
        assert collector.failures == []
        assert collector.batches == []

    def test_worker_survives_damaged_workbook(self, monitor, collector, make_workbook):
        """A corrupt file is reported and the next change is still read."""
        path = truncate_part(make_workbook([SAMPLE_ROW] * 50))
        monitor.start()
        monitor.request_scan("test")
        assert wait_for(lambda: collector.failures)

        path.unlink()
        make_workbook([SAMPLE_ROW, make_row("JOB2", "CUST2")])
        monitor.request_scan("test")

        assert wait_for(lambda: collector.batches)
        assert collector.failures[0].reason is FailureReason.INVALID_WORKBOOK
        assert len(collector.batches[0]) == 2

    def test_worker_survives_unexpected_error(self, monitor, collector, make_workbook, monkeypatch):
        """An error escaping a scan is logged and the worker keeps consuming signals."""
        make_workbook([SAMPLE_ROW])
        real_scan = monitor._ingester.scan
        calls = []

        def scan(folder):
            calls.append(folder)
            if len(calls) == 1:
                raise RuntimeError("unexpected")
            return real_scan(folder)

        monkeypatch.setattr(monitor._ingester, "scan", scan)
        monitor.start()
        monitor.request_scan("first")
        assert wait_for(lambda: calls)
        monitor.request_scan("second")

        assert wait_for(lambda: collector.batches)
        assert len(calls) == 2

class TestLogSink:
    """Test cases for the default sink."""

    def test_logs_batch_and_failure(self, make_workbook, monitor_settings, tmp_path):
        """The log sink accepts batches and failures without raising."""
        make_workbook([SAMPLE_ROW])
        folder_monitor = FolderMonitor(monitor_settings)
        result = folder_monitor.scan_once()

        sink = LogSink()
        sink.on_batch(result.batch)
        sink.on_failure(IngestFailure(FailureReason.LOCK_TIMEOUT, tmp_path / "x.xlsx", "locked", 100))

    def test_batch_json_shape(self, make_workbook, monitor_settings):
        """Batches render with camelCase keys and ISO dates."""
        make_workbook([SAMPLE_ROW])
        batch = FolderMonitor(monitor_settings).scan_once().batch

        record = batch.to_list()[0]

        assert record["jobNumber"] == "JOB1"
        assert record["customer"] == "CUST1"
        assert record["startDate"] == "2024-01-01"
        assert record["complete"] is True
        assert record["firstDayOfProdWeek"] == "2024-01-01"
        assert list(record)[0] == "startDate"
        assert list(record)[-1] == "buildNumber"
