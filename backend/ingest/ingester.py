"""
ScheduleWatch Tabular Ingester.

Locates the schedule workbook and reads it with bounded retry, riding
out a writer that holds the file while saving.
Requires Python 3.11+.
"""

import threading
import time
from dataclasses import replace
from pathlib import Path

from ingest.discovery import find_data_file
from ingest.errors import (
    IngestError,
    InvalidWorkbookError,
    ScanCancelledError,
    WorkbookLockedError,
)
from ingest.models import Batch, ScanResult
from ingest.workbook_reader import open_workbook, read_scheduled_units
from utils.config import MonitorSettings, get_settings
from utils.logger import LoggerMixin


def is_lock_error(error: BaseException) -> bool:
    """
    Check if an error means the file is held by another process.

    Missing paths and directory mix-ups are OSErrors too, but retrying
    cannot fix them.
    """
    return isinstance(error, OSError) and not isinstance(
        error, (FileNotFoundError, IsADirectoryError, NotADirectoryError)
    )


class TabularIngester(LoggerMixin):
    """
    Reads the configured sheet of the watched folder's workbook.

    Only lock-class errors are retried, up to max_attempts with a fixed
    delay between attempts. The delay waits on stop_event, so setting it
    aborts the scan promptly with ScanCancelledError.
    """

    def __init__(
        self,
        settings: MonitorSettings | None = None,
        stop_event: threading.Event | None = None,
    ) -> None:
        """
        Initialize the ingester.

        Args:
            settings: Monitor settings (defaults to application settings)
            stop_event: Event that signals shutdown
        """
        self._settings = settings or get_settings().monitor
        self._stop_event = stop_event or threading.Event()

    @property
    def settings(self) -> MonitorSettings:
        """Settings in effect."""
        return self._settings

    def locate(self, folder: Path) -> Path | None:
        """Find the data file in a folder."""
        return find_data_file(
            folder,
            pattern=self._settings.file_pattern,
            transient_prefix=self._settings.transient_prefix,
        )

    def read_once(self, path: Path) -> Batch:
        """
        Open and fully parse the workbook in a single attempt.

        Raises:
            OSError: Lock-class failure, the caller decides whether to retry
            IngestError: Structural failure
        """
        workbook = open_workbook(path)
        try:
            units, skipped = read_scheduled_units(workbook, self._settings.sheet_name, path=path)
        finally:
            workbook.close()
        return Batch(
            source=path,
            sheet_name=self._settings.sheet_name,
            units=tuple(units),
            skipped_rows=skipped,
        )

    def ingest(self, path: Path) -> Batch:
        """
        Parse the workbook, retrying while it is locked.

        Args:
            path: Workbook to read

        Returns:
            Batch of all valid rows in row order

        Raises:
            WorkbookLockedError: Still locked after max_attempts
            ScanCancelledError: Shutdown requested during a retry wait
            IngestError: Structural failure (not retried)
        """
        max_attempts = self._settings.max_attempts
        delay = self._settings.retry_delay
        started = time.perf_counter()

        for attempt in range(1, max_attempts + 1):
            try:
                batch = self.read_once(path)
            except IngestError as e:
                e.attempts = attempt
                raise
            except OSError as e:
                if not is_lock_error(e):
                    raise InvalidWorkbookError(
                        f"cannot read {path}: {e}", path=path, attempts=attempt
                    ) from e
                if attempt == max_attempts:
                    break
                self.log.warning(
                    "workbook_locked_retrying",
                    path=str(path),
                    attempt=attempt,
                    max_attempts=max_attempts,
                    delay_ms=self._settings.retry_delay_ms,
                    error=str(e),
                )
                if self._stop_event.wait(delay):
                    raise ScanCancelledError(
                        f"scan of {path} cancelled during retry", path=path, attempts=attempt
                    ) from e
                continue

            batch = replace(batch, attempts=attempt)
            self.log.info(
                "batch_parsed",
                path=str(path),
                units=len(batch),
                skipped_rows=batch.skipped_rows,
                attempts=attempt,
                time_seconds=round(time.perf_counter() - started, 3),
            )
            return batch

        raise WorkbookLockedError(
            f"failed to read {path} after {max_attempts} attempts",
            path=path,
            attempts=max_attempts,
        )

    def scan(self, folder: Path) -> ScanResult:
        """
        Locate and read the workbook, reporting failures as values.

        Args:
            folder: Watched folder

        Returns:
            ScanResult with a batch, a failure, or neither (no data file)
        """
        path = self.locate(folder)
        if path is None:
            self.log.warning("no_data_file_found", folder=str(folder), pattern=self._settings.file_pattern)
            return ScanResult()

        self.log.info("processing_workbook", path=str(path), sheet=self._settings.sheet_name)
        try:
            return ScanResult(batch=self.ingest(path))
        except IngestError as e:
            if e.path is None:
                e.path = path
            self.log.error(
                "workbook_ingest_failed",
                path=str(path),
                reason=e.reason.value,
                attempts=e.attempts,
                error=e.message,
            )
            return ScanResult(failure=e.to_failure())
