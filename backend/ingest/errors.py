"""
ScheduleWatch Ingest Errors.

File-level failures raised while reading the schedule workbook.
Row-level problems are never raised; those rows are skipped.
Requires Python 3.11+.
"""

from pathlib import Path

from ingest.models import FailureReason, IngestFailure


class IngestError(Exception):
    """Base class for terminal, file-level ingestion failures."""

    reason: FailureReason = FailureReason.INVALID_WORKBOOK

    def __init__(self, message: str, path: Path | None = None, attempts: int = 0) -> None:
        super().__init__(message)
        self.message = message
        self.path = path
        self.attempts = attempts

    def to_failure(self) -> IngestFailure:
        """Convert to the failure value delivered to the host."""
        return IngestFailure(
            reason=self.reason,
            path=self.path,
            message=self.message,
            attempts=self.attempts,
        )


class WorkbookLockedError(IngestError):
    """Raised when the file stayed locked for every allowed attempt."""

    reason = FailureReason.LOCK_TIMEOUT


class SheetNotFoundError(IngestError):
    """Raised when the workbook has no sheet with the configured name."""

    reason = FailureReason.MISSING_SHEET


class InvalidWorkbookError(IngestError):
    """Raised when the file is not a readable workbook."""

    reason = FailureReason.INVALID_WORKBOOK


class DataFileMissingError(IngestError):
    """Raised when the data file vanished before it could be opened."""

    reason = FailureReason.MISSING_FILE


class ScanCancelledError(IngestError):
    """Raised when shutdown interrupted a retry wait."""

    reason = FailureReason.CANCELLED
