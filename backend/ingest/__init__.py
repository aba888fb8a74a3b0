"""
ScheduleWatch Ingest Package.

Reads the schedule workbook into typed ScheduledUnit batches.
Requires Python 3.11+.
"""

from ingest.discovery import find_data_file, list_candidates
from ingest.errors import (
    DataFileMissingError,
    IngestError,
    InvalidWorkbookError,
    ScanCancelledError,
    SheetNotFoundError,
    WorkbookLockedError,
)
from ingest.ingester import TabularIngester, is_lock_error
from ingest.models import (
    COLUMN_FIELDS,
    Batch,
    FailureReason,
    IngestFailure,
    ScanResult,
    ScheduledUnit,
)
from ingest.workbook_reader import parse_row, read_scheduled_units

__all__ = [
    "COLUMN_FIELDS",
    "Batch",
    "FailureReason",
    "IngestFailure",
    "ScanResult",
    "ScheduledUnit",
    "TabularIngester",
    "is_lock_error",
    "find_data_file",
    "list_candidates",
    "parse_row",
    "read_scheduled_units",
    "IngestError",
    "WorkbookLockedError",
    "SheetNotFoundError",
    "InvalidWorkbookError",
    "DataFileMissingError",
    "ScanCancelledError",
]
