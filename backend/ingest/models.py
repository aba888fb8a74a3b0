"""
ScheduleWatch Ingest Data Models.

Defines the records decoded from the schedule workbook and the
outcome types handed to the host.
Requires Python 3.11+.
"""

import json
from dataclasses import dataclass, fields
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Any, Iterator


class FailureReason(str, Enum):
    """Reason class of a terminal scan failure."""

    LOCK_TIMEOUT = "lock_timeout"
    MISSING_SHEET = "missing_sheet"
    MISSING_FILE = "missing_file"
    INVALID_WORKBOOK = "invalid_workbook"
    MALFORMED_ROW = "malformed_row"  # reserved: bad rows are skipped
    CANCELLED = "cancelled"


def _camel_case(name: str) -> str:
    head, *tail = name.split("_")
    return head + "".join(part.title() for part in tail)


@dataclass(frozen=True, slots=True)
class ScheduledUnit:
    """
    One production unit decoded from a data row.

    Field order follows the sheet's column order (columns 1-15).
    Dates and the completion flag are None when the cell text did not parse.
    """

    start_date: date | None = None
    projected_delivery_date: date | None = None
    start_point: str = ""
    value_stream: str = ""
    work_order: str = ""
    job_number: str = ""
    customer: str = ""
    box: str = ""
    chassis: str = ""
    indicator: str = ""
    complete: bool | None = None
    first_day_of_prod_week: date | None = None
    day_and_number: str = ""
    line_order: str = ""
    build_number: str = ""

    def __post_init__(self) -> None:
        if not self.job_number.strip() or not self.customer.strip():
            raise ValueError("ScheduledUnit requires a job number and a customer")

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-ready dictionary with camelCase keys."""
        result: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, date):
                value = value.isoformat()
            result[_camel_case(f.name)] = value
        return result


# Positional contract with the workbook producer: column N -> COLUMN_FIELDS[N - 1]
COLUMN_FIELDS: tuple[str, ...] = tuple(f.name for f in fields(ScheduledUnit))
DATE_COLUMNS = frozenset({1, 2, 12})
BOOL_COLUMNS = frozenset({11})
JOB_NUMBER_COLUMN = 6
CUSTOMER_COLUMN = 7


@dataclass(frozen=True)
class Batch:
    """The complete ordered set of units from one successful parse."""

    source: Path
    sheet_name: str
    units: tuple[ScheduledUnit, ...] = ()
    attempts: int = 1
    skipped_rows: int = 0

    def __iter__(self) -> Iterator[ScheduledUnit]:
        return iter(self.units)

    def __len__(self) -> int:
        return len(self.units)

    def to_list(self) -> list[dict[str, Any]]:
        """Convert all units to dictionaries, in row order."""
        return [unit.to_dict() for unit in self.units]

    def to_json(self, indent: int | None = None) -> str:
        """Render the units as a JSON array."""
        return json.dumps(self.to_list(), indent=indent)


@dataclass(frozen=True)
class IngestFailure:
    """A terminal, file-level failure of one scan."""

    reason: FailureReason
    path: Path | None
    message: str
    attempts: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "reason": self.reason.value,
            "path": str(self.path) if self.path else None,
            "message": self.message,
            "attempts": self.attempts,
        }


@dataclass(frozen=True)
class ScanResult:
    """
    Outcome of one scan of the watched folder.

    Exactly one of batch/failure is set, or neither when no data
    file was present.
    """

    batch: Batch | None = None
    failure: IngestFailure | None = None

    @property
    def ok(self) -> bool:
        """Check if the scan produced a batch."""
        return self.batch is not None

    @property
    def is_noop(self) -> bool:
        """Check if there was nothing to read."""
        return self.batch is None and self.failure is None
