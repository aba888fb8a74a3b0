"""
ScheduleWatch Test Configuration.

Pytest fixtures and configuration.
Requires Python 3.11+.
"""

import shutil
import zipfile
from collections.abc import Callable, Iterable, Sequence
from datetime import datetime
from pathlib import Path
from typing import Any

import pytest
from openpyxl import Workbook

from utils.config import MonitorSettings


HEADER = [
    "Start Date",
    "Projected Delivery Date",
    "Start Point",
    "Value Stream",
    "Work Order",
    "Job Number",
    "Customer",
    "Box",
    "Chassis",
    "Indicator",
    "Complete",
    "First Day Of Prod Week",
    "Day And Number",
    "Line Order",
    "Build Number",
]

SAMPLE_ROW = [
    datetime(2024, 1, 1),
    datetime(2024, 2, 1),
    "A",
    "VS1",
    "WO1",
    "JOB1",
    "CUST1",
    "B1",
    "CH1",
    "IND1",
    "true",
    datetime(2024, 1, 1),
    "Mon-1",
    "L1",
    "BN1",
]


def make_row(job_number: Any, customer: Any) -> list[Any]:
    """Build a 15-column row based on SAMPLE_ROW with the given key cells."""
    row = list(SAMPLE_ROW)
    row[5] = job_number
    row[6] = customer
    return row


def truncate_part(path: Path, member: str = "xl/worksheets/sheet1.xml") -> Path:
    """Rewrite an xlsx package with one XML part cut off halfway."""
    damaged = path.with_name(path.name + ".part")
    with zipfile.ZipFile(path) as source, zipfile.ZipFile(damaged, "w") as target:
        for info in source.infolist():
            data = source.read(info.filename)
            if info.filename == member:
                data = data[: len(data) // 2]
            target.writestr(info, data)
    shutil.move(damaged, path)
    return path


@pytest.fixture
def sample_row() -> list[Any]:
    """The reference data row."""
    return list(SAMPLE_ROW)


@pytest.fixture
def make_workbook(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing an xlsx file with a header row and data rows."""

    def _make(
        rows: Iterable[Sequence[Any]],
        name: str = "schedule.xlsx",
        sheet_name: str = "COMBINED",
        extra_sheets: Sequence[str] = (),
        folder: Path | None = None,
    ) -> Path:
        workbook = Workbook()
        sheet = workbook.active
        sheet.title = sheet_name
        sheet.append(HEADER)
        for row in rows:
            sheet.append(list(row))
        for extra in extra_sheets:
            workbook.create_sheet(extra)

        path = (folder or tmp_path) / name
        workbook.save(path)
        return path

    return _make


@pytest.fixture
def monitor_settings(tmp_path: Path) -> MonitorSettings:
    """Fast settings pointed at the test's temporary folder."""
    return MonitorSettings(
        folder_path=tmp_path,
        debounce_window_ms=50,
        max_attempts=5,
        retry_delay_ms=10,
        scan_on_start=False,
    )
