"""
ScheduleWatch Workbook Reader.

Reads the schedule sheet with openpyxl and maps rows to ScheduledUnit
records by fixed column position.
Requires Python 3.11+.
"""

import zipfile
import zlib
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.workbook.workbook import Workbook

from ingest.coercion import cell_text, parse_bool, parse_date
from ingest.errors import DataFileMissingError, InvalidWorkbookError, SheetNotFoundError
from ingest.models import (
    BOOL_COLUMNS,
    COLUMN_FIELDS,
    CUSTOMER_COLUMN,
    DATE_COLUMNS,
    JOB_NUMBER_COLUMN,
    ScheduledUnit,
)
from utils.logger import get_logger

logger = get_logger(__name__)

COLUMN_COUNT = len(COLUMN_FIELDS)
HEADER_ROWS = 1

# Raised by openpyxl, zipfile and the XML parser on a damaged package.
# XML parse errors (ElementTree and lxml) are SyntaxError subclasses.
CORRUPT_PACKAGE_ERRORS = (
    InvalidFileException,
    zipfile.BadZipFile,
    zlib.error,
    EOFError,
    KeyError,
    ValueError,
    SyntaxError,
)


def open_workbook(path: Path) -> Workbook:
    """
    Open a workbook for reading cached cell values.

    Lock-class OSErrors propagate unchanged so the caller can retry them.

    Raises:
        DataFileMissingError: The file no longer exists
        InvalidWorkbookError: The file is not an xlsx package
    """
    try:
        return load_workbook(path, read_only=True, data_only=True)
    except FileNotFoundError as e:
        raise DataFileMissingError(f"data file not found: {path}", path=path) from e
    except CORRUPT_PACKAGE_ERRORS as e:
        raise InvalidWorkbookError(f"not a valid workbook: {path}: {e}", path=path) from e


def parse_row(cells: Sequence[Any]) -> ScheduledUnit | None:
    """
    Map one data row to a ScheduledUnit.

    Args:
        cells: Raw cell values, column 1 first

    Returns:
        The unit, or None when the job number or customer is blank
    """
    texts = [cell_text(value) for value in cells[:COLUMN_COUNT]]
    texts.extend([""] * (COLUMN_COUNT - len(texts)))

    if not texts[JOB_NUMBER_COLUMN - 1] or not texts[CUSTOMER_COLUMN - 1]:
        return None

    values: dict[str, Any] = {}
    for column, (name, text) in enumerate(zip(COLUMN_FIELDS, texts), start=1):
        if column in DATE_COLUMNS:
            values[name] = parse_date(text)
        elif column in BOOL_COLUMNS:
            values[name] = parse_bool(text)
        else:
            values[name] = text
    return ScheduledUnit(**values)


def parse_rows(rows: Iterable[Sequence[Any]]) -> tuple[list[ScheduledUnit], int]:
    """
    Map data rows (header already removed) to units, preserving order.

    Returns:
        Tuple of (units, number of skipped rows)
    """
    units: list[ScheduledUnit] = []
    skipped = 0
    for cells in rows:
        unit = parse_row(cells)
        if unit is None:
            skipped += 1
            continue
        units.append(unit)
    return units, skipped


def read_scheduled_units(
    workbook: Workbook, sheet_name: str, path: Path | None = None
) -> tuple[list[ScheduledUnit], int]:
    """
    Read every data row of the named sheet.

    Args:
        workbook: Open workbook
        sheet_name: Exact sheet name
        path: Source file, for error context

    Returns:
        Tuple of (units in row order, number of skipped rows)

    Raises:
        SheetNotFoundError: The workbook has no sheet with that name
        InvalidWorkbookError: The sheet's XML part is damaged
    """
    if sheet_name not in workbook.sheetnames:
        raise SheetNotFoundError(
            f"worksheet '{sheet_name}' not found (available: {workbook.sheetnames})",
            path=path,
        )

    # Read-only sheets parse their XML lazily, while the rows are iterated
    try:
        sheet = workbook[sheet_name]
        rows = sheet.iter_rows(
            min_row=HEADER_ROWS + 1,
            max_col=COLUMN_COUNT,
            values_only=True,
        )
        units, skipped = parse_rows(rows)
    except CORRUPT_PACKAGE_ERRORS as e:
        raise InvalidWorkbookError(
            f"worksheet '{sheet_name}' is damaged: {e}", path=path
        ) from e

    logger.debug(
        "sheet_read",
        sheet=sheet_name,
        units=len(units),
        skipped_rows=skipped,
    )
    return units, skipped
