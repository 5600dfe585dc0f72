"""Load CSV and Excel files into worksheets."""

import csv
import logging
from datetime import date, datetime, time
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional

from openpyxl import load_workbook

from .models import MergeRange, Worksheet

logger = logging.getLogger(__name__)


class UnsupportedFileError(Exception):
    """Exception raised when a file type cannot be loaded."""

    pass


def _plain_value(value: Any) -> Any:
    """Reduce an openpyxl cell value to a scalar."""
    if value is None:
        return ""
    if isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    if isinstance(value, (date, time)):
        return value.isoformat()
    return str(value)


def load_csv(path: Path, name: Optional[str] = None, encoding: str = "utf-8-sig") -> Worksheet:
    """Read a CSV file into a worksheet named after the file stem."""
    path = Path(path)
    with path.open(newline="", encoding=encoding) as handle:
        rows = [list(row) for row in csv.reader(handle)]
    logger.info(f"Loaded CSV {path.name}: {len(rows)} rows")
    return Worksheet(name=name or path.stem, rows=rows)


def load_xlsx(path: Path, sheet_name: Optional[str] = None) -> Worksheet:
    """Read one sheet of an .xlsx workbook, keeping its merged ranges.

    Falls back to the first sheet when ``sheet_name`` is missing or unknown.
    """
    path = Path(path)
    workbook = load_workbook(filename=str(path), data_only=True)
    try:
        if sheet_name and sheet_name in workbook.sheetnames:
            sheet = workbook[sheet_name]
        else:
            if sheet_name:
                logger.warning(f"Sheet '{sheet_name}' not found in {path.name}, using first sheet")
            sheet = workbook[workbook.sheetnames[0]]

        # openpyxl ranges are 1-based
        merges = [
            MergeRange(
                top=int(cell_range.min_row) - 1,
                left=int(cell_range.min_col) - 1,
                bottom=int(cell_range.max_row) - 1,
                right=int(cell_range.max_col) - 1,
            )
            for cell_range in sheet.merged_cells.ranges
        ]

        rows = [
            [_plain_value(value) for value in row]
            for row in sheet.iter_rows(values_only=True)
        ]
        logger.info(
            f"Loaded sheet '{sheet.title}' from {path.name}: "
            f"{len(rows)} rows, {len(merges)} merged ranges"
        )
        return Worksheet(name=str(sheet.title), rows=rows, merges=merges)
    finally:
        workbook.close()


def load_worksheet(path: Path, sheet_name: Optional[str] = None) -> Worksheet:
    """Load a worksheet, choosing the reader by file extension."""
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix in (".csv", ".txt"):
        return load_csv(path)
    if suffix in (".xlsx", ".xlsm"):
        return load_xlsx(path, sheet_name)
    raise UnsupportedFileError(f"Unsupported file type: {path.suffix or '(none)'}")
