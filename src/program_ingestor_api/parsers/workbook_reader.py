"""
Workbook Reader

Turns an uploaded spreadsheet into one raw grid per sheet:
- Sheets enumerated in file order (each sheet = one training phase)
- Empty cells become empty strings, header row is kept
- Date-formatted cells are turned back into spreadsheet serial numbers,
  the value the sheet actually stores
- Blank rows inside the used range are kept (they separate workout days)
  and the grid is truncated to its first ``max_rows`` rows
"""

import io
import csv
import math
import logging
from datetime import date, datetime, time, timedelta
from pathlib import PurePath
from typing import Any, List, Optional

from openpyxl import load_workbook
from openpyxl.utils.datetime import to_excel

from .models import SheetPayload

logger = logging.getLogger(__name__)

DEFAULT_MAX_ROWS = 100

EXCEL_EXTENSIONS = {".xlsx", ".xlsm"}
CSV_EXTENSIONS = {".csv"}
SUPPORTED_EXTENSIONS = EXCEL_EXTENSIONS | CSV_EXTENSIONS

CSV_SHEET_NAME = "Sheet1"


class WorkbookReadError(ValueError):
    """Raised when an upload cannot be read as a spreadsheet"""


def file_extension(filename: Optional[str]) -> str:
    """Lower-cased extension of a filename, '' when there is none"""
    if not filename:
        return ""
    return PurePath(filename).suffix.lower()


def read_workbook(
    content: bytes,
    filename: Optional[str] = None,
    max_rows: int = DEFAULT_MAX_ROWS,
) -> List[SheetPayload]:
    """
    Read every sheet of a workbook into raw row grids.

    Args:
        content: Raw file bytes
        filename: Original filename, used to pick the reader (defaults to xlsx)
        max_rows: Maximum number of rows kept per sheet, counted from the top of the used range

    Returns:
        One SheetPayload per sheet, in file order

    Raises:
        WorkbookReadError: If the format is unsupported or the file is corrupt
    """
    extension = file_extension(filename)

    if extension in CSV_EXTENSIONS:
        return [_read_csv(content, max_rows)]

    if extension == ".xls":
        raise WorkbookReadError("Legacy .xls workbooks are not supported. Save the file as .xlsx and upload again.")

    if extension and extension not in EXCEL_EXTENSIONS:
        raise WorkbookReadError(f"Unsupported file type '{extension}'. Upload an .xlsx or .csv file.")

    try:
        wb = load_workbook(io.BytesIO(content), data_only=True)
    except Exception as e:
        logger.warning(f"Failed to open workbook {filename!r}: {e}")
        raise WorkbookReadError(f"Could not read workbook: {e}") from e

    sheets = []
    for position, ws in enumerate(wb.worksheets, 1):
        rows = ws.iter_rows(
            min_row=ws.min_row,
            min_col=ws.min_column,
            max_col=ws.max_column,
            values_only=True,
        )
        grid = _build_grid(rows, max_rows)
        logger.debug(f"Read sheet '{ws.title}' ({len(grid)} rows kept)")
        sheets.append(SheetPayload(name=ws.title, position=position, rows=grid))

    return sheets


def _read_csv(content: bytes, max_rows: int) -> SheetPayload:
    """Read CSV bytes as a single-sheet workbook"""
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        text = content.decode("latin-1")

    reader = csv.reader(io.StringIO(text))
    grid = _build_grid(reader, max_rows)

    # Pad ragged CSV rows so the grid stays rectangular
    width = max((len(row) for row in grid), default=0)
    grid = [row + [""] * (width - len(row)) for row in grid]

    return SheetPayload(name=CSV_SHEET_NAME, position=1, rows=grid)


def _build_grid(rows, max_rows: int) -> List[List[Any]]:
    grid: List[List[Any]] = []
    for row in rows:
        if len(grid) >= max_rows:
            break
        grid.append([_cell_value(value) for value in row])

    # A sheet with no content still reports one empty cell as its used range
    if all(cell == "" for row in grid for cell in row):
        return []
    return grid


def _cell_value(value: Any) -> Any:
    """Normalize one cell to a JSON-friendly value"""
    if value is None:
        return ""

    if isinstance(value, str):
        return value.strip()

    if isinstance(value, bool):
        return value

    # A set count typed as "3" but auto-formatted as a date reads back as a
    # datetime; hand the model the stored serial instead
    if isinstance(value, (datetime, date)):
        return _number(to_excel(value))

    if isinstance(value, time):
        return value.isoformat()

    if isinstance(value, timedelta):
        return str(value)

    if isinstance(value, float):
        return _number(value)

    if isinstance(value, int):
        return value

    return str(value)


def _number(value: Any) -> Any:
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return ""
        if value.is_integer():
            return int(value)
    return value
