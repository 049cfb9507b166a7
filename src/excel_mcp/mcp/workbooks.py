"""Workbook access facade shared by every tool handler."""

from __future__ import annotations

import logging
from pathlib import Path
from zipfile import BadZipFile

from openpyxl import Workbook
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.worksheet.worksheet import Worksheet

from excel_mcp.core import read_workbook

from .cache import WorkbookCache
from .errors import InternalToolError, SheetNotFoundError, WorkbookNotFoundError
from .io import PathPolicy, ensure_supported_extension

logger = logging.getLogger(__name__)

# Used when a worksheet cannot report its own bounds.
FALLBACK_READ_ROWS = 100
FALLBACK_READ_COLUMNS = 100
EXCEL_MAX_ROWS = 1_048_576
EXCEL_MAX_COLUMNS = 16_384


class WorkbookAccess:
    """Resolve, load and persist workbooks through a session cache."""

    def __init__(self, policy: PathPolicy, cache: WorkbookCache) -> None:
        self.policy = policy
        self.cache = cache

    def resolve_path(self, file_path: str) -> Path:
        """Resolve a tool ``filePath`` argument to its canonical path."""
        return self.policy.resolve(file_path)

    def load(self, path: Path) -> Workbook:
        """Return the cached workbook, reading it from disk on first access.

        Args:
            path: Canonical workbook path.

        Returns:
            Mutable workbook shared by every call for this path.

        Raises:
            WorkbookNotFoundError: If the file does not exist.
            InvalidParamsError: If the extension is not supported.
        """
        cached = self.cache.get(path)
        if cached is not None:
            logger.debug("Workbook cache hit: %s", path)
            return cached
        if not path.exists():
            raise WorkbookNotFoundError(f"File {path} not found")
        ensure_supported_extension(path)
        try:
            workbook = read_workbook(path)
        except (InvalidFileException, BadZipFile) as exc:
            raise InternalToolError(f"Cannot open workbook {path}: {exc}") from exc
        self.cache.put(path, workbook)
        logger.debug("Workbook loaded into cache: %s", path)
        return workbook

    def register(self, path: Path, workbook: Workbook) -> None:
        """Adopt a freshly created workbook into the cache."""
        self.cache.put(path, workbook)

    def persist(self, path: Path, workbook: Workbook) -> None:
        """Write the in-memory workbook back to the path it was loaded from."""
        workbook.save(path)
        logger.debug("Workbook saved: %s", path)


def get_worksheet(workbook: Workbook, sheet_name: str | None = None) -> Worksheet:
    """Return the named worksheet, or the first one when no name is given.

    Raises:
        SheetNotFoundError: If no worksheet matches the exact name.
    """
    if sheet_name is None:
        if not workbook.worksheets:
            raise SheetNotFoundError("Sheet (first sheet) not found")
        return workbook.worksheets[0]
    if sheet_name not in workbook.sheetnames:
        raise SheetNotFoundError(f"Sheet {sheet_name} not found")
    sheet = workbook[sheet_name]
    if not isinstance(sheet, Worksheet):
        raise SheetNotFoundError(f"Sheet {sheet_name} is not a worksheet")
    return sheet


def reported_dimensions(sheet: Worksheet) -> tuple[int, int] | None:
    """Return (rows, columns) of the populated extent, or None for empty sheets."""
    max_row = sheet.max_row
    max_column = sheet.max_column
    if max_row == 1 and max_column == 1 and sheet.cell(row=1, column=1).value is None:
        return None
    return max_row, max_column


def cell_value(sheet: Worksheet, row: int, column: int) -> object:
    """Read a cell value without materializing cells past the populated extent."""
    if row > sheet.max_row or column > sheet.max_column:
        return None
    return sheet.cell(row=row, column=column).value
