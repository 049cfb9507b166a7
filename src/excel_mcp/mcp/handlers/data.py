from __future__ import annotations

import json
from typing import Any

from openpyxl.worksheet.worksheet import Worksheet

from ..shared.a1 import CellRange, parse_cell_or_range, parse_valid_range
from ..tools import ReadExcelToolInput, ToolResponse, WriteExcelToolInput
from ..workbooks import (
    FALLBACK_READ_COLUMNS,
    FALLBACK_READ_ROWS,
    WorkbookAccess,
    cell_value,
    get_worksheet,
    reported_dimensions,
)

PREVIEW_MAX_ROWS = 10
PREVIEW_MAX_COLUMNS = 10


def handle_read_excel(
    payload: ReadExcelToolInput, access: WorkbookAccess
) -> ToolResponse:
    """Read a sheet region as a list of header-keyed row objects.

    The first row of the region is the header row. Rows where every cell is
    empty are omitted, and empty cells are omitted from each row object.
    """
    path = access.resolve_path(payload.file_path)
    workbook = access.load(path)
    sheet = get_worksheet(workbook, payload.sheet_name)
    bounds = _resolve_read_range(sheet, payload.range)
    if payload.preview_only:
        bounds = _clamp_preview(bounds)
    rows = read_records(sheet, bounds)
    return ToolResponse.from_text(
        json.dumps(rows, indent=2, ensure_ascii=False, default=str)
    )


def handle_write_excel(
    payload: WriteExcelToolInput, access: WorkbookAccess
) -> ToolResponse:
    """Write an array of arrays or an array of objects starting at a cell."""
    path = access.resolve_path(payload.file_path)
    workbook = access.load(path)
    sheet = get_worksheet(workbook, payload.sheet_name)
    start = parse_cell_or_range(payload.start_cell)

    if all(isinstance(row, list) for row in payload.data):
        _write_matrix(sheet, payload.data, start.start_row, start.start_column)
    else:
        _write_records(
            sheet,
            payload.data,
            start.start_row,
            start.start_column,
            write_headers=payload.write_headers,
        )

    access.persist(path, workbook)
    return ToolResponse.from_text("Data saved successfully")


def read_records(sheet: Worksheet, bounds: CellRange) -> list[dict[str, Any]]:
    """Convert a rectangle into header-keyed records."""
    headers: list[str] = []
    for offset, column in enumerate(range(bounds.start_column, bounds.end_column + 1)):
        header = cell_value(sheet, bounds.start_row, column)
        headers.append(str(header) if header else f"Column{offset + 1}")

    records: list[dict[str, Any]] = []
    for row in range(bounds.start_row + 1, bounds.end_row + 1):
        record: dict[str, Any] = {}
        for offset, column in enumerate(
            range(bounds.start_column, bounds.end_column + 1)
        ):
            value = cell_value(sheet, row, column)
            if value is not None:
                record[headers[offset]] = value
        if record:
            records.append(record)
    return records


def _resolve_read_range(sheet: Worksheet, range_text: str | None) -> CellRange:
    if range_text:
        return parse_valid_range(range_text)
    dimensions = reported_dimensions(sheet)
    end_row, end_column = dimensions or (FALLBACK_READ_ROWS, FALLBACK_READ_COLUMNS)
    return CellRange(start_row=1, start_column=1, end_row=end_row, end_column=end_column)


def _clamp_preview(bounds: CellRange) -> CellRange:
    return bounds.model_copy(
        update={
            "end_row": min(bounds.end_row, bounds.start_row + PREVIEW_MAX_ROWS - 1),
            "end_column": min(
                bounds.end_column, bounds.start_column + PREVIEW_MAX_COLUMNS - 1
            ),
        }
    )


def _write_matrix(
    sheet: Worksheet, rows: list[Any], start_row: int, start_column: int
) -> None:
    for row_offset, row_values in enumerate(rows):
        for col_offset, value in enumerate(row_values):
            sheet.cell(
                row=start_row + row_offset,
                column=start_column + col_offset,
                value=value,
            )


def _write_records(
    sheet: Worksheet,
    rows: list[Any],
    start_row: int,
    start_column: int,
    *,
    write_headers: bool,
) -> None:
    # Each record is laid out in its own key order; headers come from the first.
    if write_headers and rows:
        for col_offset, header in enumerate(rows[0].keys()):
            sheet.cell(row=start_row, column=start_column + col_offset, value=header)
    row_offset = 1 if write_headers else 0
    for index, record in enumerate(rows):
        for col_offset, key in enumerate(record.keys()):
            sheet.cell(
                row=start_row + index + row_offset,
                column=start_column + col_offset,
                value=record[key],
            )
