from __future__ import annotations

from copy import copy
from dataclasses import dataclass
from typing import Any

from openpyxl.cell.cell import Cell, MergedCell
from openpyxl.styles import Alignment, Border, PatternFill, Protection
from openpyxl.styles.fonts import DEFAULT_FONT
from openpyxl.worksheet.worksheet import Worksheet

from ..errors import ExcelToolError
from .format import intersecting_merged_ranges
from ..shared.a1 import (
    CellRange,
    format_range,
    is_valid_range,
    join_range,
    parse_address,
    parse_cell_or_range,
    parse_valid_range,
)
from ..tools import (
    CopyRangeToolInput,
    DeleteRangeToolInput,
    ToolResponse,
    ValidateExcelRangeToolInput,
)
from ..workbooks import (
    EXCEL_MAX_COLUMNS,
    EXCEL_MAX_ROWS,
    WorkbookAccess,
    get_worksheet,
    reported_dimensions,
)


@dataclass(frozen=True)
class _CellSnapshot:
    value: Any
    font: Any
    fill: Any
    border: Any
    alignment: Any
    protection: Any
    number_format: str


def handle_copy_range(
    payload: CopyRangeToolInput, access: WorkbookAccess
) -> ToolResponse:
    """Copy values and styles of a rectangle to another anchor cell."""
    path = access.resolve_path(payload.file_path)
    workbook = access.load(path)
    source_sheet = get_worksheet(workbook, payload.sheet_name)
    target_sheet = (
        get_worksheet(workbook, payload.target_sheet)
        if payload.target_sheet
        else source_sheet
    )
    source_text = join_range(payload.source_start, payload.source_end)
    source = parse_valid_range(source_text)
    anchor = parse_address(payload.target_start)

    snapshot = [
        [
            _snapshot(source_sheet.cell(row=row, column=column))
            for column in _columns(source)
        ]
        for row in _rows(source)
    ]
    for row_offset, row_cells in enumerate(snapshot):
        for col_offset, cell_state in enumerate(row_cells):
            target = target_sheet.cell(
                row=anchor.row + row_offset, column=anchor.column + col_offset
            )
            _restore(target, cell_state)

    access.persist(path, workbook)
    return ToolResponse.from_text(
        f"Range {source_text} successfully copied to {payload.target_start} "
        f"on sheet {target_sheet.title}"
    )


def handle_delete_range(
    payload: DeleteRangeToolInput, access: WorkbookAccess
) -> ToolResponse:
    """Clear a rectangle and shift the cells below (up) or right (left) into it."""
    path = access.resolve_path(payload.file_path)
    workbook = access.load(path)
    sheet = get_worksheet(workbook, payload.sheet_name)
    range_text = join_range(payload.start_cell, payload.end_cell)
    bounds = parse_valid_range(range_text)

    for merged in intersecting_merged_ranges(sheet, bounds):
        sheet.unmerge_cells(merged)
    for row in _rows(bounds):
        for column in _columns(bounds):
            _clear(sheet.cell(row=row, column=column))
    if payload.shift_direction == "up":
        _shift_up(sheet, bounds)
    else:
        _shift_left(sheet, bounds)

    access.persist(path, workbook)
    return ToolResponse.from_text(
        f"Range {range_text} deleted successfully; cells shifted "
        f"{payload.shift_direction}"
    )


def handle_validate_excel_range(
    payload: ValidateExcelRangeToolInput, access: WorkbookAccess
) -> ToolResponse:
    """Report whether a range is well-formed and inside the sheet bounds.

    Syntax problems are returned as text, not raised.
    """
    path = access.resolve_path(payload.file_path)
    workbook = access.load(path)
    sheet = get_worksheet(workbook, payload.sheet_name)
    range_text = join_range(payload.start_cell, payload.end_cell)
    try:
        bounds = parse_cell_or_range(range_text)
    except ExcelToolError as exc:
        return ToolResponse.from_text(f"Invalid range format: {exc.message}")
    if not is_valid_range(bounds):
        return ToolResponse.from_text(
            f"Invalid range: {range_text}. The start cell must be above and to "
            "the left of the end cell."
        )

    max_row, max_column = reported_dimensions(sheet) or (
        EXCEL_MAX_ROWS,
        EXCEL_MAX_COLUMNS,
    )
    if bounds.end_row > max_row or bounds.end_column > max_column:
        return ToolResponse.from_text(
            "Range is outside the worksheet bounds: "
            f"rows({bounds.start_row}-{bounds.end_row}), "
            f"columns({bounds.start_column}-{bounds.end_column}); "
            f"sheet bounds are {max_row} rows x {max_column} columns"
        )

    non_empty = count_non_empty(sheet, bounds)
    return ToolResponse.from_text(
        f"Range {range_text} is valid ({format_range(bounds)}). "
        f"Cells: {bounds.cell_count}, cells with data: {non_empty}"
    )


def count_non_empty(sheet: Worksheet, bounds: CellRange) -> int:
    """Count populated cells in a rectangle, scanning only the populated extent."""
    end_row = min(bounds.end_row, sheet.max_row)
    end_column = min(bounds.end_column, sheet.max_column)
    if end_row < bounds.start_row or end_column < bounds.start_column:
        return 0
    count = 0
    for row in sheet.iter_rows(
        min_row=bounds.start_row,
        max_row=end_row,
        min_col=bounds.start_column,
        max_col=end_column,
        values_only=True,
    ):
        count += sum(1 for value in row if value is not None)
    return count


def _shift_up(sheet: Worksheet, bounds: CellRange) -> None:
    last_row = sheet.max_row
    if last_row <= bounds.end_row:
        return
    block = CellRange(
        start_row=bounds.end_row + 1,
        start_column=bounds.start_column,
        end_row=last_row,
        end_column=bounds.end_column,
    )
    _move_block(sheet, block, rows=-bounds.row_count, cols=0)


def _shift_left(sheet: Worksheet, bounds: CellRange) -> None:
    last_column = sheet.max_column
    if last_column <= bounds.end_column:
        return
    block = CellRange(
        start_row=bounds.start_row,
        start_column=bounds.end_column + 1,
        end_row=bounds.end_row,
        end_column=last_column,
    )
    _move_block(sheet, block, rows=0, cols=-bounds.column_count)


def _move_block(sheet: Worksheet, block: CellRange, rows: int, cols: int) -> None:
    """Move cells and the merged ranges lying wholly inside the block."""
    # move_range leaves merged_cells behind; re-merge at the shifted position.
    carried = [
        merged
        for merged in list(sheet.merged_cells.ranges)
        if merged.min_row >= block.start_row
        and merged.max_row <= block.end_row
        and merged.min_col >= block.start_column
        and merged.max_col <= block.end_column
    ]
    for merged in carried:
        sheet.unmerge_cells(merged.coord)
    sheet.move_range(format_range(block), rows=rows, cols=cols)
    for merged in carried:
        sheet.merge_cells(
            start_row=merged.min_row + rows,
            start_column=merged.min_col + cols,
            end_row=merged.max_row + rows,
            end_column=merged.max_col + cols,
        )


def _rows(bounds: CellRange) -> range:
    return range(bounds.start_row, bounds.end_row + 1)


def _columns(bounds: CellRange) -> range:
    return range(bounds.start_column, bounds.end_column + 1)


def _snapshot(cell: Cell | MergedCell) -> _CellSnapshot:
    return _CellSnapshot(
        value=cell.value,
        font=copy(cell.font),
        fill=copy(cell.fill),
        border=copy(cell.border),
        alignment=copy(cell.alignment),
        protection=copy(cell.protection),
        number_format=cell.number_format,
    )


def _restore(cell: Cell | MergedCell, state: _CellSnapshot) -> None:
    if not isinstance(cell, MergedCell):
        cell.value = state.value
    cell.font = copy(state.font)
    cell.fill = copy(state.fill)
    cell.border = copy(state.border)
    cell.alignment = copy(state.alignment)
    cell.protection = copy(state.protection)
    cell.number_format = state.number_format


def _clear(cell: Cell | MergedCell) -> None:
    if not isinstance(cell, MergedCell):
        cell.value = None
    cell.font = copy(DEFAULT_FONT)
    cell.fill = PatternFill()
    cell.border = Border()
    cell.alignment = Alignment()
    cell.protection = Protection()
    cell.number_format = "General"
