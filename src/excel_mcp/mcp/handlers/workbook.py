from __future__ import annotations

import json
from typing import Any

from openpyxl.worksheet.worksheet import Worksheet

from excel_mcp.core import new_workbook

from ..errors import AlreadyExistsError, InvalidParamsError
from ..io import ensure_supported_extension
from ..shared.a1 import format_cell
from ..tools import (
    CreateExcelToolInput,
    CreateSheetToolInput,
    GetWorkbookMetadataToolInput,
    ToolResponse,
)
from ..workbooks import WorkbookAccess


def handle_create_excel(
    payload: CreateExcelToolInput, access: WorkbookAccess
) -> ToolResponse:
    """Create a new workbook file with a single sheet."""
    path = access.resolve_path(payload.file_path)
    if path.exists():
        raise AlreadyExistsError(f"File {payload.file_path} already exists")
    ensure_supported_extension(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        workbook = new_workbook(payload.sheet_name)
    except ValueError as exc:
        raise InvalidParamsError(f"Invalid sheet name: {exc}") from exc
    access.persist(path, workbook)
    access.register(path, workbook)
    return ToolResponse.from_text(f"Excel file created successfully at {path}")


def handle_create_sheet(
    payload: CreateSheetToolInput, access: WorkbookAccess
) -> ToolResponse:
    """Append a new empty sheet to an existing workbook."""
    path = access.resolve_path(payload.file_path)
    workbook = access.load(path)
    if payload.sheet_name in workbook.sheetnames:
        raise AlreadyExistsError(f"Sheet {payload.sheet_name} already exists")
    try:
        workbook.create_sheet(title=payload.sheet_name)
    except ValueError as exc:
        raise InvalidParamsError(f"Invalid sheet name: {exc}") from exc
    access.persist(path, workbook)
    return ToolResponse.from_text(f"Sheet {payload.sheet_name} created successfully")


def handle_get_workbook_metadata(
    payload: GetWorkbookMetadataToolInput, access: WorkbookAccess
) -> ToolResponse:
    """Describe the workbook and its sheets as JSON."""
    path = access.resolve_path(payload.file_path)
    workbook = access.load(path)
    sheets: list[dict[str, Any]] = []
    for index, sheet in enumerate(workbook.worksheets, start=1):
        info: dict[str, Any] = {
            "name": sheet.title,
            "id": index,
            "rowCount": sheet.max_row,
            "columnCount": sheet.max_column,
            "hidden": sheet.sheet_state in ("hidden", "veryHidden"),
        }
        if payload.include_ranges:
            used = used_range(sheet)
            if used is not None:
                info["usedRange"] = used
        sheets.append(info)
    metadata = {"fileName": path.name, "filePath": str(path), "sheets": sheets}
    return ToolResponse.from_text(json.dumps(metadata, indent=2, ensure_ascii=False))


def used_range(sheet: Worksheet) -> dict[str, Any] | None:
    """Return the A1-anchored extent of non-empty cells, or None if empty."""
    max_row = 0
    max_column = 0
    for row_index, row in enumerate(sheet.iter_rows(values_only=True), start=1):
        for col_index, value in enumerate(row, start=1):
            if value is None:
                continue
            max_row = max(max_row, row_index)
            max_column = max(max_column, col_index)
    if max_row == 0 or max_column == 0:
        return None
    return {
        "startRow": 1,
        "startColumn": 1,
        "endRow": max_row,
        "endColumn": max_column,
        "ref": f"A1:{format_cell(max_row, max_column)}",
    }
