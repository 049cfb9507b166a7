from __future__ import annotations

import logging

from ..errors import AlreadyExistsError, InvalidParamsError, SheetNotFoundError
from ..tools import (
    CopyWorksheetToolInput,
    DeleteWorksheetToolInput,
    RenameWorksheetToolInput,
    ToolResponse,
)
from ..workbooks import WorkbookAccess, get_worksheet

logger = logging.getLogger(__name__)


def handle_rename_worksheet(
    payload: RenameWorksheetToolInput, access: WorkbookAccess
) -> ToolResponse:
    """Rename a worksheet."""
    path = access.resolve_path(payload.file_path)
    workbook = access.load(path)
    sheet = get_worksheet(workbook, payload.old_name)
    if payload.new_name in workbook.sheetnames:
        raise AlreadyExistsError(f"Sheet {payload.new_name} already exists")
    try:
        sheet.title = payload.new_name
    except ValueError as exc:
        raise InvalidParamsError(f"Invalid sheet name: {exc}") from exc
    access.persist(path, workbook)
    return ToolResponse.from_text(
        f"Worksheet successfully renamed from {payload.old_name} to {payload.new_name}"
    )


def handle_delete_worksheet(
    payload: DeleteWorksheetToolInput, access: WorkbookAccess
) -> ToolResponse:
    """Delete a worksheet; the last remaining sheet cannot be deleted."""
    path = access.resolve_path(payload.file_path)
    workbook = access.load(path)
    sheet = get_worksheet(workbook, payload.sheet_name)
    if len(workbook.worksheets) == 1:
        raise InvalidParamsError("Cannot delete the only sheet in the workbook")
    workbook.remove(sheet)
    access.persist(path, workbook)
    return ToolResponse.from_text(
        f"Worksheet {payload.sheet_name} successfully deleted"
    )


def handle_copy_worksheet(
    payload: CopyWorksheetToolInput, access: WorkbookAccess
) -> ToolResponse:
    """Duplicate a worksheet within the same workbook.

    Values, per-cell styles, row heights, column widths and merged ranges are
    copied by openpyxl; merged ranges come from the authoritative
    ``merged_cells`` list rather than a per-cell scan.
    """
    path = access.resolve_path(payload.file_path)
    workbook = access.load(path)
    try:
        source = get_worksheet(workbook, payload.source_sheet)
    except SheetNotFoundError as exc:
        raise SheetNotFoundError(f"Source sheet {payload.source_sheet} not found") from exc
    if payload.target_sheet in workbook.sheetnames:
        raise AlreadyExistsError(f"Target sheet {payload.target_sheet} already exists")

    target = workbook.copy_worksheet(source)
    try:
        target.title = payload.target_sheet
    except ValueError as exc:
        workbook.remove(target)
        raise InvalidParamsError(f"Invalid sheet name: {exc}") from exc
    target.sheet_state = source.sheet_state
    logger.debug(
        "Copied sheet %s to %s with %d merged ranges.",
        payload.source_sheet,
        payload.target_sheet,
        len(target.merged_cells.ranges),
    )
    access.persist(path, workbook)
    return ToolResponse.from_text(
        f"Worksheet {payload.source_sheet} successfully copied to {payload.target_sheet}"
    )
