from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from openpyxl import load_workbook
from openpyxl.styles import Font
import pytest

from excel_mcp.mcp.errors import (
    AlreadyExistsError,
    InvalidParamsError,
    SheetNotFoundError,
)
from excel_mcp.mcp.handlers.worksheet import (
    handle_copy_worksheet,
    handle_delete_worksheet,
    handle_rename_worksheet,
)
from excel_mcp.mcp.tools import (
    CopyWorksheetToolInput,
    DeleteWorksheetToolInput,
    RenameWorksheetToolInput,
)
from excel_mcp.mcp.workbooks import WorkbookAccess

WorkbookFactory = Callable[..., Path]


def test_rename_worksheet(access: WorkbookAccess, make_workbook: WorkbookFactory) -> None:
    path = make_workbook(Data=[["a"]], Other=[])
    payload = RenameWorksheetToolInput.model_validate(
        {"filePath": str(path), "oldName": "Data", "newName": "Renamed"}
    )
    response = handle_rename_worksheet(payload, access)
    assert "from Data to Renamed" in response.text
    assert load_workbook(path).sheetnames == ["Renamed", "Other"]


def test_rename_worksheet_errors(
    access: WorkbookAccess, make_workbook: WorkbookFactory
) -> None:
    path = make_workbook(Data=[], Other=[])
    with pytest.raises(SheetNotFoundError):
        handle_rename_worksheet(
            RenameWorksheetToolInput(file_path=str(path), old_name="X", new_name="Y"),
            access,
        )
    with pytest.raises(AlreadyExistsError):
        handle_rename_worksheet(
            RenameWorksheetToolInput(
                file_path=str(path), old_name="Data", new_name="Other"
            ),
            access,
        )


def test_delete_worksheet(access: WorkbookAccess, make_workbook: WorkbookFactory) -> None:
    path = make_workbook(Data=[], Other=[])
    payload = DeleteWorksheetToolInput(file_path=str(path), sheet_name="Other")
    assert "successfully deleted" in handle_delete_worksheet(payload, access).text
    assert load_workbook(path).sheetnames == ["Data"]


def test_delete_only_worksheet_fails(
    access: WorkbookAccess, make_workbook: WorkbookFactory
) -> None:
    path = make_workbook(Data=[])
    payload = DeleteWorksheetToolInput(file_path=str(path), sheet_name="Data")
    with pytest.raises(
        InvalidParamsError, match="Cannot delete the only sheet in the workbook"
    ):
        handle_delete_worksheet(payload, access)
    assert load_workbook(path).sheetnames == ["Data"]


def test_copy_worksheet_keeps_values_styles_and_merges(
    access: WorkbookAccess, make_workbook: WorkbookFactory
) -> None:
    path = make_workbook(Data=[["title", None], [1, 2]])
    sheet = access.load(path)["Data"]
    sheet["A1"].font = Font(bold=True)
    sheet.merge_cells("A1:B1")
    sheet.column_dimensions["A"].width = 30

    payload = CopyWorksheetToolInput.model_validate(
        {"filePath": str(path), "sourceSheet": "Data", "targetSheet": "Copy"}
    )
    response = handle_copy_worksheet(payload, access)
    assert response.text == "Worksheet Data successfully copied to Copy"

    copied = load_workbook(path)["Copy"]
    assert copied["A1"].value == "title"
    assert copied["A1"].font.bold is True
    assert copied["B2"].value == 2
    assert [str(r) for r in copied.merged_cells.ranges] == ["A1:B1"]
    assert copied.column_dimensions["A"].width == 30


def test_copy_worksheet_errors(
    access: WorkbookAccess, make_workbook: WorkbookFactory
) -> None:
    path = make_workbook(Data=[], Other=[])
    with pytest.raises(SheetNotFoundError, match="Source sheet Missing not found"):
        handle_copy_worksheet(
            CopyWorksheetToolInput(
                file_path=str(path), source_sheet="Missing", target_sheet="New"
            ),
            access,
        )
    with pytest.raises(AlreadyExistsError, match="Target sheet Other already exists"):
        handle_copy_worksheet(
            CopyWorksheetToolInput(
                file_path=str(path), source_sheet="Data", target_sheet="Other"
            ),
            access,
        )
