from __future__ import annotations

from collections.abc import Callable
import json
from pathlib import Path

from openpyxl import load_workbook
from pydantic import ValidationError
import pytest

from excel_mcp.mcp.errors import InvalidRangeError, SheetNotFoundError
from excel_mcp.mcp.handlers.data import handle_read_excel, handle_write_excel
from excel_mcp.mcp.tools import ReadExcelToolInput, WriteExcelToolInput
from excel_mcp.mcp.workbooks import WorkbookAccess

WorkbookFactory = Callable[..., Path]


def _read(access: WorkbookAccess, **arguments: object) -> list[dict[str, object]]:
    payload = ReadExcelToolInput.model_validate(arguments)
    return json.loads(handle_read_excel(payload, access).text)


def test_read_uses_first_row_as_header(
    access: WorkbookAccess, make_workbook: WorkbookFactory
) -> None:
    path = make_workbook(Data=[["name", "qty"], ["apple", 3], ["pear", 5]])
    rows = _read(access, filePath=str(path), sheetName="Data")
    assert rows == [{"name": "apple", "qty": 3}, {"name": "pear", "qty": 5}]


def test_read_drops_all_empty_rows_and_empty_cells(
    access: WorkbookAccess, make_workbook: WorkbookFactory
) -> None:
    path = make_workbook(
        Data=[["a", "b"], [None, None], [1, None], [None, 2]],
    )
    rows = _read(access, filePath=str(path), range="A1:B4")
    assert rows == [{"a": 1}, {"b": 2}]


def test_read_header_only_range_is_empty(
    access: WorkbookAccess, make_workbook: WorkbookFactory
) -> None:
    path = make_workbook(Data=[["a", "b"]])
    assert _read(access, filePath=str(path), range="A1:B3") == []


def test_read_missing_headers_get_column_names(
    access: WorkbookAccess, make_workbook: WorkbookFactory
) -> None:
    path = make_workbook(Data=[["id", None], [1, "x"]])
    rows = _read(access, filePath=str(path))
    assert rows == [{"id": 1, "Column2": "x"}]


def test_read_past_extent_does_not_create_cells(
    access: WorkbookAccess, make_workbook: WorkbookFactory
) -> None:
    path = make_workbook(Data=[["a"], [1]])
    rows = _read(access, filePath=str(path), range="A1:Z500")
    assert rows == [{"a": 1}]
    sheet = access.load(path)["Data"]
    assert sheet.max_row == 2
    assert sheet.max_column == 1


def test_read_preview_only_limits_rows_and_columns(
    access: WorkbookAccess, make_workbook: WorkbookFactory
) -> None:
    header = [f"h{i}" for i in range(12)]
    body = [[row * 100 + col for col in range(12)] for row in range(1, 20)]
    path = make_workbook(Data=[header, *body])
    rows = _read(access, filePath=str(path), previewOnly=True)
    assert len(rows) == 9
    assert set(rows[0]) == {f"h{i}" for i in range(10)}


def test_read_rejects_reversed_range(
    access: WorkbookAccess, make_workbook: WorkbookFactory
) -> None:
    path = make_workbook(Data=[["a"]])
    with pytest.raises(InvalidRangeError):
        _read(access, filePath=str(path), range="B2:A1")


def test_read_unknown_sheet(
    access: WorkbookAccess, make_workbook: WorkbookFactory
) -> None:
    path = make_workbook(Data=[["a"]])
    with pytest.raises(SheetNotFoundError):
        _read(access, filePath=str(path), sheetName="Other")


def test_write_matrix_at_start_cell(
    access: WorkbookAccess, make_workbook: WorkbookFactory
) -> None:
    path = make_workbook(Data=[])
    payload = WriteExcelToolInput.model_validate(
        {"filePath": str(path), "data": [["x", "y"], [1, 2]], "startCell": "B3"}
    )
    response = handle_write_excel(payload, access)
    assert response.text == "Data saved successfully"
    sheet = load_workbook(path)["Data"]
    assert sheet["B3"].value == "x"
    assert sheet["C4"].value == 2
    assert sheet["A1"].value is None


def test_write_records_with_and_without_headers(
    access: WorkbookAccess, make_workbook: WorkbookFactory
) -> None:
    path = make_workbook(Data=[])
    records = [{"name": "a", "age": 1}, {"name": "b", "age": 2}]
    handle_write_excel(
        WriteExcelToolInput.model_validate({"filePath": str(path), "data": records}),
        access,
    )
    sheet = load_workbook(path)["Data"]
    assert [c.value for c in sheet[1]] == ["name", "age"]
    assert [c.value for c in sheet[3]] == ["b", 2]

    handle_write_excel(
        WriteExcelToolInput.model_validate(
            {
                "filePath": str(path),
                "data": [{"name": "c", "age": 3}],
                "startCell": "A10",
                "writeHeaders": False,
            }
        ),
        access,
    )
    sheet = load_workbook(path)["Data"]
    assert sheet["A10"].value == "c"
    assert sheet["A9"].value is None


def test_write_rejects_mixed_rows() -> None:
    with pytest.raises(ValidationError):
        WriteExcelToolInput.model_validate(
            {"filePath": "a.xlsx", "data": [["x"], {"a": 1}]}
        )


@pytest.mark.parametrize(
    "data",
    [
        [[1, {"a": 1}]],
        [{"name": "x", "tags": ["a", "b"]}],
    ],
)
def test_write_rejects_nested_cell_values(data: list[object]) -> None:
    with pytest.raises(ValidationError, match="Cell values must be scalars"):
        WriteExcelToolInput.model_validate({"filePath": "a.xlsx", "data": data})
