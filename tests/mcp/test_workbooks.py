from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from openpyxl import Workbook
import pytest

from excel_mcp.mcp.cache import WorkbookCache
from excel_mcp.mcp.errors import (
    InternalToolError,
    InvalidParamsError,
    SheetNotFoundError,
    WorkbookNotFoundError,
)
from excel_mcp.mcp.workbooks import (
    WorkbookAccess,
    cell_value,
    get_worksheet,
    reported_dimensions,
)

WorkbookFactory = Callable[..., Path]


def test_load_returns_cached_handle(
    access: WorkbookAccess, cache: WorkbookCache, make_workbook: WorkbookFactory
) -> None:
    path = make_workbook(Data=[["a"]])
    first = access.load(path)
    first["Data"]["A1"] = "changed"
    second = access.load(path)
    assert second is first
    assert second["Data"]["A1"].value == "changed"
    assert path in cache


def test_load_after_evict_rereads_disk(
    access: WorkbookAccess, cache: WorkbookCache, make_workbook: WorkbookFactory
) -> None:
    path = make_workbook(Data=[["a"]])
    first = access.load(path)
    first["Data"]["A1"] = "unsaved"
    cache.evict(path)
    reloaded = access.load(path)
    assert reloaded is not first
    assert reloaded["Data"]["A1"].value == "a"


def test_load_missing_file(access: WorkbookAccess, tmp_path: Path) -> None:
    with pytest.raises(WorkbookNotFoundError, match="not found"):
        access.load(tmp_path / "missing.xlsx")


def test_load_rejects_unsupported_extension(
    access: WorkbookAccess, tmp_path: Path
) -> None:
    path = tmp_path / "data.csv"
    path.write_text("a,b\n", encoding="utf-8")
    with pytest.raises(InvalidParamsError):
        access.load(path)


def test_load_corrupt_file_is_internal_error(
    access: WorkbookAccess, tmp_path: Path
) -> None:
    path = tmp_path / "broken.xlsx"
    path.write_bytes(b"not a zip archive")
    with pytest.raises(InternalToolError, match="Cannot open workbook"):
        access.load(path)


def test_persist_writes_to_disk(access: WorkbookAccess, tmp_path: Path) -> None:
    path = tmp_path / "out.xlsx"
    wb = Workbook()
    wb.active["B2"] = 5
    access.persist(path, wb)
    assert path.exists()


def test_get_worksheet_default_and_named() -> None:
    wb = Workbook()
    wb.active.title = "First"
    wb.create_sheet("Second")
    assert get_worksheet(wb).title == "First"
    assert get_worksheet(wb, "Second").title == "Second"
    with pytest.raises(SheetNotFoundError, match="Sheet Nope not found"):
        get_worksheet(wb, "Nope")


def test_reported_dimensions_and_cell_value() -> None:
    wb = Workbook()
    ws = wb.active
    assert reported_dimensions(ws) is None
    ws["C4"] = 1
    assert reported_dimensions(ws) == (4, 3)
    assert cell_value(ws, 4, 3) == 1
    assert cell_value(ws, 50, 50) is None
    assert ws.max_row == 4
    assert ws.max_column == 3
