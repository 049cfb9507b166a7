from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

from openpyxl import Workbook
import pytest

from excel_mcp.mcp.cache import WorkbookCache
from excel_mcp.mcp.dispatcher import ToolDispatcher
from excel_mcp.mcp.io import PathPolicy
from excel_mcp.mcp.workbooks import WorkbookAccess

SheetRows = Sequence[Sequence[Any]]


@pytest.fixture
def policy(tmp_path: Path) -> PathPolicy:
    return PathPolicy(root=tmp_path)


@pytest.fixture
def cache() -> WorkbookCache:
    return WorkbookCache()


@pytest.fixture
def access(policy: PathPolicy, cache: WorkbookCache) -> WorkbookAccess:
    return WorkbookAccess(policy, cache)


@pytest.fixture
def dispatcher(policy: PathPolicy, cache: WorkbookCache) -> ToolDispatcher:
    return ToolDispatcher(policy, cache)


@pytest.fixture
def make_workbook(tmp_path: Path) -> Callable[..., Path]:
    """Write a workbook under tmp_path with one sheet per keyword argument.

    Sheet names come from the keyword names, in order; values are row lists.
    """

    def _make(name: str = "book.xlsx", **sheets: SheetRows) -> Path:
        wb = Workbook()
        default = wb.active
        if not sheets:
            sheets = {"Sheet1": []}
        for index, (title, rows) in enumerate(sheets.items()):
            ws = default if index == 0 else wb.create_sheet()
            ws.title = title
            for row in rows:
                ws.append(list(row))
        path = tmp_path / name
        wb.save(path)
        return path

    return _make
