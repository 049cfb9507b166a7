from __future__ import annotations

from collections.abc import Callable
import logging
from pathlib import Path

from openpyxl import load_workbook
import pytest

from excel_mcp.mcp.errors import InvalidAddressError, InvalidParamsError
from excel_mcp.mcp.handlers.formula import (
    check_formula,
    handle_apply_formula,
    handle_validate_formula_syntax,
)
from excel_mcp.mcp.tools import FormulaToolInput
from excel_mcp.mcp.workbooks import WorkbookAccess

WorkbookFactory = Callable[..., Path]


@pytest.mark.parametrize(
    ("formula", "error"),
    [
        ("", "Formula is empty"),
        ("=SUM(A1:A3", "Mismatched parentheses"),
        ('=CONCATENATE("a, B1)', "Mismatched quotation marks"),
        ("=A1+", "Formula ends with an operator"),
        ("=A1+*B1", "Consecutive operators"),
    ],
)
def test_check_formula_rejects(formula: str, error: str) -> None:
    result = check_formula(formula)
    assert result.valid is False
    assert result.error == error


def test_check_formula_accepts_and_flags_unknown_functions(
    caplog: pytest.LogCaptureFixture,
) -> None:
    with caplog.at_level(logging.WARNING):
        result = check_formula("=SUM(A1:A3)+myfunc(B1)")
    assert result.valid is True
    assert result.unknown_functions == ["MYFUNC"]
    assert "MYFUNC" in caplog.text


def _payload(path: Path, formula: str, cell: str = "C1") -> FormulaToolInput:
    return FormulaToolInput.model_validate(
        {"filePath": str(path), "sheetName": "Data", "cell": cell, "formula": formula}
    )


def test_apply_formula_writes_with_equals_prefix(
    access: WorkbookAccess, make_workbook: WorkbookFactory
) -> None:
    path = make_workbook(Data=[[1, 2]])
    response = handle_apply_formula(_payload(path, "A1+B1", cell="c1"), access)
    assert response.text == 'Formula "A1+B1" successfully applied to cell C1'
    assert load_workbook(path)["Data"]["C1"].value == "=A1+B1"


def test_apply_formula_rejects_bad_syntax(
    access: WorkbookAccess, make_workbook: WorkbookFactory
) -> None:
    path = make_workbook(Data=[[1]])
    with pytest.raises(InvalidParamsError, match="Formula error: Mismatched"):
        handle_apply_formula(_payload(path, "=SUM(A1"), access)
    with pytest.raises(InvalidAddressError):
        handle_apply_formula(_payload(path, "=A1", cell="1C"), access)


def test_validate_formula_syntax_is_soft(
    access: WorkbookAccess, make_workbook: WorkbookFactory
) -> None:
    path = make_workbook(Data=[[1]])
    bad = handle_validate_formula_syntax(_payload(path, "=SUM(A1"), access)
    assert bad.is_error is False
    assert bad.text == "Formula error: Mismatched parentheses"

    good = handle_validate_formula_syntax(_payload(path, "=SUM(A1:A2)"), access)
    assert good.text == 'Formula "=SUM(A1:A2)" is valid'

    unknown = handle_validate_formula_syntax(_payload(path, "=FOO(A1)"), access)
    assert "unrecognized function names: FOO" in unknown.text
    assert load_workbook(path)["Data"]["C1"].value is None
