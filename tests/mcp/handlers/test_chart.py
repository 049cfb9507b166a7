from __future__ import annotations

from collections.abc import Callable
import logging
from pathlib import Path

from openpyxl import load_workbook
from openpyxl.chart import BarChart, LineChart, PieChart, ScatterChart
import pytest

from excel_mcp.mcp.chart_types import normalize_chart_type
from excel_mcp.mcp.errors import InvalidAddressError, InvalidParamsError
from excel_mcp.mcp.handlers.chart import handle_create_chart
from excel_mcp.mcp.tools import CreateChartToolInput
from excel_mcp.mcp.workbooks import WorkbookAccess

WorkbookFactory = Callable[..., Path]

SALES = [
    ["Month", "North", "South"],
    ["Jan", 10, 12],
    ["Feb", 14, 9],
    ["Mar", 8, 15],
]


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("Line", "line"),
        ("column_clustered", "column"),
        ("bar_clustered", "bar"),
        ("xy_scatter", "scatter"),
        ("donut", "doughnut"),
        ("stacked-area", "area"),
        ("funnel", None),
    ],
)
def test_normalize_chart_type(value: str, expected: str | None) -> None:
    assert normalize_chart_type(value) == expected


def test_normalize_chart_type_logs_substring_match(
    caplog: pytest.LogCaptureFixture,
) -> None:
    with caplog.at_level(logging.WARNING):
        assert normalize_chart_type("pie-ish") == "pie"
    assert "substring" in caplog.text


def _payload(path: Path, **overrides: object) -> CreateChartToolInput:
    arguments: dict[str, object] = {
        "filePath": str(path),
        "sheetName": "Data",
        "dataRange": "A1:C4",
        "chartType": "column",
        "targetCell": "E2",
    }
    arguments.update(overrides)
    return CreateChartToolInput.model_validate(arguments)


def test_create_column_chart(access: WorkbookAccess, make_workbook: WorkbookFactory) -> None:
    path = make_workbook(Data=SALES)
    response = handle_create_chart(
        _payload(path, title="Sales", xAxis="Month", yAxis="Units"), access
    )
    assert response.text == "column chart created successfully at E2 on sheet Data"

    chart = access.load(path)["Data"]._charts[0]
    assert isinstance(chart, BarChart)
    assert chart.type == "col"
    assert chart.anchor == "E2"
    assert len(chart.series) == 2
    assert chart.title is not None
    assert chart.x_axis.title is not None
    assert len(load_workbook(path)["Data"]._charts) == 1


@pytest.mark.parametrize(
    ("chart_type", "expected"),
    [("line", LineChart), ("pie", PieChart), ("bar", BarChart)],
)
def test_create_chart_types(
    access: WorkbookAccess,
    make_workbook: WorkbookFactory,
    chart_type: str,
    expected: type,
) -> None:
    path = make_workbook(Data=SALES)
    handle_create_chart(_payload(path, chartType=chart_type, xAxis="ignored"), access)
    chart = access.load(path)["Data"]._charts[0]
    assert isinstance(chart, expected)


def test_create_scatter_chart_series_per_column(
    access: WorkbookAccess, make_workbook: WorkbookFactory
) -> None:
    path = make_workbook(Data=[["x", "y1", "y2"], [1, 2, 3], [2, 4, 6]])
    handle_create_chart(_payload(path, chartType="xy_scatter", dataRange="A1:C3"), access)
    chart = access.load(path)["Data"]._charts[0]
    assert isinstance(chart, ScatterChart)
    assert len(chart.series) == 2


def test_create_chart_rejects_unknown_type(
    access: WorkbookAccess, make_workbook: WorkbookFactory
) -> None:
    path = make_workbook(Data=SALES)
    with pytest.raises(InvalidParamsError, match='Chart type "funnel" is invalid'):
        handle_create_chart(_payload(path, chartType="funnel"), access)


def test_create_chart_rejects_small_range_and_bad_anchor(
    access: WorkbookAccess, make_workbook: WorkbookFactory
) -> None:
    path = make_workbook(Data=SALES)
    with pytest.raises(InvalidParamsError, match="Chart data range"):
        handle_create_chart(_payload(path, dataRange="A1:A4"), access)
    with pytest.raises(InvalidAddressError):
        handle_create_chart(_payload(path, targetCell="here"), access)
    assert access.load(path)["Data"]._charts == []
