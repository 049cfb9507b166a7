from __future__ import annotations

from openpyxl.chart import (
    AreaChart,
    BarChart,
    DoughnutChart,
    LineChart,
    PieChart,
    RadarChart,
    Reference,
    ScatterChart,
    Series,
)
from openpyxl.chart._chart import ChartBase
from openpyxl.worksheet.worksheet import Worksheet

from ..chart_types import (
    AXISLESS_CHART_TYPES,
    SUPPORTED_CHART_TYPES_CSV,
    normalize_chart_type,
)
from ..errors import InvalidParamsError
from ..shared.a1 import (
    CellRange,
    format_address,
    parse_address,
    parse_valid_range,
)
from ..tools import CreateChartToolInput, ToolResponse
from ..workbooks import WorkbookAccess, get_worksheet

CHART_WIDTH_CM = 15.0
CHART_HEIGHT_CM = 7.5


def handle_create_chart(
    payload: CreateChartToolInput, access: WorkbookAccess
) -> ToolResponse:
    """Add a native chart built from a header-row/label-column data block.

    The first row of ``dataRange`` holds series titles and the first column
    holds category labels; every further column becomes one series.
    """
    chart_type = normalize_chart_type(payload.chart_type)
    if chart_type is None:
        raise InvalidParamsError(
            f'Chart type "{payload.chart_type}" is invalid. '
            f"Valid types: {SUPPORTED_CHART_TYPES_CSV}"
        )
    path = access.resolve_path(payload.file_path)
    workbook = access.load(path)
    sheet = get_worksheet(workbook, payload.sheet_name)
    bounds = parse_valid_range(payload.data_range)
    if bounds.row_count < 2 or bounds.column_count < 2:
        raise InvalidParamsError(
            "Chart data range must include a header row, a label column and "
            f"at least one value cell: {payload.data_range}"
        )
    anchor_ref = format_address(parse_address(payload.target_cell))

    chart = build_chart(sheet, bounds, chart_type)
    if payload.title:
        chart.title = payload.title
    if chart_type not in AXISLESS_CHART_TYPES:
        if payload.x_axis:
            chart.x_axis.title = payload.x_axis
        if payload.y_axis:
            chart.y_axis.title = payload.y_axis
    chart.width = CHART_WIDTH_CM
    chart.height = CHART_HEIGHT_CM
    sheet.add_chart(chart, anchor_ref)

    access.persist(path, workbook)
    return ToolResponse.from_text(
        f"{chart_type} chart created successfully at {anchor_ref} "
        f"on sheet {sheet.title}"
    )


def build_chart(sheet: Worksheet, bounds: CellRange, chart_type: str) -> ChartBase:
    """Create an openpyxl chart object wired to the cells in ``bounds``."""
    categories = Reference(
        sheet,
        min_col=bounds.start_column,
        min_row=bounds.start_row + 1,
        max_row=bounds.end_row,
    )
    if chart_type == "scatter":
        return _build_scatter(sheet, bounds, categories)

    chart = _new_chart(chart_type)
    values = Reference(
        sheet,
        min_col=bounds.start_column + 1,
        min_row=bounds.start_row,
        max_col=bounds.end_column,
        max_row=bounds.end_row,
    )
    chart.add_data(values, titles_from_data=True)
    chart.set_categories(categories)
    return chart


def _new_chart(chart_type: str) -> ChartBase:
    if chart_type == "line":
        return LineChart()
    if chart_type in ("bar", "column"):
        chart = BarChart()
        chart.type = "bar" if chart_type == "bar" else "col"
        return chart
    if chart_type == "area":
        return AreaChart()
    if chart_type == "pie":
        return PieChart()
    if chart_type == "doughnut":
        return DoughnutChart()
    if chart_type == "radar":
        return RadarChart()
    raise InvalidParamsError(f"Unsupported chart type: {chart_type}")


def _build_scatter(
    sheet: Worksheet, bounds: CellRange, x_values: Reference
) -> ScatterChart:
    chart = ScatterChart()
    chart.style = 13
    for column in range(bounds.start_column + 1, bounds.end_column + 1):
        values = Reference(
            sheet,
            min_col=column,
            min_row=bounds.start_row,
            max_row=bounds.end_row,
        )
        series = Series(values, x_values, title_from_data=True)
        chart.series.append(series)
    return chart
