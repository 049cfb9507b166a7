from __future__ import annotations

import logging
from typing import Final

from openpyxl.worksheet.worksheet import Worksheet

from ..errors import InvalidParamsError
from ..shared.a1 import CellRange, parse_valid_range
from ..tools import CreatePivotTableToolInput, ToolResponse
from ..workbooks import WorkbookAccess, get_worksheet

logger = logging.getLogger(__name__)

AGGREGATION_FUNCTIONS: Final[tuple[str, ...]] = (
    "sum",
    "count",
    "average",
    "max",
    "min",
    "product",
    "countNums",
    "stdDev",
    "stdDevp",
    "var",
    "varp",
)

AGGREGATION_ALIASES: Final[dict[str, str]] = {
    "mean": "average",
    "avg": "average",
    "total": "sum",
    "add": "sum",
    "maximum": "max",
    "minimum": "min",
    "multiply": "product",
}

_BY_LOWER: Final[dict[str, str]] = {name.lower(): name for name in AGGREGATION_FUNCTIONS}


def resolve_aggregation(agg_func: str) -> str:
    """Map user input to a canonical aggregation function name.

    Raises:
        InvalidParamsError: When nothing in the vocabulary matches.
    """
    candidate = agg_func.strip().lower()
    if candidate in _BY_LOWER:
        return _BY_LOWER[candidate]
    if candidate in AGGREGATION_ALIASES:
        return AGGREGATION_ALIASES[candidate]
    # Longest names first so "stddevp" style inputs beat their prefixes.
    for lower in sorted(_BY_LOWER, key=len, reverse=True):
        if lower in candidate:
            logger.warning(
                "Aggregation function %r matched %r by substring",
                agg_func,
                _BY_LOWER[lower],
            )
            return _BY_LOWER[lower]
    raise InvalidParamsError(
        f'Aggregation function "{agg_func}" is invalid. '
        f"Valid functions: {', '.join(AGGREGATION_FUNCTIONS)}"
    )


def header_fields(sheet: Worksheet, bounds: CellRange) -> list[str]:
    """Return the header row of ``bounds`` as strings, skipping empty cells."""
    end_column = min(bounds.end_column, sheet.max_column)
    if bounds.start_row > sheet.max_row or end_column < bounds.start_column:
        return []
    headers: list[str] = []
    for row in sheet.iter_rows(
        min_row=bounds.start_row,
        max_row=bounds.start_row,
        min_col=bounds.start_column,
        max_col=end_column,
        values_only=True,
    ):
        headers.extend(str(value) for value in row if value is not None)
    return headers


def handle_create_pivot_table(
    payload: CreatePivotTableToolInput, access: WorkbookAccess
) -> ToolResponse:
    """Validate a pivot table request without building the pivot table.

    The workbook is saved unchanged and the response carries the
    ``placeholder`` status so callers can tell nothing was materialized.
    """
    path = access.resolve_path(payload.file_path)
    workbook = access.load(path)
    sheet = get_worksheet(workbook, payload.sheet_name)
    bounds = parse_valid_range(payload.data_range)
    agg_func = resolve_aggregation(payload.agg_func)

    columns = payload.columns or []
    available = set(header_fields(sheet, bounds))
    missing = [
        field
        for field in [*payload.rows, *columns, *payload.values]
        if field not in available
    ]
    if missing:
        raise InvalidParamsError(
            f"Fields not found in the header row of {payload.data_range}: "
            f"{', '.join(missing)}"
        )

    access.persist(path, workbook)
    lines = [
        "[placeholder] Pivot table request accepted; no pivot table was created.",
        f"- Data range: {payload.data_range}",
        f"- Rows: {', '.join(payload.rows)}",
        f"- Columns: {', '.join(columns) if columns else '(none)'}",
        f"- Values: {', '.join(payload.values)}",
        f"- Aggregation: {agg_func}",
    ]
    return ToolResponse.from_text("\n".join(lines), status="placeholder")
