"""Tool handlers: one function per tool, each taking a validated payload."""

from __future__ import annotations

from .chart import handle_create_chart
from .data import handle_read_excel, handle_write_excel
from .format import handle_format_range, handle_merge_cells, handle_unmerge_cells
from .formula import handle_apply_formula, handle_validate_formula_syntax
from .pivot import handle_create_pivot_table
from .range import handle_copy_range, handle_delete_range, handle_validate_excel_range
from .workbook import (
    handle_create_excel,
    handle_create_sheet,
    handle_get_workbook_metadata,
)
from .worksheet import (
    handle_copy_worksheet,
    handle_delete_worksheet,
    handle_rename_worksheet,
)

__all__ = [
    "handle_apply_formula",
    "handle_copy_range",
    "handle_copy_worksheet",
    "handle_create_chart",
    "handle_create_excel",
    "handle_create_pivot_table",
    "handle_create_sheet",
    "handle_delete_range",
    "handle_delete_worksheet",
    "handle_format_range",
    "handle_get_workbook_metadata",
    "handle_merge_cells",
    "handle_read_excel",
    "handle_rename_worksheet",
    "handle_unmerge_cells",
    "handle_validate_excel_range",
    "handle_validate_formula_syntax",
    "handle_write_excel",
]
