from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
import logging
import threading
from typing import Any

from mcp.shared.exceptions import McpError
from mcp.types import METHOD_NOT_FOUND, ErrorData
from pydantic import ValidationError

from .cache import WorkbookCache
from .errors import ExcelToolError, InternalToolError, InvalidParamsError
from .handlers import (
    handle_apply_formula,
    handle_copy_range,
    handle_copy_worksheet,
    handle_create_chart,
    handle_create_excel,
    handle_create_pivot_table,
    handle_create_sheet,
    handle_delete_range,
    handle_delete_worksheet,
    handle_format_range,
    handle_get_workbook_metadata,
    handle_merge_cells,
    handle_read_excel,
    handle_rename_worksheet,
    handle_unmerge_cells,
    handle_validate_excel_range,
    handle_validate_formula_syntax,
    handle_write_excel,
)
from .io import PathPolicy
from .tools import (
    CopyRangeToolInput,
    CopyWorksheetToolInput,
    CreateChartToolInput,
    CreateExcelToolInput,
    CreatePivotTableToolInput,
    CreateSheetToolInput,
    DeleteRangeToolInput,
    DeleteWorksheetToolInput,
    FormatRangeToolInput,
    FormulaToolInput,
    GetWorkbookMetadataToolInput,
    MergeToolInput,
    ReadExcelToolInput,
    RenameWorksheetToolInput,
    ToolInput,
    ToolResponse,
    ValidateExcelRangeToolInput,
    WriteExcelToolInput,
)
from .workbooks import WorkbookAccess

logger = logging.getLogger(__name__)

Handler = Callable[[Any, WorkbookAccess], ToolResponse]


@dataclass(frozen=True)
class ToolRoute:
    """Routing entry for one tool name."""

    name: str
    input_model: type[ToolInput]
    handler: Handler
    error_label: str
    description: str


TOOL_ROUTES: tuple[ToolRoute, ...] = (
    ToolRoute(
        "read_excel",
        ReadExcelToolInput,
        handle_read_excel,
        "Data reading error",
        "Read a sheet range as header-keyed row objects.",
    ),
    ToolRoute(
        "write_excel",
        WriteExcelToolInput,
        handle_write_excel,
        "Data writing error",
        "Write rows (arrays or objects) starting at a cell.",
    ),
    ToolRoute(
        "create_sheet",
        CreateSheetToolInput,
        handle_create_sheet,
        "Sheet creation error",
        "Add a new worksheet to an existing workbook.",
    ),
    ToolRoute(
        "create_excel",
        CreateExcelToolInput,
        handle_create_excel,
        "Excel file creation error",
        "Create a new workbook file with one sheet.",
    ),
    ToolRoute(
        "get_workbook_metadata",
        GetWorkbookMetadataToolInput,
        handle_get_workbook_metadata,
        "Metadata retrieval error",
        "Describe the workbook and its sheets.",
    ),
    ToolRoute(
        "rename_worksheet",
        RenameWorksheetToolInput,
        handle_rename_worksheet,
        "Sheet rename error",
        "Rename a worksheet.",
    ),
    ToolRoute(
        "delete_worksheet",
        DeleteWorksheetToolInput,
        handle_delete_worksheet,
        "Sheet deletion error",
        "Delete a worksheet; the last sheet cannot be deleted.",
    ),
    ToolRoute(
        "copy_worksheet",
        CopyWorksheetToolInput,
        handle_copy_worksheet,
        "Sheet copy error",
        "Copy a worksheet, including styles and merged cells.",
    ),
    ToolRoute(
        "apply_formula",
        FormulaToolInput,
        handle_apply_formula,
        "Formula application error",
        "Check a formula and write it to a cell.",
    ),
    ToolRoute(
        "validate_formula_syntax",
        FormulaToolInput,
        handle_validate_formula_syntax,
        "Formula validation error",
        "Check a formula's syntax without writing it.",
    ),
    ToolRoute(
        "format_range",
        FormatRangeToolInput,
        handle_format_range,
        "Formatting error",
        "Apply font, fill, border, number format and alignment to a range.",
    ),
    ToolRoute(
        "merge_cells",
        MergeToolInput,
        handle_merge_cells,
        "Cell merge error",
        "Merge a rectangular range.",
    ),
    ToolRoute(
        "unmerge_cells",
        MergeToolInput,
        handle_unmerge_cells,
        "Cell unmerge error",
        "Unmerge every merged range intersecting a range.",
    ),
    ToolRoute(
        "copy_range",
        CopyRangeToolInput,
        handle_copy_range,
        "Range copy error",
        "Copy values and styles of a range to another location.",
    ),
    ToolRoute(
        "delete_range",
        DeleteRangeToolInput,
        handle_delete_range,
        "Range deletion error",
        "Clear a range and shift the remaining cells up or left.",
    ),
    ToolRoute(
        "validate_excel_range",
        ValidateExcelRangeToolInput,
        handle_validate_excel_range,
        "Range validation error",
        "Check a range against the sheet and count populated cells.",
    ),
    ToolRoute(
        "create_chart",
        CreateChartToolInput,
        handle_create_chart,
        "Chart creation error",
        "Insert a chart built from a data range.",
    ),
    ToolRoute(
        "create_pivot_table",
        CreatePivotTableToolInput,
        handle_create_pivot_table,
        "Pivot table creation error",
        "Validate a pivot table request (placeholder: nothing is created).",
    ),
)

TOOL_ROUTES_BY_NAME: dict[str, ToolRoute] = {route.name: route for route in TOOL_ROUTES}


class ToolDispatcher:
    """Route tool calls to handlers and normalize every failure to McpError.

    Calls are serialized: handlers share mutable cached workbooks.
    """

    def __init__(self, policy: PathPolicy, cache: WorkbookCache | None = None) -> None:
        self.cache = cache if cache is not None else WorkbookCache()
        self.access = WorkbookAccess(policy, self.cache)
        self._lock = threading.Lock()

    def dispatch(self, name: str, arguments: Mapping[str, Any] | None) -> ToolResponse:
        """Run one tool call.

        Args:
            name: Tool name.
            arguments: Raw camelCase argument bag.

        Returns:
            Tool response.

        Raises:
            McpError: For unknown tools and every handler failure.
        """
        route = TOOL_ROUTES_BY_NAME.get(name)
        if route is None:
            raise McpError(
                ErrorData(code=METHOD_NOT_FOUND, message=f"Unknown tool: {name}")
            )
        logger.info("Dispatching tool %s", name)
        try:
            payload = route.input_model.model_validate(dict(arguments or {}))
            with self._lock:
                return route.handler(payload, self.access)
        except ValidationError as exc:
            raise InvalidParamsError(
                f"Invalid arguments for {name}: {_summarize(exc)}"
            ).to_mcp_error() from exc
        except ExcelToolError as exc:
            raise exc.to_mcp_error() from exc
        except Exception as exc:
            logger.exception("Tool %s failed", name)
            raise InternalToolError(
                f"{route.error_label}: {exc}"
            ).to_mcp_error() from exc


def _summarize(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error["loc"])
        parts.append(f"{location}: {error['msg']}" if location else error["msg"])
    return "; ".join(parts)
