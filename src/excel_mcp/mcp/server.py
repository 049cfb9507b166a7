from __future__ import annotations

import argparse
import functools
import importlib
import logging
import os
from pathlib import Path
import sys
from types import ModuleType
from typing import TYPE_CHECKING, Any, Literal

import anyio
from pydantic import BaseModel, Field

from .cache import WorkbookCache
from .dispatcher import TOOL_ROUTES_BY_NAME, ToolDispatcher
from .io import PathPolicy

if TYPE_CHECKING:  # pragma: no cover - typing only
    from mcp.server.fastmcp import FastMCP

logger = logging.getLogger(__name__)

ROOT_ENV_VAR = "EXCEL_FILES_PATH"
DEFAULT_ROOT = Path("excel_files")


class ServerConfig(BaseModel):
    """Configuration for the MCP server process."""

    root: Path = Field(..., description="Base directory for relative file paths.")
    log_level: str = Field(default="INFO", description="Logging level.")
    log_file: Path | None = Field(default=None, description="Optional log file path.")


def main(argv: list[str] | None = None) -> int:
    """Run the MCP server entrypoint.

    Args:
        argv: Optional CLI arguments for testing.

    Returns:
        Exit code (0 for success, 1 for failure).
    """
    config = _parse_args(argv)
    _configure_logging(config)
    try:
        run_server(config)
    except Exception as exc:  # pragma: no cover - surface runtime errors
        logger.error("MCP server failed: %s", exc)
        return 1
    return 0


def run_server(config: ServerConfig) -> None:
    """Start the MCP server over stdio.

    Args:
        config: Server configuration.
    """
    _import_mcp()
    policy = PathPolicy(root=config.root)
    logger.info("Excel files root: %s", policy.ensure_root())
    app = _create_app(policy)
    app.run()


def _parse_args(argv: list[str] | None) -> ServerConfig:
    """Parse CLI arguments into server config.

    Args:
        argv: Optional CLI argument list.

    Returns:
        Parsed server configuration.
    """
    parser = argparse.ArgumentParser(description="Excel MCP server (stdio).")
    parser.add_argument(
        "--root",
        type=Path,
        default=None,
        help=f"Base directory for relative paths (default: ${ROOT_ENV_VAR} "
        f"or ./{DEFAULT_ROOT}).",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ERROR).",
    )
    parser.add_argument("--log-file", type=Path, help="Optional log file path.")
    args = parser.parse_args(argv)
    root = args.root
    if root is None:
        env_root = os.getenv(ROOT_ENV_VAR)
        root = Path(env_root) if env_root else DEFAULT_ROOT
    return ServerConfig(root=root, log_level=args.log_level, log_file=args.log_file)


def _configure_logging(config: ServerConfig) -> None:
    """Configure logging for the server process.

    Stdout carries protocol frames, so console logs go to stderr.

    Args:
        config: Server configuration.
    """
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.log_file is not None:
        handlers.append(logging.FileHandler(config.log_file))
    logging.basicConfig(
        level=config.log_level.upper(),
        handlers=handlers,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _import_mcp() -> ModuleType:
    """Import the MCP SDK module or raise a helpful error.

    Returns:
        Imported MCP module.
    """
    try:
        return importlib.import_module("mcp")
    except ModuleNotFoundError as exc:
        raise RuntimeError(
            "MCP SDK is not installed. Install with `pip install mcp`."
        ) from exc


def _create_app(policy: PathPolicy) -> FastMCP:
    """Create the MCP FastMCP application.

    Args:
        policy: Path policy for resolving workbook paths.

    Returns:
        FastMCP application instance.
    """
    from mcp.server.fastmcp import FastMCP

    app = FastMCP("Excel MCP")
    dispatcher = ToolDispatcher(policy, WorkbookCache())
    _register_tools(app, dispatcher)
    return app


async def _run_tool(
    dispatcher: ToolDispatcher, name: str, arguments: dict[str, Any]
) -> str:
    """Dispatch one call in a worker thread and return its text content."""
    work = functools.partial(dispatcher.dispatch, name, _drop_none(arguments))
    response = await anyio.to_thread.run_sync(work)
    return response.text


def _drop_none(arguments: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in arguments.items() if value is not None}


def _register(app: FastMCP, name: str, func: Any) -> None:
    tool = app.tool(
        name=name,
        description=TOOL_ROUTES_BY_NAME[name].description,
        structured_output=False,
    )
    tool(func)


def _register_tools(app: FastMCP, dispatcher: ToolDispatcher) -> None:
    """Register MCP tools for the server.

    Parameter names are the camelCase argument names seen by clients.

    Args:
        app: FastMCP application instance.
        dispatcher: Tool dispatcher bound to the session's workbook cache.
    """

    async def _read_excel_tool(  # noqa: N803
        filePath: str,
        sheetName: str | None = None,
        range: str | None = None,  # noqa: A002
        previewOnly: bool = False,
    ) -> str:
        """Read a sheet range; the first row is used as object keys."""
        return await _run_tool(
            dispatcher,
            "read_excel",
            {
                "filePath": filePath,
                "sheetName": sheetName,
                "range": range,
                "previewOnly": previewOnly,
            },
        )

    _register(app, "read_excel", _read_excel_tool)

    async def _write_excel_tool(  # noqa: N803
        filePath: str,
        data: list[Any],
        sheetName: str | None = None,
        startCell: str = "A1",
        writeHeaders: bool = True,
    ) -> str:
        return await _run_tool(
            dispatcher,
            "write_excel",
            {
                "filePath": filePath,
                "data": data,
                "sheetName": sheetName,
                "startCell": startCell,
                "writeHeaders": writeHeaders,
            },
        )

    _register(app, "write_excel", _write_excel_tool)

    async def _create_sheet_tool(filePath: str, sheetName: str) -> str:  # noqa: N803
        return await _run_tool(
            dispatcher,
            "create_sheet",
            {"filePath": filePath, "sheetName": sheetName},
        )

    _register(app, "create_sheet", _create_sheet_tool)

    async def _create_excel_tool(  # noqa: N803
        filePath: str, sheetName: str = "Sheet1"
    ) -> str:
        return await _run_tool(
            dispatcher,
            "create_excel",
            {"filePath": filePath, "sheetName": sheetName},
        )

    _register(app, "create_excel", _create_excel_tool)

    async def _get_workbook_metadata_tool(  # noqa: N803
        filePath: str, includeRanges: bool = False
    ) -> str:
        return await _run_tool(
            dispatcher,
            "get_workbook_metadata",
            {"filePath": filePath, "includeRanges": includeRanges},
        )

    _register(app, "get_workbook_metadata", _get_workbook_metadata_tool)

    async def _rename_worksheet_tool(  # noqa: N803
        filePath: str, oldName: str, newName: str
    ) -> str:
        return await _run_tool(
            dispatcher,
            "rename_worksheet",
            {"filePath": filePath, "oldName": oldName, "newName": newName},
        )

    _register(app, "rename_worksheet", _rename_worksheet_tool)

    async def _delete_worksheet_tool(filePath: str, sheetName: str) -> str:  # noqa: N803
        return await _run_tool(
            dispatcher,
            "delete_worksheet",
            {"filePath": filePath, "sheetName": sheetName},
        )

    _register(app, "delete_worksheet", _delete_worksheet_tool)

    async def _copy_worksheet_tool(  # noqa: N803
        filePath: str, sourceSheet: str, targetSheet: str
    ) -> str:
        return await _run_tool(
            dispatcher,
            "copy_worksheet",
            {
                "filePath": filePath,
                "sourceSheet": sourceSheet,
                "targetSheet": targetSheet,
            },
        )

    _register(app, "copy_worksheet", _copy_worksheet_tool)

    def _formula_tool(name: str) -> Any:
        async def _tool(  # noqa: N803
            filePath: str, sheetName: str, cell: str, formula: str
        ) -> str:
            return await _run_tool(
                dispatcher,
                name,
                {
                    "filePath": filePath,
                    "sheetName": sheetName,
                    "cell": cell,
                    "formula": formula,
                },
            )

        return _tool

    _register(app, "apply_formula", _formula_tool("apply_formula"))
    _register(
        app, "validate_formula_syntax", _formula_tool("validate_formula_syntax")
    )

    async def _format_range_tool(  # noqa: N803
        filePath: str,
        sheetName: str,
        startCell: str,
        endCell: str | None = None,
        bold: bool | None = None,
        italic: bool | None = None,
        underline: bool | None = None,
        fontSize: float | None = None,
        fontColor: str | None = None,
        bgColor: str | None = None,
        borderStyle: str | None = None,
        borderColor: str | None = None,
        numberFormat: str | None = None,
        alignment: str | None = None,
        wrapText: bool | None = None,
        mergeCells: bool | None = None,
    ) -> str:
        return await _run_tool(
            dispatcher,
            "format_range",
            {
                "filePath": filePath,
                "sheetName": sheetName,
                "startCell": startCell,
                "endCell": endCell,
                "bold": bold,
                "italic": italic,
                "underline": underline,
                "fontSize": fontSize,
                "fontColor": fontColor,
                "bgColor": bgColor,
                "borderStyle": borderStyle,
                "borderColor": borderColor,
                "numberFormat": numberFormat,
                "alignment": alignment,
                "wrapText": wrapText,
                "mergeCells": mergeCells,
            },
        )

    _register(app, "format_range", _format_range_tool)

    def _merge_tool(name: str) -> Any:
        async def _tool(  # noqa: N803
            filePath: str, sheetName: str, startCell: str, endCell: str
        ) -> str:
            return await _run_tool(
                dispatcher,
                name,
                {
                    "filePath": filePath,
                    "sheetName": sheetName,
                    "startCell": startCell,
                    "endCell": endCell,
                },
            )

        return _tool

    _register(app, "merge_cells", _merge_tool("merge_cells"))
    _register(app, "unmerge_cells", _merge_tool("unmerge_cells"))

    async def _copy_range_tool(  # noqa: N803
        filePath: str,
        sheetName: str,
        sourceStart: str,
        sourceEnd: str,
        targetStart: str,
        targetSheet: str | None = None,
    ) -> str:
        return await _run_tool(
            dispatcher,
            "copy_range",
            {
                "filePath": filePath,
                "sheetName": sheetName,
                "sourceStart": sourceStart,
                "sourceEnd": sourceEnd,
                "targetStart": targetStart,
                "targetSheet": targetSheet,
            },
        )

    _register(app, "copy_range", _copy_range_tool)

    async def _delete_range_tool(  # noqa: N803
        filePath: str,
        sheetName: str,
        startCell: str,
        endCell: str,
        shiftDirection: Literal["up", "left"] = "up",
    ) -> str:
        return await _run_tool(
            dispatcher,
            "delete_range",
            {
                "filePath": filePath,
                "sheetName": sheetName,
                "startCell": startCell,
                "endCell": endCell,
                "shiftDirection": shiftDirection,
            },
        )

    _register(app, "delete_range", _delete_range_tool)

    async def _validate_excel_range_tool(  # noqa: N803
        filePath: str, sheetName: str, startCell: str, endCell: str | None = None
    ) -> str:
        return await _run_tool(
            dispatcher,
            "validate_excel_range",
            {
                "filePath": filePath,
                "sheetName": sheetName,
                "startCell": startCell,
                "endCell": endCell,
            },
        )

    _register(app, "validate_excel_range", _validate_excel_range_tool)

    async def _create_chart_tool(  # noqa: N803
        filePath: str,
        sheetName: str,
        dataRange: str,
        chartType: str,
        targetCell: str,
        title: str | None = None,
        xAxis: str | None = None,
        yAxis: str | None = None,
    ) -> str:
        """Insert a native chart; first row holds series names, first column labels."""
        return await _run_tool(
            dispatcher,
            "create_chart",
            {
                "filePath": filePath,
                "sheetName": sheetName,
                "dataRange": dataRange,
                "chartType": chartType,
                "targetCell": targetCell,
                "title": title,
                "xAxis": xAxis,
                "yAxis": yAxis,
            },
        )

    _register(app, "create_chart", _create_chart_tool)

    async def _create_pivot_table_tool(  # noqa: N803
        filePath: str,
        sheetName: str,
        dataRange: str,
        rows: list[str],
        values: list[str],
        columns: list[str] | None = None,
        aggFunc: str = "sum",
    ) -> str:
        return await _run_tool(
            dispatcher,
            "create_pivot_table",
            {
                "filePath": filePath,
                "sheetName": sheetName,
                "dataRange": dataRange,
                "rows": rows,
                "values": values,
                "columns": columns,
                "aggFunc": aggFunc,
            },
        )

    _register(app, "create_pivot_table", _create_pivot_table_tool)
