"""MCP server exposing spreadsheet tools backed by openpyxl."""

from __future__ import annotations

from .cache import WorkbookCache
from .dispatcher import TOOL_ROUTES, ToolDispatcher
from .io import PathPolicy
from .tools import ToolResponse
from .workbooks import WorkbookAccess

__all__ = [
    "TOOL_ROUTES",
    "PathPolicy",
    "ToolDispatcher",
    "ToolResponse",
    "WorkbookAccess",
    "WorkbookCache",
]
