"""Typed tool failures and their conversion to MCP protocol errors."""

from __future__ import annotations

from typing import ClassVar

from mcp.shared.exceptions import McpError
from mcp.types import INTERNAL_ERROR, INVALID_PARAMS, ErrorData


class ExcelToolError(Exception):
    """Base class for failures reported to tool callers."""

    kind: ClassVar[str] = "InternalError"
    code: ClassVar[int] = INTERNAL_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_error_data(self) -> ErrorData:
        """Build the JSON-RPC error payload for this failure."""
        return ErrorData(
            code=self.code,
            message=f"{self.kind}: {self.message}",
            data={"kind": self.kind},
        )

    def to_mcp_error(self) -> McpError:
        """Convert to the MCP SDK exception type."""
        return McpError(self.to_error_data())


class InvalidParamsError(ExcelToolError):
    """Bad or missing argument, name collision, or invalid categorical value."""

    kind = "InvalidParams"
    code = INVALID_PARAMS


class InvalidAddressError(InvalidParamsError):
    """Malformed A1 cell address or column label."""


class InvalidRangeError(InvalidParamsError):
    """Malformed or reversed A1 range."""


class AlreadyExistsError(InvalidParamsError):
    """Target file or sheet name is already taken."""


class NotFoundError(ExcelToolError):
    """Referenced file or sheet is absent."""

    kind = "NotFound"
    code = INVALID_PARAMS


class WorkbookNotFoundError(NotFoundError):
    """No workbook file exists at the resolved path."""


class SheetNotFoundError(NotFoundError):
    """No worksheet with the requested name exists."""


class InternalToolError(ExcelToolError):
    """Unexpected failure from openpyxl or the filesystem."""


__all__ = [
    "AlreadyExistsError",
    "ExcelToolError",
    "InternalToolError",
    "InvalidAddressError",
    "InvalidParamsError",
    "InvalidRangeError",
    "NotFoundError",
    "SheetNotFoundError",
    "WorkbookNotFoundError",
]
