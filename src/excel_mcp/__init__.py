"""Excel tools for MCP clients: read, write, format and chart .xlsx workbooks."""

from __future__ import annotations

__version__ = "0.1.0"
