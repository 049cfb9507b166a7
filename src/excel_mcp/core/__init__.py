"""openpyxl document access used by the tool handlers."""

from __future__ import annotations

from .workbook import new_workbook, read_workbook

__all__ = ["new_workbook", "read_workbook"]
