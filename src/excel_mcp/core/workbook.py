from __future__ import annotations

from pathlib import Path
import warnings

from openpyxl import Workbook, load_workbook


def read_workbook(file_path: Path) -> Workbook:
    """Load an editable openpyxl workbook.

    Args:
        file_path: Workbook path.

    Returns:
        openpyxl workbook instance kept open for in-place edits.
    """
    keep_vba = file_path.suffix.lower() in {".xlsm", ".xltm"}
    with warnings.catch_warnings():
        warnings.filterwarnings(
            "ignore",
            message="Unknown extension is not supported and will be removed",
            category=UserWarning,
            module="openpyxl",
        )
        warnings.filterwarnings(
            "ignore",
            message="Conditional Formatting extension is not supported and will be removed",
            category=UserWarning,
            module="openpyxl",
        )
        warnings.filterwarnings(
            "ignore",
            message="Cannot parse header or footer so it will be ignored",
            category=UserWarning,
            module="openpyxl",
        )
        return load_workbook(file_path, keep_vba=keep_vba)


def new_workbook(sheet_name: str) -> Workbook:
    """Create an in-memory workbook with one named sheet."""
    wb = Workbook()
    sheet = wb.active
    sheet.title = sheet_name
    return wb
