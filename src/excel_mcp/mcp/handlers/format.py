from __future__ import annotations

from copy import copy
import logging
import re
from typing import Final

from openpyxl.styles import Border, PatternFill, Side
from openpyxl.worksheet.cell_range import CellRange as OpenpyxlCellRange
from openpyxl.worksheet.worksheet import Worksheet

from ..errors import InvalidParamsError
from ..shared.a1 import CellRange, join_range, parse_valid_range, ranges_overlap
from ..tools import FormatRangeToolInput, MergeToolInput, ToolResponse
from ..workbooks import WorkbookAccess, get_worksheet

logger = logging.getLogger(__name__)

_ARGB_PATTERN = re.compile(r"^#?([0-9A-Fa-f]{8})$")
_RGB_PATTERN = re.compile(r"^#?([0-9A-Fa-f]{6})$")
DEFAULT_COLOR: Final[str] = "FF000000"

COLOR_NAMES: Final[dict[str, str]] = {
    "black": "FF000000",
    "white": "FFFFFFFF",
    "red": "FFFF0000",
    "green": "FF00FF00",
    "blue": "FF0000FF",
    "yellow": "FFFFFF00",
    "cyan": "FF00FFFF",
    "magenta": "FFFF00FF",
    "gray": "FF808080",
    "grey": "FF808080",
    "lightgray": "FFD3D3D3",
    "lightgrey": "FFD3D3D3",
    "darkgray": "FFA9A9A9",
    "darkgrey": "FFA9A9A9",
    "orange": "FFFFA500",
    "purple": "FF800080",
    "brown": "FFA52A2A",
}

BORDER_STYLES: Final[dict[str, str | None]] = {
    "thin": "thin",
    "medium": "medium",
    "thick": "thick",
    "dotted": "dotted",
    "dashed": "dashed",
    "double": "double",
    "none": None,
}


def parse_color(color: str) -> str:
    """Normalize a color name or hex value to ARGB."""
    candidate = color.strip()
    argb = _ARGB_PATTERN.match(candidate)
    if argb:
        return argb.group(1).upper()
    rgb = _RGB_PATTERN.match(candidate)
    if rgb:
        return f"FF{rgb.group(1).upper()}"
    named = COLOR_NAMES.get(candidate.lower())
    if named is not None:
        return named
    logger.warning("Unknown color %r; using black.", color)
    return DEFAULT_COLOR


def parse_border_style(style: str) -> str | None:
    """Map a border style name to openpyxl; unknown names become thin."""
    key = style.strip().lower()
    if key in BORDER_STYLES:
        return BORDER_STYLES[key]
    return "thin"


def parse_alignment(alignment: str) -> tuple[str | None, str | None]:
    """Extract (horizontal, vertical) keywords from free-form alignment text."""
    text = alignment.lower()
    horizontal: str | None = None
    vertical: str | None = None
    if "left" in text:
        horizontal = "left"
    elif "center" in text:
        horizontal = "center"
    elif "right" in text:
        horizontal = "right"
    if "top" in text:
        vertical = "top"
    elif "middle" in text:
        vertical = "center"
    elif "bottom" in text:
        vertical = "bottom"
    return horizontal, vertical


def handle_format_range(
    payload: FormatRangeToolInput, access: WorkbookAccess
) -> ToolResponse:
    """Apply font, fill, border, number format and alignment to a range."""
    path = access.resolve_path(payload.file_path)
    workbook = access.load(path)
    sheet = get_worksheet(workbook, payload.sheet_name)
    range_text = join_range(payload.start_cell, payload.end_cell)
    bounds = parse_valid_range(range_text)

    font_color = parse_color(payload.font_color) if payload.font_color else None
    fill = None
    if payload.bg_color is not None:
        bg = parse_color(payload.bg_color)
        fill = PatternFill(fill_type="solid", start_color=bg, end_color=bg)
    border = None
    if payload.border_style is not None:
        border = _build_border(payload.border_style, payload.border_color)
    horizontal, vertical = (
        parse_alignment(payload.alignment) if payload.alignment else (None, None)
    )
    if payload.merge_cells:
        check_mergeable(sheet, bounds)

    for row in sheet.iter_rows(
        min_row=bounds.start_row,
        max_row=bounds.end_row,
        min_col=bounds.start_column,
        max_col=bounds.end_column,
    ):
        for cell in row:
            font = copy(cell.font)
            if payload.bold is not None:
                font.bold = payload.bold
            if payload.italic is not None:
                font.italic = payload.italic
            if payload.underline is not None:
                font.underline = "single" if payload.underline else None
            if payload.font_size is not None:
                font.size = payload.font_size
            if font_color is not None:
                font.color = font_color
            cell.font = font
            if fill is not None:
                cell.fill = copy(fill)
            if border is not None:
                cell.border = copy(border)
            if payload.number_format is not None:
                cell.number_format = payload.number_format
            if horizontal or vertical or payload.wrap_text is not None:
                alignment = copy(cell.alignment)
                if horizontal:
                    alignment.horizontal = horizontal
                if vertical:
                    alignment.vertical = vertical
                if payload.wrap_text is not None:
                    alignment.wrap_text = payload.wrap_text
                cell.alignment = alignment

    if payload.merge_cells:
        merge_range(sheet, bounds)

    access.persist(path, workbook)
    return ToolResponse.from_text(f"Range {range_text} formatted successfully")


def handle_merge_cells(payload: MergeToolInput, access: WorkbookAccess) -> ToolResponse:
    """Merge a rectangle into one cell."""
    path = access.resolve_path(payload.file_path)
    workbook = access.load(path)
    sheet = get_worksheet(workbook, payload.sheet_name)
    range_text = join_range(payload.start_cell, payload.end_cell)
    merge_range(sheet, parse_valid_range(range_text))
    access.persist(path, workbook)
    return ToolResponse.from_text(f"Cell range {range_text} merged successfully")


def handle_unmerge_cells(
    payload: MergeToolInput, access: WorkbookAccess
) -> ToolResponse:
    """Unmerge every merged range that intersects the given rectangle."""
    path = access.resolve_path(payload.file_path)
    workbook = access.load(path)
    sheet = get_worksheet(workbook, payload.sheet_name)
    range_text = join_range(payload.start_cell, payload.end_cell)
    targets = intersecting_merged_ranges(sheet, parse_valid_range(range_text))
    if not targets:
        return ToolResponse.from_text(f"No merged cells found in range {range_text}")
    for merged in targets:
        sheet.unmerge_cells(merged)
    access.persist(path, workbook)
    return ToolResponse.from_text(
        f"Cell range {range_text} unmerged successfully "
        f"({len(targets)} merged range(s): {', '.join(targets)})"
    )


def check_mergeable(sheet: Worksheet, bounds: CellRange) -> None:
    """Reject single cells and rectangles overlapping an existing merge."""
    if bounds.is_single_cell:
        raise InvalidParamsError("Merge range must span more than one cell")
    overlapped = intersecting_merged_ranges(sheet, bounds)
    if overlapped:
        raise InvalidParamsError(
            "Merge range overlaps existing merged ranges: " + ", ".join(overlapped)
        )


def merge_range(sheet: Worksheet, bounds: CellRange) -> None:
    """Merge a rectangle after rejecting single cells and overlapping merges."""
    check_mergeable(sheet, bounds)
    sheet.merge_cells(
        start_row=bounds.start_row,
        start_column=bounds.start_column,
        end_row=bounds.end_row,
        end_column=bounds.end_column,
    )


def intersecting_merged_ranges(sheet: Worksheet, scope: CellRange) -> list[str]:
    """Return merged range refs that share a cell with the scope."""
    intersections: list[str] = []
    for merged in sheet.merged_cells.ranges:
        if ranges_overlap(scope, _from_openpyxl(merged)):
            intersections.append(merged.coord)
    return sorted(intersections)


def _from_openpyxl(cell_range: OpenpyxlCellRange) -> CellRange:
    return CellRange(
        start_row=cell_range.min_row,
        start_column=cell_range.min_col,
        end_row=cell_range.max_row,
        end_column=cell_range.max_col,
    )


def _build_border(style_name: str, color: str | None) -> Border:
    style = parse_border_style(style_name)
    if style is None:
        return Border()
    side = Side(style=style, color=parse_color(color) if color else DEFAULT_COLOR)
    return Border(left=side, right=side, top=side, bottom=side)
