from __future__ import annotations

from .a1 import (
    CellAddress,
    CellRange,
    column_index_to_label,
    column_label_to_index,
    format_address,
    format_cell,
    format_range,
    is_valid_range,
    join_range,
    parse_address,
    parse_cell_or_range,
    parse_range,
    parse_valid_range,
    ranges_overlap,
    require_valid_range,
)

__all__ = [
    "CellAddress",
    "CellRange",
    "column_index_to_label",
    "column_label_to_index",
    "format_address",
    "format_cell",
    "format_range",
    "is_valid_range",
    "join_range",
    "parse_address",
    "parse_cell_or_range",
    "parse_range",
    "parse_valid_range",
    "ranges_overlap",
    "require_valid_range",
]
