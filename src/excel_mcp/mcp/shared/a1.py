from __future__ import annotations

import re

from pydantic import BaseModel, Field

from ..errors import InvalidAddressError, InvalidRangeError

_A1_PATTERN = re.compile(r"^([A-Za-z]+)([0-9]+)$")
_COLUMN_LABEL_PATTERN = re.compile(r"^[A-Za-z]+$")


class CellAddress(BaseModel):
    """1-based cell coordinate."""

    row: int = Field(..., ge=1)
    column: int = Field(..., ge=1)


class CellRange(BaseModel):
    """Rectangle of cells; start and end are inclusive and 1-based.

    The constructor does not reorder reversed input. Use ``is_valid_range``
    before iterating.
    """

    start_row: int
    start_column: int
    end_row: int
    end_column: int

    @property
    def row_count(self) -> int:
        return self.end_row - self.start_row + 1

    @property
    def column_count(self) -> int:
        return self.end_column - self.start_column + 1

    @property
    def cell_count(self) -> int:
        return self.row_count * self.column_count

    @property
    def is_single_cell(self) -> bool:
        return self.start_row == self.end_row and self.start_column == self.end_column


def column_label_to_index(label: str) -> int:
    """Convert Excel-style column label (A/AA) to 1-based index."""
    normalized = label.strip().upper()
    if not _COLUMN_LABEL_PATTERN.match(normalized):
        raise InvalidAddressError(f"Invalid column label: {label}")
    index = 0
    for char in normalized:
        index = index * 26 + (ord(char) - ord("A") + 1)
    return index


def column_index_to_label(index: int) -> str:
    """Convert 1-based column index to Excel-style column label."""
    if index < 1:
        raise InvalidAddressError(f"Column index must be positive: {index}")
    chunks: list[str] = []
    current = index
    while current > 0:
        current -= 1
        chunks.append(chr(ord("A") + (current % 26)))
        current //= 26
    return "".join(reversed(chunks))


def parse_address(value: str) -> CellAddress:
    """Parse A1 notation (case-insensitive) into a 1-based address."""
    match = _A1_PATTERN.match(value.strip())
    if match is None:
        raise InvalidAddressError(f"Invalid cell reference format: {value}")
    letters, digits = match.groups()
    row = int(digits)
    if row < 1:
        raise InvalidAddressError(f"Row number must be positive: {value}")
    return CellAddress(row=row, column=column_label_to_index(letters))


def format_address(address: CellAddress) -> str:
    """Format an address as A1 notation."""
    return f"{column_index_to_label(address.column)}{address.row}"


def format_cell(row: int, column: int) -> str:
    """Format row/column as A1 cell address."""
    return f"{column_index_to_label(column)}{row}"


def parse_range(value: str) -> CellRange:
    """Parse ``START:END`` into a rectangle without reordering corners."""
    parts = value.strip().split(":")
    if len(parts) != 2:
        raise InvalidRangeError(
            f'Invalid range format: {value}. Format like "A1:C10" is required'
        )
    start = parse_address(parts[0])
    end = parse_address(parts[1])
    return CellRange(
        start_row=start.row,
        start_column=start.column,
        end_row=end.row,
        end_column=end.column,
    )


def parse_cell_or_range(value: str) -> CellRange:
    """Parse a range, or a single address as a one-cell range."""
    if ":" in value:
        return parse_range(value)
    address = parse_address(value)
    return CellRange(
        start_row=address.row,
        start_column=address.column,
        end_row=address.row,
        end_column=address.column,
    )


def join_range(start_cell: str, end_cell: str | None) -> str:
    """Build range text from a start cell and optional end cell."""
    if end_cell:
        return f"{start_cell}:{end_cell}"
    return start_cell


def format_range(cell_range: CellRange) -> str:
    """Format a rectangle as ``START:END``."""
    start = format_cell(cell_range.start_row, cell_range.start_column)
    end = format_cell(cell_range.end_row, cell_range.end_column)
    return f"{start}:{end}"


def is_valid_range(cell_range: CellRange) -> bool:
    """Return whether the rectangle is 1-based and not reversed."""
    return (
        cell_range.start_row >= 1
        and cell_range.start_column >= 1
        and cell_range.end_row >= cell_range.start_row
        and cell_range.end_column >= cell_range.start_column
    )


def require_valid_range(cell_range: CellRange, text: str) -> CellRange:
    """Return the rectangle or raise when it is reversed."""
    if not is_valid_range(cell_range):
        raise InvalidRangeError(
            f"Invalid range: {text}. The start cell must be above and to the "
            "left of the end cell."
        )
    return cell_range


def parse_valid_range(value: str) -> CellRange:
    """Parse a cell or range and reject reversed rectangles."""
    return require_valid_range(parse_cell_or_range(value), value)


def ranges_overlap(left: CellRange, right: CellRange) -> bool:
    """Return whether two rectangles share at least one cell."""
    return not (
        left.end_row < right.start_row
        or right.end_row < left.start_row
        or left.end_column < right.start_column
        or right.end_column < left.start_column
    )
