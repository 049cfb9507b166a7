from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

ResponseStatus = Literal["ok", "placeholder"]
ShiftDirection = Literal["up", "left"]


class TextBlock(BaseModel):
    """Single text content block."""

    type: Literal["text"] = "text"  # noqa: A003
    text: str


class ToolResponse(BaseModel):
    """Uniform tool response: exactly one text block."""

    content: list[TextBlock] = Field(default_factory=list)
    is_error: bool = False
    status: ResponseStatus = "ok"

    @classmethod
    def from_text(cls, text: str, *, status: ResponseStatus = "ok") -> ToolResponse:
        return cls(content=[TextBlock(text=text)], status=status)

    @property
    def text(self) -> str:
        return "\n".join(block.text for block in self.content)


class ToolInput(BaseModel):
    """Base model for tool arguments (camelCase on the wire)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class FileToolInput(ToolInput):
    file_path: str = Field(..., min_length=1)


class ReadExcelToolInput(FileToolInput):
    """MCP tool input for reading sheet data."""

    sheet_name: str | None = None
    range: str | None = None  # noqa: A003
    preview_only: bool = False


class WriteExcelToolInput(FileToolInput):
    """MCP tool input for writing rows of data."""

    data: list[Any]
    sheet_name: str | None = None
    start_cell: str = "A1"
    write_headers: bool = True

    @field_validator("data")
    @classmethod
    def _validate_rows(cls, value: list[Any]) -> list[Any]:
        if all(isinstance(row, list) for row in value):
            cells = [cell for row in value for cell in row]
        elif all(isinstance(row, dict) for row in value):
            cells = [cell for row in value for cell in row.values()]
        else:
            raise ValueError("Data must be an array of arrays or an array of objects")
        if any(isinstance(cell, (list, dict)) for cell in cells):
            raise ValueError("Cell values must be scalars, not arrays or objects")
        return value


class CreateSheetToolInput(FileToolInput):
    sheet_name: str = Field(..., min_length=1)


class CreateExcelToolInput(FileToolInput):
    sheet_name: str = Field(default="Sheet1", min_length=1)


class GetWorkbookMetadataToolInput(FileToolInput):
    include_ranges: bool = False


class RenameWorksheetToolInput(FileToolInput):
    old_name: str = Field(..., min_length=1)
    new_name: str = Field(..., min_length=1)


class DeleteWorksheetToolInput(FileToolInput):
    sheet_name: str = Field(..., min_length=1)


class CopyWorksheetToolInput(FileToolInput):
    source_sheet: str = Field(..., min_length=1)
    target_sheet: str = Field(..., min_length=1)


class FormulaToolInput(FileToolInput):
    """MCP tool input shared by apply_formula and validate_formula_syntax."""

    sheet_name: str
    cell: str
    formula: str


class FormatRangeToolInput(FileToolInput):
    """MCP tool input for cell formatting."""

    sheet_name: str
    start_cell: str
    end_cell: str | None = None
    bold: bool | None = None
    italic: bool | None = None
    underline: bool | None = None
    font_size: float | None = Field(default=None, gt=0)
    font_color: str | None = None
    bg_color: str | None = None
    border_style: str | None = None
    border_color: str | None = None
    number_format: str | None = None
    alignment: str | None = None
    wrap_text: bool | None = None
    merge_cells: bool | None = None


class MergeToolInput(FileToolInput):
    """MCP tool input shared by merge_cells and unmerge_cells."""

    sheet_name: str
    start_cell: str
    end_cell: str


class CopyRangeToolInput(FileToolInput):
    sheet_name: str
    source_start: str
    source_end: str
    target_start: str
    target_sheet: str | None = None


class DeleteRangeToolInput(FileToolInput):
    sheet_name: str
    start_cell: str
    end_cell: str
    shift_direction: ShiftDirection = "up"


class ValidateExcelRangeToolInput(FileToolInput):
    sheet_name: str
    start_cell: str
    end_cell: str | None = None


class CreateChartToolInput(FileToolInput):
    """MCP tool input for chart creation."""

    sheet_name: str
    data_range: str
    chart_type: str
    target_cell: str
    title: str | None = None
    x_axis: str | None = None
    y_axis: str | None = None


class CreatePivotTableToolInput(FileToolInput):
    """MCP tool input for pivot table requests."""

    sheet_name: str
    data_range: str
    rows: list[str] = Field(..., min_length=1)
    values: list[str] = Field(..., min_length=1)
    columns: list[str] | None = None
    agg_func: str = "sum"
