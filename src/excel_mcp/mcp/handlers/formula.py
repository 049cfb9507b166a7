from __future__ import annotations

import logging
import re
from typing import Final

from pydantic import BaseModel, Field

from ..errors import InvalidParamsError
from ..shared.a1 import format_address, parse_address
from ..tools import FormulaToolInput, ToolResponse
from ..workbooks import WorkbookAccess, get_worksheet

logger = logging.getLogger(__name__)

_TRAILING_OPERATOR = re.compile(r"[+\-*/]$")
_DOUBLED_OPERATOR = re.compile(r"[+\-*/]{2,}")
_FUNCTION_CALL = re.compile(r"([A-Za-z0-9_]+)\(")

# Illustrative, not authoritative: unknown names only produce a warning.
KNOWN_FUNCTIONS: Final[frozenset[str]] = frozenset(
    {
        "SUM", "AVERAGE", "COUNT", "MAX", "MIN", "IF", "AND", "OR", "NOT",
        "VLOOKUP", "HLOOKUP", "INDEX", "MATCH", "CONCATENATE", "LEFT", "RIGHT",
        "MID", "LEN", "FIND", "SEARCH", "SUBSTITUTE", "UPPER", "LOWER", "PROPER",
        "TODAY", "NOW", "DATE", "YEAR", "MONTH", "DAY", "HOUR", "MINUTE", "SECOND",
        "ROUND", "ROUNDUP", "ROUNDDOWN", "INT", "ABS", "SQRT", "POWER", "MOD",
        "SUMIF", "COUNTIF", "AVERAGEIF", "SUMIFS", "COUNTIFS", "AVERAGEIFS",
        "IFERROR", "IFNA", "IFS", "SWITCH", "CHOOSE", "INDIRECT", "OFFSET",
        "ROW", "COLUMN", "ROWS", "COLUMNS", "TRANSPOSE", "UNIQUE", "SORT",
        "FILTER", "RANDARRAY", "SEQUENCE", "XLOOKUP", "XMATCH", "LET", "LAMBDA",
    }
)  # fmt: skip


class FormulaCheck(BaseModel):
    """Result of the shallow formula syntax check."""

    valid: bool
    error: str | None = None
    unknown_functions: list[str] = Field(default_factory=list)


def strip_formula_prefix(formula: str) -> str:
    return formula[1:] if formula.startswith("=") else formula


def check_formula(formula: str) -> FormulaCheck:
    """Check parentheses, quotes and operator placement.

    This is a balance check, not a parser: it does not evaluate references or
    argument counts.
    """
    if not formula or not formula.strip():
        return FormulaCheck(valid=False, error="Formula is empty")
    body = strip_formula_prefix(formula)
    if body.count("(") != body.count(")"):
        return FormulaCheck(valid=False, error="Mismatched parentheses")
    if body.count('"') % 2 != 0:
        return FormulaCheck(valid=False, error="Mismatched quotation marks")
    if _TRAILING_OPERATOR.search(body):
        return FormulaCheck(valid=False, error="Formula ends with an operator")
    if _DOUBLED_OPERATOR.search(body):
        return FormulaCheck(valid=False, error="Consecutive operators")

    unknown: list[str] = []
    for name in _FUNCTION_CALL.findall(body):
        upper = name.upper()
        if upper not in KNOWN_FUNCTIONS and upper not in unknown:
            unknown.append(upper)
    for name in unknown:
        logger.warning('Unknown function name "%s" is used', name)
    return FormulaCheck(valid=True, unknown_functions=unknown)


def handle_apply_formula(
    payload: FormulaToolInput, access: WorkbookAccess
) -> ToolResponse:
    """Store a formula in a single cell."""
    path = access.resolve_path(payload.file_path)
    workbook = access.load(path)
    sheet = get_worksheet(workbook, payload.sheet_name)
    result = check_formula(payload.formula)
    if not result.valid:
        raise InvalidParamsError(f"Formula error: {result.error}")
    address = parse_address(payload.cell)
    sheet.cell(
        row=address.row,
        column=address.column,
        value=f"={strip_formula_prefix(payload.formula)}",
    )
    access.persist(path, workbook)
    return ToolResponse.from_text(
        f'Formula "{payload.formula}" successfully applied to cell '
        f"{format_address(address)}"
    )


def handle_validate_formula_syntax(
    payload: FormulaToolInput, access: WorkbookAccess
) -> ToolResponse:
    """Report formula syntax problems as text instead of raising."""
    path = access.resolve_path(payload.file_path)
    workbook = access.load(path)
    get_worksheet(workbook, payload.sheet_name)
    result = check_formula(payload.formula)
    if not result.valid:
        return ToolResponse.from_text(f"Formula error: {result.error}")
    message = f'Formula "{payload.formula}" is valid'
    if result.unknown_functions:
        message += (
            " (unrecognized function names: "
            + ", ".join(result.unknown_functions)
            + ")"
        )
    return ToolResponse.from_text(message)
