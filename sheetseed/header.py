from __future__ import annotations

from typing import Optional, Tuple

from .cells import FormulaEvaluator, coerce
from .errors import (
    AppError,
    HEADER_CELL_BLANK, HEADER_CELL_NOT_STRING, HEADER_ROW_NOT_FOUND,
)
from .io import SheetView
from .models import Margin
from .parsing import cell_address


def _header_row_not_found(sheet: SheetView, row: int) -> AppError:
    return AppError(
        HEADER_ROW_NOT_FOUND,
        f"header row not found: {sheet.name}[{row}]",
        {"sheet": sheet.name, "row": row},
    )


def header_width(sheet: SheetView, margin: Margin) -> int:
    """
    Number of header columns right of margin.left, up to the last populated
    cell of the header row. Raises HEADER_ROW_NOT_FOUND when the row is absent
    or has nothing right of the margin.
    """
    if not sheet.has_row(margin.top):
        raise _header_row_not_found(sheet, margin.top)
    width = sheet.last_cell_num(margin.top) - margin.left
    if width <= 0:
        raise _header_row_not_found(sheet, margin.top)
    return width


def extract_header(
    sheet: SheetView,
    margin: Margin,
    evaluator: Optional[FormulaEvaluator] = None,
) -> Tuple[str, ...]:
    """
    Read the header row at margin.top into the ordered column names.

    Every header cell must exist and coerce to a non-empty string; numbers and
    booleans are rejected, not stringified. Duplicate names pass through.
    """
    width = header_width(sheet, margin)
    row = margin.top

    columns = []
    for c in range(margin.left, margin.left + width):
        address = cell_address(sheet.name, row, c)
        cell = sheet.cell(row, c)
        if cell is None:
            raise AppError(HEADER_CELL_BLANK, f"header cell must not be blank: {address}", {"address": address})

        value = coerce(cell, address, evaluator)
        if value is None or value == "":
            raise AppError(HEADER_CELL_BLANK, f"header cell must not be blank: {address}", {"address": address})
        if not isinstance(value, str):
            raise AppError(HEADER_CELL_NOT_STRING, f"header cell must be string type: {address}", {"address": address})
        columns.append(value)

    return tuple(columns)
