"""
sheetseed/cells.py — Cell classification and value coercion.

Every openpyxl cell is classified into one CellKind and coerced to the
typed value that is bound downstream:

  NUMERIC  — float, or the date/time value when the cell is date formatted
  STRING   — str, unchanged (no trimming, no type inference)
  BOOLEAN  — bool
  BLANK    — None
  FORMULA  — resolved once through a FormulaEvaluator, then coerced
  ERROR    — AppError(CELL_ERROR) naming the cell address

Anything openpyxl reports that is not one of the above raises
AppError(UNSUPPORTED_CELL_TYPE).
"""
from __future__ import annotations

from enum import Enum
from io import BytesIO
from typing import Any, Optional, Protocol

from openpyxl import load_workbook
from openpyxl.workbook.workbook import Workbook

from .errors import AppError, CELL_ERROR, FORMULA_NOT_CACHED, UNSUPPORTED_CELL_TYPE
from .parsing import cell_address


class CellKind(Enum):
    NUMERIC = "numeric"
    STRING  = "string"
    BOOLEAN = "boolean"
    FORMULA = "formula"
    BLANK   = "blank"
    ERROR   = "error"


# openpyxl data_type tags -> CellKind.
# 'd' is a numeric cell openpyxl already converted because of its date format.
_KINDS = {
    "n":         CellKind.NUMERIC,
    "d":         CellKind.NUMERIC,
    "s":         CellKind.STRING,
    "str":       CellKind.STRING,
    "inlineStr": CellKind.STRING,
    "b":         CellKind.BOOLEAN,
    "f":         CellKind.FORMULA,
    "e":         CellKind.ERROR,
}


class FormulaEvaluator(Protocol):
    def evaluate(self, cell: Any) -> Any:
        """Return a cell holding the computed result of a formula cell."""
        ...


def cell_kind(cell: Any) -> Optional[CellKind]:
    """Classify a cell. Returns None for a tag this module does not know."""
    kind = _KINDS.get(getattr(cell, "data_type", None))
    if kind is CellKind.NUMERIC and cell.value is None:
        return CellKind.BLANK
    if kind is CellKind.STRING and cell.value is None:
        return CellKind.BLANK
    return kind


def is_date_cell(cell: Any) -> bool:
    return cell.data_type == "d" or bool(getattr(cell, "is_date", False))


def coerce(cell: Any, address: str, evaluator: Optional[FormulaEvaluator] = None) -> Any:
    """
    Convert one cell into its typed value.

    address is the Sheet!A1 reference reported in errors. Formula cells go
    through evaluator exactly once; the evaluated cell is coerced without an
    evaluator, so a formula result that is itself a formula is unsupported.
    """
    kind = cell_kind(cell)

    if kind is CellKind.NUMERIC:
        if is_date_cell(cell):
            return cell.value
        return float(cell.value)

    if kind is CellKind.STRING:
        return cell.value

    if kind is CellKind.BOOLEAN:
        return bool(cell.value)

    if kind is CellKind.BLANK:
        return None

    if kind is CellKind.FORMULA and evaluator is not None:
        return coerce(evaluator.evaluate(cell), address)

    if kind is CellKind.ERROR:
        raise AppError(CELL_ERROR, f"error value contained: {address}", {"address": address})

    raise AppError(UNSUPPORTED_CELL_TYPE, f"unsupported type: {address}", {"address": address})


class CachedValueEvaluator:
    """
    Resolve formula cells to the result Excel cached when the file was last
    saved. The cached-value copy of the workbook is loaded on first use.

    A formula whose result was never cached (for example a file written by
    openpyxl and never opened in Excel) raises AppError(FORMULA_NOT_CACHED).
    """

    def __init__(self, content: bytes):
        self._content = content
        self._cached: Optional[Workbook] = None

    def _workbook(self) -> Workbook:
        if self._cached is None:
            self._cached = load_workbook(BytesIO(self._content), data_only=True)
        return self._cached

    def evaluate(self, cell: Any) -> Any:
        ws = self._workbook()[cell.parent.title]
        cached = ws.cell(row=cell.row, column=cell.column)
        if cached.value is None and cell.data_type == "f":
            address = cell_address(cell.parent.title, cell.row - 1, cell.column - 1)
            raise AppError(
                FORMULA_NOT_CACHED,
                f"formula result not cached: {address}",
                {"address": address},
            )
        return cached

    def close(self) -> None:
        if self._cached is not None:
            self._cached.close()
            self._cached = None
