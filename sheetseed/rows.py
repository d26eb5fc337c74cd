from __future__ import annotations

from typing import Any, Iterator, List, Optional, Tuple

from .cells import FormulaEvaluator, coerce
from .io import SheetView
from .models import Margin
from .parsing import cell_address


def first_data_row(margin: Margin, skip_after_header: int = 0) -> int:
    return margin.top + 1 + skip_after_header


def iter_rows(
    sheet: SheetView,
    width: int,
    margin: Margin,
    skip_after_header: int = 0,
    evaluator: Optional[FormulaEvaluator] = None,
) -> Iterator[Tuple[Any, ...]]:
    """
    Yield one value tuple per data row, each exactly `width` long.

    Reading stops at the first row index with no row; rows after a gap are
    never read. Absent cells become None. Cell errors propagate with the
    address of the cell that caused them.
    """
    r = first_data_row(margin, skip_after_header)
    while sheet.has_row(r):
        values = []
        for c in range(margin.left, margin.left + width):
            cell = sheet.cell(r, c)
            if cell is None:
                values.append(None)
            else:
                values.append(coerce(cell, cell_address(sheet.name, r, c), evaluator))
        yield tuple(values)
        r += 1


def read_rows(
    sheet: SheetView,
    width: int,
    margin: Margin,
    skip_after_header: int = 0,
    evaluator: Optional[FormulaEvaluator] = None,
) -> List[Tuple[Any, ...]]:
    return list(iter_rows(sheet, width, margin, skip_after_header, evaluator))
