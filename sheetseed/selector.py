"""
sheetseed/selector.py — Sheet selection.

Decides which worksheets take part in an import, in workbook order:

  hidden / veryHidden — always skipped, whatever the patterns say.
  include             — sheet kept when its full name matches any pattern.
                        An empty include list keeps every visible sheet.
  exclude             — sheet dropped when its full name matches any pattern.
                        Exclude wins when both lists match.

Selecting nothing is not an error; it yields an empty operation sequence.
"""
from __future__ import annotations

from typing import List

from openpyxl.workbook.workbook import Workbook

from .models import SheetFilter, SheetRef


VISIBLE = "visible"


def is_visible(ws) -> bool:
    return getattr(ws, "sheet_state", VISIBLE) == VISIBLE


def select_sheets(wb: Workbook, sheet_filter: SheetFilter) -> List[SheetRef]:
    """
    Return the selected sheets in workbook order. Never reorders by name or
    by which pattern matched.
    """
    selected = []
    for index, ws in enumerate(wb.worksheets):
        if not is_visible(ws):
            continue
        if sheet_filter.selects(ws.title):
            selected.append(SheetRef(index=index, name=ws.title))
    return selected
