"""
sheetseed/engine.py — One transformation pass.

Responsible for:
  - Opening the workbook for the duration of the pass
  - Selecting sheets (visibility + include/exclude)
  - Checking the header row, then resolving the table name
  - Reading each sheet's header and rows through the cell coercer
  - Assembling one Insert per sheet, in sheet order

Fail-fast: the first error aborts the pass and no operations are returned.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Optional

from openpyxl.workbook.workbook import Workbook

from .cells import FormulaEvaluator
from .header import extract_header, header_width
from .io import SheetView, open_workbook
from .operations import Insert, OperationSequence
from .planner import build_insert, resolve_table
from .rows import read_rows
from .selector import select_sheets

if TYPE_CHECKING:
    from .builder import ImportPlan


logger = logging.getLogger(__name__)


def build_operations(
    wb: Workbook,
    plan: "ImportPlan",
    evaluator: Optional[FormulaEvaluator] = None,
) -> OperationSequence:
    """Transform an already opened workbook into the plan's operation sequence."""
    operations: List[Insert] = []
    for ref in select_sheets(wb, plan.sheet_filter):
        sheet = SheetView(wb.worksheets[ref.index])
        # header row, then table name, then header cells and rows
        header_width(sheet, plan.margin)
        table = resolve_table(ref.name, plan.resolver)
        header = extract_header(sheet, plan.margin, evaluator)
        rows = read_rows(sheet, len(header), plan.margin, plan.skip_after_header, evaluator)
        op = build_insert(table, header, rows, plan.default_values, plan.value_generators)
        logger.debug("sheet %s -> %s: %d columns, %d rows", ref.name, op.table, len(op.columns), len(op.rows))
        operations.append(op)
    return OperationSequence(tuple(operations))


def run(plan: "ImportPlan", evaluator: Optional[FormulaEvaluator] = None) -> OperationSequence:
    """Open the plan's workbook, transform it, and release it before returning."""
    with open_workbook(plan.location, evaluator) as opened:
        ops = build_operations(opened.workbook, plan, opened.evaluator)
    logger.info("%s: %d operations (%s)", plan.location, len(ops), ", ".join(ops.tables) or "no sheets")
    return ops
