from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from openpyxl import load_workbook
from openpyxl.workbook.workbook import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from .cells import CachedValueEvaluator, FormulaEvaluator
from .errors import AppError, RESOURCE_NOT_FOUND, SOURCE_READ_FAILED, require


logger = logging.getLogger(__name__)

ENV_RESOURCE_PATH = "SHEETSEED_RESOURCE_PATH"


def resource_search_path() -> List[Path]:
    """Directories listed in SHEETSEED_RESOURCE_PATH (os.pathsep separated)."""
    env = os.getenv(ENV_RESOURCE_PATH, "")
    return [Path(p) for p in env.split(os.pathsep) if p.strip()]


def resolve_location(location: str) -> str:
    """Resolve a workbook location to an existing file path.

    Priority:
    1) the location itself (absolute, or relative to the current directory)
    2) each directory listed in SHEETSEED_RESOURCE_PATH, in order
    """
    require(location, "location")
    p = Path(location)
    if p.is_file():
        return str(p)
    if not p.is_absolute():
        for base in resource_search_path():
            candidate = base / p
            if candidate.is_file():
                return str(candidate)
    raise AppError(RESOURCE_NOT_FOUND, f"{location} not found", {"location": location})


class SheetView:
    """
    Sparse, read-only view of a worksheet with 0-based coordinates.

    Only the cells the file defines are present. A row exists when at least
    one cell exists in it; a missing cell is absent, never an empty cell.
    """

    def __init__(self, ws: Worksheet):
        self.name = ws.title
        self._rows: Dict[int, Dict[int, Any]] = {}
        # _cells holds exactly the cells read from the file; the public
        # accessors would create the cells they are asked for. Private API,
        # stable across openpyxl 3.x (pinned <4 in pyproject.toml).
        for (r, c), cell in sorted(ws._cells.items()):
            self._rows.setdefault(r - 1, {})[c - 1] = cell

    def has_row(self, row: int) -> bool:
        return row in self._rows

    def cell(self, row: int, col: int) -> Optional[Any]:
        return self._rows.get(row, {}).get(col)

    def last_cell_num(self, row: int) -> int:
        """One past the last populated column index of a row, 0 if the row is absent."""
        cells = self._rows.get(row)
        if not cells:
            return 0
        return max(cells) + 1


@dataclass
class OpenWorkbook:
    location: str
    workbook: Workbook
    evaluator: FormulaEvaluator


def _read_bytes(path: str) -> bytes:
    try:
        return Path(path).read_bytes()
    except FileNotFoundError:
        raise AppError(RESOURCE_NOT_FOUND, f"{path} not found", {"location": path})
    except OSError as e:
        raise AppError(SOURCE_READ_FAILED, f"failed to open {path}: {e}", {"location": path})


@contextmanager
def open_workbook(path: str, evaluator: Optional[FormulaEvaluator] = None) -> Iterator[OpenWorkbook]:
    """
    Open a workbook for one transformation pass.

    Formulas are kept (data_only=False) so that formula cells can be told
    apart and resolved through the evaluator. Without an explicit evaluator
    a CachedValueEvaluator over the same file content is used. Both are
    released when the block exits, normally or by an exception.
    """
    content = _read_bytes(path)
    try:
        wb = load_workbook(BytesIO(content), data_only=False)
    except AppError:
        raise
    except Exception as e:
        raise AppError(SOURCE_READ_FAILED, f"failed to open {path}: {e}", {"location": path})

    owned = evaluator is None
    ev = CachedValueEvaluator(content) if owned else evaluator
    logger.debug("opened %s (%d sheets)", path, len(wb.worksheets))
    try:
        yield OpenWorkbook(location=path, workbook=wb, evaluator=ev)
    finally:
        if owned:
            ev.close()
        wb.close()
        logger.debug("closed %s", path)
