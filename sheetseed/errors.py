from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class AppError(Exception):
    """
    Import error with a short code and structured details.
    Every failure of a transformation pass is raised as AppError; the CLI
    renders .message and .details through friendly_message().
    """
    code: str
    message: str
    details: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        if self.details:
            return f"{self.code}: {self.message} ({self.details})"
        return f"{self.code}: {self.message}"


# ── Error codes (keep stable for tests and CLI) ───────────────────────────────

INVALID_CONFIGURATION  = "INVALID_CONFIGURATION"
RESOURCE_NOT_FOUND     = "RESOURCE_NOT_FOUND"
SOURCE_READ_FAILED     = "SOURCE_READ_FAILED"
HEADER_ROW_NOT_FOUND   = "HEADER_ROW_NOT_FOUND"
HEADER_CELL_BLANK      = "HEADER_CELL_BLANK"
HEADER_CELL_NOT_STRING = "HEADER_CELL_NOT_STRING"
CELL_ERROR             = "CELL_ERROR"
UNSUPPORTED_CELL_TYPE  = "UNSUPPORTED_CELL_TYPE"
FORMULA_NOT_CACHED     = "FORMULA_NOT_CACHED"
UNRESOLVED_TABLE_NAME  = "UNRESOLVED_TABLE_NAME"
ALREADY_BUILT          = "ALREADY_BUILT"


def invalid(parameter: str, message: str) -> AppError:
    return AppError(INVALID_CONFIGURATION, message, {"parameter": parameter})


def require(value: Any, parameter: str) -> Any:
    """Raise INVALID_CONFIGURATION if a required argument is None."""
    if value is None:
        raise invalid(parameter, f"{parameter} must not be null")
    return value


def require_non_negative(value: int, parameter: str) -> int:
    require(value, parameter)
    if isinstance(value, bool) or not isinstance(value, int):
        raise invalid(parameter, f"{parameter} must be an integer (got {value!r})")
    if value < 0:
        raise invalid(parameter, f"{parameter} must be greater than or equal to 0")
    return value


# ── Friendly message lookup ───────────────────────────────────────────────────

def friendly_message(e: AppError) -> str:
    """
    Return a plain-English one-liner suitable for printing on the command line.
    Never exposes raw tracebacks or internal code paths.
    """
    code    = e.code
    msg     = e.message or ""
    details = e.details or {}

    if code == INVALID_CONFIGURATION:
        param = details.get("parameter", "")
        where = f" ({param})" if param else ""
        return f"Invalid import setting{where}: {msg}"

    if code == RESOURCE_NOT_FOUND:
        loc = details.get("location", "")
        return f"Workbook not found: {loc or msg}. Check the path or SHEETSEED_RESOURCE_PATH."

    if code == SOURCE_READ_FAILED:
        loc = details.get("location", "")
        fname = f" ({os.path.basename(loc)})" if loc else ""
        return f"Could not read the workbook{fname}. Check that it is a valid XLSX file.\n({msg})"

    if code == HEADER_ROW_NOT_FOUND:
        sheet = details.get("sheet", "")
        row   = details.get("row")
        row_str = f" at row {row + 1}" if isinstance(row, int) else ""
        return f"Sheet '{sheet}' has no header row{row_str}. Check the top/left margin."

    if code in (HEADER_CELL_BLANK, HEADER_CELL_NOT_STRING):
        addr = details.get("address", "")
        if code == HEADER_CELL_BLANK:
            return f"Header cell {addr} is blank. Every header cell must hold a column name."
        return f"Header cell {addr} is not text. Column names must be strings."

    if code == CELL_ERROR:
        return f"Cell {details.get('address', '')} contains an error value. Fix the formula or value."

    if code == UNSUPPORTED_CELL_TYPE:
        return f"Cell {details.get('address', '')} has a value type that cannot be imported."

    if code == FORMULA_NOT_CACHED:
        return (
            f"Formula in cell {details.get('address', '')} has no saved result. "
            "Open and save the workbook in Excel so its formulas are calculated."
        )

    if code == UNRESOLVED_TABLE_NAME:
        return f"No table is mapped to sheet '{details.get('sheet', '')}'. Add it to the table mapping."

    if code == ALREADY_BUILT:
        return "This import builder was already used. Create a new one with excel(...)."

    # Fallback: first line of the raw message only
    clean = msg.splitlines()[0] if msg else "An unexpected error occurred."
    return clean
