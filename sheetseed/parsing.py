from __future__ import annotations

import re
from typing import Iterable, Pattern, Tuple, Union

from .errors import invalid


_PLAIN_SHEET_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_.]*$")
# Plain names that would read as a cell reference or a literal still need quotes.
_A1_LIKE_RE = re.compile(r"^[A-Za-z]{1,3}[0-9]+$")
_R1C1_LIKE_RE = re.compile(r"^[Rr][0-9]*[Cc][0-9]*$")
_LITERALS = frozenset({"TRUE", "FALSE"})

PatternLike = Union[str, Pattern[str]]


def col_index_to_letters(n: int) -> str:
    """
    Convert 0-based column index to Excel column letters (0->A, 26->AA).
    """
    if n < 0:
        raise ValueError(f"Bad column index: {n}")
    out = []
    x = n + 1
    while x:
        x, rem = divmod(x - 1, 26)
        out.append(chr(ord("A") + rem))
    return "".join(reversed(out))


def quote_sheet_name(name: str) -> str:
    """
    Quote a sheet name for use in a cell reference when it is not a plain
    identifier ('My Sheet' -> "'My Sheet'", embedded quotes doubled), or when
    it looks like a cell reference (AB12, R1C1) or a boolean literal.
    """
    if (
        _PLAIN_SHEET_RE.match(name)
        and not _A1_LIKE_RE.match(name)
        and not _R1C1_LIKE_RE.match(name)
        and name.upper() not in _LITERALS
    ):
        return name
    return "'" + name.replace("'", "''") + "'"


def cell_address(sheet_name: str, row: int, col: int) -> str:
    """
    Spreadsheet-style reference for 0-based coordinates: ("table_2", 3, 1) -> "table_2!B4".
    """
    return f"{quote_sheet_name(sheet_name)}!{col_index_to_letters(col)}{row + 1}"


def compile_patterns(patterns: Iterable[PatternLike], parameter: str) -> Tuple[Pattern[str], ...]:
    """
    Compile include/exclude patterns once. Already-compiled patterns pass through.
    A syntax error is reported as INVALID_CONFIGURATION naming the parameter.
    """
    compiled = []
    for p in patterns:
        if p is None:
            raise invalid(parameter, f"{parameter} must not be null")
        if isinstance(p, re.Pattern):
            compiled.append(p)
            continue
        if not isinstance(p, str):
            raise invalid(parameter, f"{parameter} must be a string or compiled pattern (got {p!r})")
        try:
            compiled.append(re.compile(p))
        except re.error as e:
            raise invalid(parameter, f"Bad {parameter} pattern {p!r}: {e}")
    return tuple(compiled)
