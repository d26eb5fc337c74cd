from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional, Pattern, Tuple

from .errors import require_non_negative


Resolver = Callable[[str], Optional[str]]
"""sheet name -> table name, or None when the sheet has no table."""


@dataclass(frozen=True)
class Margin:
    """
    0-based (left, top) offset applied to every sheet before the header row
    and the data columns are located.
    """
    left: int = 0
    top: int = 0

    def __post_init__(self) -> None:
        require_non_negative(self.left, "left")
        require_non_negative(self.top, "top")


@dataclass(frozen=True)
class SheetFilter:
    """
    Compiled include/exclude patterns, matched against the full sheet name.
    A sheet is selected when it matches some include pattern (or there are
    none) and matches no exclude pattern. Exclude wins over include.
    """
    include: Tuple[Pattern[str], ...] = ()
    exclude: Tuple[Pattern[str], ...] = ()

    def selects(self, sheet_name: str) -> bool:
        if self.include and not any(p.fullmatch(sheet_name) for p in self.include):
            return False
        return not any(p.fullmatch(sheet_name) for p in self.exclude)


@dataclass(frozen=True)
class SheetRef:
    index: int                      # position in the workbook, 0-based
    name: str


def identity_resolver(sheet_name: str) -> Optional[str]:
    return sheet_name


def mapping_resolver(mapping: Any) -> Resolver:
    """Wrap a static sheet -> table mapping; unmapped sheets resolve to None."""
    table_map = dict(mapping)

    def _resolve(sheet_name: str) -> Optional[str]:
        return table_map.get(sheet_name)

    return _resolve
