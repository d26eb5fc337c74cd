"""
sheetseed/operations.py — Insert operations and their DB-API runtime.

An Insert is one table-scoped bundle: the sheet's column list and row
tuples, plus column directives that are folded in per row when executed:

  default_values   — literal used for a column the sheet does not supply
  value_generators — generator asked for one value per row, in row order

Columns supplied by the sheet always win over a directive for the same
column. Bound column order is: sheet columns, then default-value columns,
then generator columns, each in insertion order.

None values are bound as SQL NULL. Dates and times are bound as ISO-8601
strings by the default Binder, durations as [h]:mm:ss text.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from types import MappingProxyType
from typing import Any, Iterable, Iterator, List, Mapping, Optional, Tuple

from .generators import GeneratorLike, next_value


logger = logging.getLogger(__name__)

_PLACEHOLDERS = {"qmark": "?", "format": "%s"}


@dataclass(frozen=True)
class Binder:
    """Turns Python values into DB-API parameters."""
    paramstyle: str = "qmark"

    @property
    def placeholder(self) -> str:
        try:
            return _PLACEHOLDERS[self.paramstyle]
        except KeyError:
            raise ValueError(f"Unsupported paramstyle: {self.paramstyle!r}")

    def bind(self, value: Any) -> Any:
        if isinstance(value, datetime):
            return value.isoformat(sep=" ")
        if isinstance(value, (date, time)):
            return value.isoformat()
        if isinstance(value, timedelta):
            return _duration(value)
        return value


def _duration(value: timedelta) -> str:
    """[h]:mm:ss text for a duration cell; hours are not wrapped at 24."""
    sign = "-" if value < timedelta(0) else ""
    value = abs(value)
    seconds = value.days * 86400 + value.seconds
    hours, rest = divmod(seconds, 3600)
    minutes, seconds = divmod(rest, 60)
    text = f"{sign}{hours:02d}:{minutes:02d}:{seconds:02d}"
    if value.microseconds:
        text += f".{value.microseconds:06d}"
    return text


def _frozen(mapping: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class Insert:
    table: str
    columns: Tuple[str, ...]
    rows: Tuple[Tuple[Any, ...], ...] = ()
    default_values: Mapping[str, Any] = field(default_factory=dict)
    value_generators: Mapping[str, GeneratorLike] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "columns", tuple(self.columns))
        object.__setattr__(self, "rows", tuple(tuple(r) for r in self.rows))
        object.__setattr__(self, "default_values", _frozen(self.default_values))
        object.__setattr__(self, "value_generators", _frozen(self.value_generators))

    @property
    def default_columns(self) -> Tuple[str, ...]:
        return tuple(c for c in self.default_values if c not in self.columns)

    @property
    def generated_columns(self) -> Tuple[str, ...]:
        taken = set(self.columns) | set(self.default_columns)
        return tuple(c for c in self.value_generators if c not in taken)

    @property
    def bound_columns(self) -> Tuple[str, ...]:
        return self.columns + self.default_columns + self.generated_columns

    def sql(self, binder: Optional[Binder] = None) -> str:
        binder = binder or Binder()
        cols = self.bound_columns
        marks = ", ".join([binder.placeholder] * len(cols))
        return f"INSERT INTO {self.table} ({', '.join(cols)}) VALUES ({marks})"

    def iter_parameters(self, binder: Optional[Binder] = None) -> Iterator[Tuple[Any, ...]]:
        """
        Yield the bound parameters of each row. Generators are advanced once
        per yielded row, so iterating twice advances them twice.
        """
        binder = binder or Binder()
        defaults = [self.default_values[c] for c in self.default_columns]
        generators = [self.value_generators[c] for c in self.generated_columns]
        for row in self.rows:
            values = list(row) + defaults + [next_value(g) for g in generators]
            yield tuple(binder.bind(v) for v in values)

    def execute(self, connection: Any, binder: Optional[Binder] = None) -> int:
        """Insert every row through a cursor of connection. Returns the row count."""
        binder = binder or Binder()
        if not self.rows:
            return 0
        statement = self.sql(binder)
        cursor = connection.cursor()
        try:
            for params in self.iter_parameters(binder):
                cursor.execute(statement, params)
        finally:
            cursor.close()
        logger.debug("inserted %d rows into %s", len(self.rows), self.table)
        return len(self.rows)


@dataclass(frozen=True)
class OperationSequence:
    """Operations executed strictly in order."""
    operations: Tuple[Insert, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "operations", tuple(self.operations))

    def __iter__(self) -> Iterator[Insert]:
        return iter(self.operations)

    def __len__(self) -> int:
        return len(self.operations)

    def __getitem__(self, index: int) -> Insert:
        return self.operations[index]

    @property
    def tables(self) -> List[str]:
        return [op.table for op in self.operations]

    def execute(self, connection: Any, binder: Optional[Binder] = None) -> int:
        """
        Execute every operation on connection, then commit once if the
        connection supports it. Returns the total number of rows inserted.
        Errors propagate; rolling back is left to the caller.
        """
        total = 0
        for op in self.operations:
            total += op.execute(connection, binder)
        commit = getattr(connection, "commit", None)
        if callable(commit):
            commit()
        logger.info("executed %d operations (%d rows)", len(self.operations), total)
        return total


def sequence_of(operations: Iterable[Insert]) -> OperationSequence:
    return OperationSequence(tuple(operations))
